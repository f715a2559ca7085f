"""Toolary command-line interface."""
