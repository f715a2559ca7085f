"""Model and response-language resolution.

Model: per-call override -> stored model preference -> tool mapping -> smart.
Language: per-call override -> stored language preference -> UI language ->
platform locale -> English.
"""

from __future__ import annotations

import locale
import logging
import os
from typing import Optional

from toolary.config.defaults import (
    DEFAULT_LANGUAGE,
    DEFAULT_MODEL_TIER,
    GEMINI_LITE_MODEL,
    GEMINI_SMART_MODEL,
    LANGUAGE_AUTO,
    LANGUAGE_NAMES,
    MODEL_AUTO,
    MODEL_LITE,
    MODEL_PREFERENCES,
    MODEL_SMART,
    PLATFORM_LANGUAGES,
    PREF_KEY_LANGUAGE,
    PREF_KEY_MODEL,
    PREF_KEY_UI_LANGUAGE,
    TOOL_MODEL_MAPPING,
)
from toolary.storage import PreferenceStore

logger = logging.getLogger(__name__)


def normalize_language_code(value: Optional[str]) -> Optional[str]:
    """'en-US', 'en_GB.UTF-8' -> 'en'."""
    if not value:
        return None
    base = value.replace("_", "-").split(".")[0].split("-")[0].strip().lower()
    return base or None


def detect_platform_language() -> Optional[str]:
    """Base language code of the process locale, if any."""
    try:
        lang = locale.getlocale()[0]
    except ValueError:
        lang = None
    if not lang:
        lang = os.environ.get("LC_ALL") or os.environ.get("LANG")
    code = normalize_language_code(lang)
    if code in ("c", "posix"):
        return None
    return code


class PreferenceResolver:
    """Resolves model tier and response language, caching stored preferences."""

    def __init__(
        self,
        store: PreferenceStore,
        smart_model: str = GEMINI_SMART_MODEL,
        lite_model: str = GEMINI_LITE_MODEL,
        tool_mapping: Optional[dict] = None,
        platform_language=detect_platform_language,
    ):
        self.store = store
        self.models = {MODEL_SMART: smart_model, MODEL_LITE: lite_model}
        self.tool_mapping = dict(TOOL_MODEL_MAPPING if tool_mapping is None else tool_mapping)
        self._platform_language = platform_language
        self.model_preference = MODEL_AUTO
        self.language_preference = LANGUAGE_AUTO
        self._loaded = False

    async def load(self) -> None:
        """Read stored preferences once; store errors fall back to 'auto'."""
        if self._loaded:
            return
        try:
            self.model_preference = await self.store.get(PREF_KEY_MODEL) or MODEL_AUTO
            self.language_preference = await self.store.get(PREF_KEY_LANGUAGE) or LANGUAGE_AUTO
        except Exception:
            logger.exception("Failed to load AI preferences; using defaults")
            self.model_preference = MODEL_AUTO
            self.language_preference = LANGUAGE_AUTO
        self._loaded = True

    # -------------------------------------------------------------------------
    # Model
    # -------------------------------------------------------------------------

    def model_for_tier(self, tier: str) -> str:
        return self.models[MODEL_SMART] if tier == MODEL_SMART else self.models[MODEL_LITE]

    def resolve_model(self, tool_id: str, override: Optional[str] = None) -> str:
        """Model identifier for a tool call."""
        for choice in (override, self.model_preference):
            if choice and choice != MODEL_AUTO:
                if choice in self.models:
                    return self.models[choice]
                # A concrete model identifier passes through untouched
                return choice

        tier = self.tool_mapping.get(tool_id, DEFAULT_MODEL_TIER)
        return self.model_for_tier(tier)

    # -------------------------------------------------------------------------
    # Language
    # -------------------------------------------------------------------------

    async def resolve_language(self, override: Optional[str] = None) -> str:
        """Language code AI responses should be written in."""
        for choice in (override, self.language_preference):
            if choice and choice != LANGUAGE_AUTO:
                return choice

        try:
            ui_language = await self.store.get(PREF_KEY_UI_LANGUAGE)
        except Exception as e:
            logger.warning(f"Could not read UI language preference: {e}")
            ui_language = None
        ui_language = normalize_language_code(ui_language)
        if ui_language:
            return ui_language

        detected = self._platform_language()
        if detected in PLATFORM_LANGUAGES:
            return detected
        return DEFAULT_LANGUAGE

    async def language_instruction(self, override: Optional[str] = None) -> str:
        """Suffix asking the model to answer in the resolved language.

        Empty for the default language or codes without a display name.
        """
        language = await self.resolve_language(override)
        if language in (LANGUAGE_AUTO, DEFAULT_LANGUAGE):
            return ""
        name = LANGUAGE_NAMES.get(language)
        if not name:
            return ""
        return f"\n\nPlease respond in {name}."

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    async def set_model_preference(self, value: str) -> None:
        if value not in MODEL_PREFERENCES:
            raise ValueError(
                f"Unknown model preference: {value!r}. Expected one of {list(MODEL_PREFERENCES)}"
            )
        await self.load()
        self.model_preference = value
        try:
            await self.store.set(PREF_KEY_MODEL, value)
        except Exception:
            logger.exception("Failed to persist model preference")

    async def set_language_preference(self, value: str) -> None:
        if value != LANGUAGE_AUTO and value not in LANGUAGE_NAMES:
            raise ValueError(f"Unsupported language: {value!r}")
        await self.load()
        self.language_preference = value
        try:
            await self.store.set(PREF_KEY_LANGUAGE, value)
        except Exception:
            logger.exception("Failed to persist language preference")
