"""Default configuration values for the Toolary AI engine.

All hard-coded numbers, model identifiers and lookup tables live here so the
rest of the package imports them instead of repeating literals.

Usage:
    from toolary.config.defaults import (
        RATE_LIMIT_COOLDOWN_SECONDS,
        RETRY_BASE_DELAY,
        TOOL_MODEL_MAPPING,
    )
"""

from __future__ import annotations

# =============================================================================
# Backend
# =============================================================================

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_SMART_MODEL = "gemini-2.5-flash"
GEMINI_LITE_MODEL = "gemini-2.5-flash-lite"

REQUEST_TIMEOUT_SECONDS = 30.0


# =============================================================================
# Model Selection
# =============================================================================

MODEL_AUTO = "auto"
MODEL_SMART = "smart"
MODEL_LITE = "lite"

MODEL_PREFERENCES = (MODEL_AUTO, MODEL_SMART, MODEL_LITE)

# Tier each tool uses when the user has no explicit model preference
TOOL_MODEL_MAPPING = {
    "ai-text-summarizer": MODEL_LITE,
    "ai-code-explainer": MODEL_SMART,
}

DEFAULT_MODEL_TIER = MODEL_SMART


# =============================================================================
# Credential Health
# =============================================================================

HEALTH_ERROR_THRESHOLD = 3
RATE_LIMIT_COOLDOWN_SECONDS = 60.0
RATE_LIMIT_STATUS = 429


# =============================================================================
# Retry Defaults
# =============================================================================

RETRY_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0  # seconds
RETRY_MAX_DELAY = 30.0  # seconds


# =============================================================================
# Languages
# =============================================================================

LANGUAGE_AUTO = "auto"
DEFAULT_LANGUAGE = "en"

# Platform locales accepted during auto-detection
PLATFORM_LANGUAGES = ("en", "tr", "fr")

LANGUAGE_NAMES = {
    "en": "English",
    "tr": "Türkçe",
    "fr": "Français",
    "es": "Español",
    "de": "Deutsch",
    "it": "Italiano",
    "pt": "Português",
    "ru": "Русский",
    "zh": "中文",
    "ja": "日本語",
    "ko": "한국어",
    "ar": "العربية",
    "nl": "Nederlands",
    "sv": "Svenska",
    "no": "Norsk",
    "da": "Dansk",
    "fi": "Suomi",
    "pl": "Polski",
    "cs": "Čeština",
    "hu": "Magyar",
    "ro": "Română",
    "bg": "Български",
    "hr": "Hrvatski",
    "sr": "Српски",
    "sk": "Slovenčina",
    "sl": "Slovenščina",
    "et": "Eesti",
    "lv": "Latviešu",
    "lt": "Lietuvių",
    "uk": "Українська",
    "el": "Ελληνικά",
    "he": "עברית",
    "hi": "हिन्दी",
    "th": "ไทย",
    "vi": "Tiếng Việt",
    "id": "Bahasa Indonesia",
    "ms": "Bahasa Melayu",
    "tl": "Filipino",
}


# =============================================================================
# Preference Store Keys
# =============================================================================

PREF_KEY_MODEL = "ai_model"
PREF_KEY_LANGUAGE = "ai_language"
PREF_KEY_UI_LANGUAGE = "ui_language"


# =============================================================================
# Secure Storage
# =============================================================================

ENCRYPTED_ENTRY_VERSION = 1
SECRET_SEED = "toolary-ai-key-salt-v1"
DEFAULT_INSTALL_SEED = "toolary-extension"
AES_GCM_IV_BYTES = 12


# =============================================================================
# File Names
# =============================================================================

DATA_DIR_NAME = ".toolary"
CONFIG_FILENAME = "config.yaml"
CREDENTIALS_FILENAME = "credentials.json"
PREFERENCES_FILENAME = "preferences.json"


# =============================================================================
# Credential Test
# =============================================================================

CREDENTIAL_TEST_PROMPT = 'Hello, please respond with "API test successful"'
