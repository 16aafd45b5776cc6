"""Supported chat languages."""

from typing import Dict

DEFAULT_LANGUAGE = "en"

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi (हिंदी)",
    "es": "Spanish (Español)",
    "fr": "French (Français)",
    "de": "German (Deutsch)",
    "zh": "Chinese (中文)",
    "ja": "Japanese (日本語)",
    "ko": "Korean (한국어)",
    "ar": "Arabic (العربية)",
    "pt": "Portuguese (Português)",
    "ru": "Russian (Русский)",
    "bn": "Bengali (বাংলা)",
    "ta": "Tamil (தமிழ்)",
    "te": "Telugu (తెలుగు)",
    "mr": "Marathi (मराठी)",
    "gu": "Gujarati (ગુજરાતી)",
    "kn": "Kannada (ಕನ್ನಡ)",
    "ml": "Malayalam (മലയാളം)",
    "pa": "Punjabi (ਪੰਜਾਬੀ)",
    "ur": "Urdu (اردو)",
}


def name_for(code: str) -> str:
    """Display name for a language code, English when the code is unknown."""
    return LANGUAGE_NAMES.get(code or "", LANGUAGE_NAMES[DEFAULT_LANGUAGE])


def supported_languages() -> Dict[str, str]:
    return dict(LANGUAGE_NAMES)
