"""
Language Registry.
Static table of supported locales with display names and TTS voice profiles.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from voice_commerce.config import get_settings

settings = get_settings()


@dataclass(frozen=True)
class SupportedLanguage:
    """A registered locale."""
    code: str
    name: str
    native_name: str
    voice: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code,
            "displayName": self.name,
            "nativeName": self.native_name,
            "voiceProfileId": self.voice
        }


SUPPORTED_LANGUAGES: Mapping[str, SupportedLanguage] = MappingProxyType({
    lang.code: lang for lang in (
        SupportedLanguage("hi-IN", "Hindi", "हिन्दी", "hi-IN-SwaraNeural"),
        SupportedLanguage("en-IN", "English (India)", "English", "en-IN-NeerjaNeural"),
        SupportedLanguage("bn-IN", "Bengali", "বাংলা", "bn-IN-TanishaaNeural"),
        SupportedLanguage("ta-IN", "Tamil", "தமிழ்", "ta-IN-PallaviNeural"),
        SupportedLanguage("te-IN", "Telugu", "తెలుగు", "te-IN-ShrutiNeural"),
        SupportedLanguage("mr-IN", "Marathi", "मराठी", "mr-IN-AarohiNeural"),
        SupportedLanguage("gu-IN", "Gujarati", "ગુજરાતી", "gu-IN-DhwaniNeural"),
        SupportedLanguage("kn-IN", "Kannada", "ಕನ್ನಡ", "kn-IN-SapnaNeural"),
        SupportedLanguage("ml-IN", "Malayalam", "മലയാളം", "ml-IN-SobhanaNeural"),
        SupportedLanguage("pa-IN", "Punjabi", "ਪੰਜਾਬੀ", "pa-IN-VaaniNeural"),
        SupportedLanguage("or-IN", "Odia", "ଓଡ଼ିଆ", "or-IN-SubhasiniNeural"),
        SupportedLanguage("as-IN", "Assamese", "অসমীয়া", "as-IN-YashicaNeural"),
        SupportedLanguage("ur-IN", "Urdu", "اردو", "ur-IN-GulNeural"),
        SupportedLanguage("ne-IN", "Nepali", "नेपाली", "ne-NP-HemkalaNeural"),
        SupportedLanguage("sa-IN", "Sanskrit", "संस्कृत", "hi-IN-SwaraNeural"),
    )
})

DEFAULT_LANGUAGE = settings.DEFAULT_LANGUAGE if settings.DEFAULT_LANGUAGE in SUPPORTED_LANGUAGES else "hi-IN"

# Bare ISO 639-1 code -> registered locale
_SHORT_CODES = {code.split("-")[0]: code for code in SUPPORTED_LANGUAGES}


def normalize_language(code: Optional[str]) -> str:
    """
    Map a caller-supplied language code onto a registered locale.

    Accepts "hi", "HI", "hi_in" and "hi-IN" alike; anything unrecognized
    resolves to the default locale.
    """
    if not code:
        return DEFAULT_LANGUAGE

    cleaned = code.strip().replace("_", "-")
    parts = cleaned.split("-")
    candidate = parts[0].lower()
    if len(parts) > 1:
        candidate = f"{candidate}-{parts[1].upper()}"

    if candidate in SUPPORTED_LANGUAGES:
        return candidate

    return _SHORT_CODES.get(parts[0].lower(), DEFAULT_LANGUAGE)


def is_supported(code: Optional[str]) -> bool:
    """True when the code names a registered locale (after normalization)."""
    if not code:
        return False
    short = code.strip().replace("_", "-").split("-")[0].lower()
    return short in _SHORT_CODES


def get_language(code: Optional[str]) -> SupportedLanguage:
    """Registry entry for a code, failing closed to the default locale."""
    return SUPPORTED_LANGUAGES[normalize_language(code)]


def resolve_voice_profile(code: Optional[str]) -> str:
    """Voice profile id used by the synthesizer for a language."""
    return get_language(code).voice


def list_supported_languages() -> List[Dict[str, str]]:
    """Read-only registry dump."""
    return [lang.to_dict() for lang in SUPPORTED_LANGUAGES.values()]
