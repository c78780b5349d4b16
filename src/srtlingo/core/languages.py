"""Target languages offered for translation.

The provider receives the human-readable label ("Polish"), not the code;
codes are BCP 47 tags used by the web UI and CLI for selection.
"""

from __future__ import annotations

# fmt: off
TARGET_LANGUAGES: dict[str, str] = {
    "en-US":   "English",
    "no-NO":   "Norwegian",
    "pl-PL":   "Polish",
    "hi-IN":   "Hindi",
    "hi-Latn": "Hindi (English letters)",
    "ar-SA":   "Arabic",
    "ur-PK":   "Urdu",
    "de-DE":   "German",
    "fr-FR":   "French",
    "es-ES":   "Spanish",
    "it-IT":   "Italian",
    "pt-BR":   "Portuguese (Brazil)",
    "sv-SE":   "Swedish",
    "da-DK":   "Danish",
    "nl-NL":   "Dutch",
    "tr-TR":   "Turkish",
    "ja-JP":   "Japanese",
    "ko-KR":   "Korean",
    "zh-CN":   "Chinese (Simplified)",
}
# fmt: on

# Scripts written right to left, for the preview pane
RTL_LANGUAGES: set[str] = {"ar-SA", "ur-PK"}


def language_label(code: str) -> str:
    """Get the label for a code, or the code itself if unknown."""
    return TARGET_LANGUAGES.get(code, code)


def resolve_language(value: str) -> str:
    """Turn a code or a label into the label sent to the provider.

    Raises:
        ValueError: if ``value`` matches neither a code nor a label.
    """
    if value in TARGET_LANGUAGES:
        return TARGET_LANGUAGES[value]
    for label in TARGET_LANGUAGES.values():
        if label.lower() == value.strip().lower():
            return label
    raise ValueError(
        f"Unsupported target language: '{value}'. "
        f"Run 'srtlingo languages' to see all {len(TARGET_LANGUAGES)} supported languages."
    )
