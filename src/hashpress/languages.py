"""Language codes: validation, canonical casing and display names.

Codes double as directory names under the artifact tree, so only simple
BCP-47 style tags (`en-US`, `zh-Hans`, `pt-BR`) are accepted.
"""

from __future__ import annotations

import re

LANGUAGE_CODE_PATTERN = re.compile(r"^[A-Za-z]{2,3}(-[A-Za-z0-9]{2,8})*$")

LANGUAGE_NAMES: dict[str, str] = {
    "zh-Hans": "简体中文",
    "en-US": "English",
    "ja-JP": "日本語",
    "ko-KR": "한국어",
    "es-ES": "Español",
    "fr-FR": "Français",
    "de-DE": "Deutsch",
    "ru-RU": "Русский",
    "pt-PT": "Português",
    "it-IT": "Italiano",
    "nl-NL": "Nederlands",
    "pl-PL": "Polski",
    "sv-SE": "Svenska",
    "fi-FI": "Suomi",
    "da-DK": "Dansk",
    "no-NO": "Norsk",
    "zh-Hant": "繁體中文",
    "hi-IN": "हिन्दी",
    "ar-SA": "العربية",
    "th-TH": "ไทย",
    "vi-VN": "Tiếng Việt",
    "id-ID": "Bahasa Indonesia",
    "pt-BR": "Português (Brasil)",
    "es-MX": "Español (México)",
    "tr-TR": "Türkçe",
    "uk-UA": "Українська",
}

_LOOKUP = {code.lower(): name for code, name in LANGUAGE_NAMES.items()}
_CANONICAL = {code.lower(): code for code in LANGUAGE_NAMES}


def is_language_code(value: str) -> bool:
    """Return whether ``value`` is an acceptable language code."""
    return LANGUAGE_CODE_PATTERN.fullmatch(value) is not None


def canonical_language(value: str) -> str:
    """Return ``value`` in canonical casing (`EN-us` becomes `en-US`).

    Known codes take the casing of ``LANGUAGE_NAMES``; other codes get a
    lowercase language, title-case four-letter script and uppercase region.

    Raises:
        ValueError: If ``value`` is not a language code.
    """
    code = value.strip()
    if not is_language_code(code):
        raise ValueError(f"Invalid language code {value!r}")
    known = _CANONICAL.get(code.lower())
    if known is not None:
        return known
    primary, *subtags = code.split("-")
    parts = [primary.lower()]
    for subtag in subtags:
        if len(subtag) == 4 and subtag.isalpha():
            parts.append(subtag.title())
        elif len(subtag) == 2 and subtag.isalpha():
            parts.append(subtag.upper())
        else:
            parts.append(subtag.lower())
    return "-".join(parts)


def language_name(code: str) -> str:
    """Return the display name of ``code``, falling back to the code itself."""
    return _LOOKUP.get(code.lower(), code)


def describe_language(code: str) -> str:
    """Return ``"<display name> (<code>)"`` for prompts."""
    name = language_name(code)
    return code if name == code else f"{name} ({code})"


def same_language(left: str, right: str) -> bool:
    """Return whether two language codes are equal ignoring case."""
    return left.strip().lower() == right.strip().lower()


__all__ = [
    "LANGUAGE_CODE_PATTERN",
    "LANGUAGE_NAMES",
    "canonical_language",
    "describe_language",
    "is_language_code",
    "language_name",
    "same_language",
]
