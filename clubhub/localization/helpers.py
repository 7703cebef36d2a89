"""Localization helper functions."""
from __future__ import annotations

from clubhub.localization.translations import TRANSLATIONS


def get_translation(key: str, locale: str = "en", **kwargs) -> str:
    """Get translated message for a key, with optional formatting."""
    translations = TRANSLATIONS.get(locale.lower(), TRANSLATIONS["en"])
    message = translations.get(key) or TRANSLATIONS["en"].get(key, key)

    if kwargs:
        try:
            message = message.format(**kwargs)
        except (KeyError, ValueError):
            # If formatting fails, return message as-is
            pass

    return message
