"""User-facing strings in English and Russian.

Every message that reaches a person (errors, chart labels,
recommendations, estimator output) is addressed by a key; ``t`` resolves
it in the requested language, then English, then gives the key back::

    t("err_pin_mismatch", "ru")   # "PIN-коды не совпадают"
    t("err_pin_mismatch", "FR")   # English text
"""

from __future__ import annotations

from foodabuser.i18n.locales.en import STRINGS as EN_STRINGS
from foodabuser.i18n.locales.ru import STRINGS as RU_STRINGS

FALLBACK_LANG = "EN"

_CATALOGUES: dict[str, dict[str, str]] = {
    "EN": EN_STRINGS,
    "RU": RU_STRINGS,
}


def normalize_lang(lang: str | None) -> str:
    """Upper-case *lang*; anything unsupported becomes the fallback language."""
    code = (lang or "").strip().upper()
    return code if code in _CATALOGUES else FALLBACK_LANG


def t(key: str, lang: str | None = None) -> str:
    code = normalize_lang(lang)
    for catalogue in (_CATALOGUES[code], _CATALOGUES[FALLBACK_LANG]):
        if key in catalogue:
            return catalogue[key]
    return key


def supported_languages() -> list[str]:
    return sorted(_CATALOGUES)
