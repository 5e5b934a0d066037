"""Tests for the i18n helper and locale completeness."""

from __future__ import annotations

import string

from foodabuser.i18n import normalize_lang, supported_languages, t
from foodabuser.i18n.locales.en import STRINGS as EN
from foodabuser.i18n.locales.ru import STRINGS as RU


def _fields(template: str) -> set[str]:
    return {name for _, name, _, _ in string.Formatter().parse(template) if name}


class TestTranslate:
    def test_ru(self):
        assert t("weekday_0", "RU") == "Вс"

    def test_case_insensitive(self):
        assert t("weekday_0", "ru") == "Вс"

    def test_unknown_language_falls_back_to_en(self):
        assert t("weekday_0", "FR") == "Sun"

    def test_none_language_is_en(self):
        assert t("month_1", None) == "Jan"

    def test_unknown_key_returns_key(self):
        assert t("no_such_key", "RU") == "no_such_key"

    def test_supported(self):
        assert supported_languages() == ["EN", "RU"]

    def test_normalize(self):
        assert normalize_lang(" ru ") == "RU"
        assert normalize_lang("de") == "EN"
        assert normalize_lang(None) == "EN"


class TestLocales:
    def test_same_keys(self):
        assert set(EN) == set(RU)

    def test_same_placeholders(self):
        for key, template in EN.items():
            assert _fields(template) == _fields(RU[key]), key
