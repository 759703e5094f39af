"""
Property-based tests for internationalization (i18n) module.
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from phisher_panel.i18n import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    TRANSLATIONS,
    get_message,
    get_missing_translations,
)


LIST_KEYS = [
    "empty_input",
    "invalid_domain",
    "added",
    "removed",
    "add_failed",
    "remove_failed",
    "empty",
    "load_failed",
]


class TestTranslationCoverageProperty:
    """Every message exists in every supported language."""

    def test_no_language_is_missing_keys(self) -> None:
        assert TRANSLATIONS
        for language in SUPPORTED_LANGUAGES:
            assert get_missing_translations(language) == set()

    @given(key=st.sampled_from(sorted(TRANSLATIONS)))
    @settings(max_examples=100)
    def test_every_key_has_non_empty_text(self, key: str) -> None:
        for language in SUPPORTED_LANGUAGES:
            assert TRANSLATIONS[key][language].strip()

    @pytest.mark.parametrize("list_name", ["whitelist", "blacklist"])
    def test_list_managers_have_all_messages(self, list_name: str) -> None:
        for key in LIST_KEYS:
            assert f"{list_name}.{key}" in TRANSLATIONS

    def test_placeholders_match_across_languages(self) -> None:
        formatter = string.Formatter()
        for key, translations in TRANSLATIONS.items():
            fields = {
                language: {name for _, name, _, _ in formatter.parse(text) if name}
                for language, text in translations.items()
            }
            assert fields["en"] == fields["de"], key


class TestLookupProperty:
    """Lookups fall back instead of failing."""

    @given(key=st.text(alphabet=string.ascii_lowercase + "._", min_size=1, max_size=30))
    @settings(max_examples=100)
    def test_unknown_key_returns_key(self, key: str) -> None:
        if key not in TRANSLATIONS:
            assert get_message(key) == key
            assert get_message(key, "de") == key

    @given(
        key=st.sampled_from(sorted(TRANSLATIONS)),
        language=st.one_of(st.none(), st.sampled_from(["fr", "", "EN", "xx"])),
    )
    @settings(max_examples=100)
    def test_unsupported_language_uses_default(self, key: str, language) -> None:
        assert get_message(key, language) == get_message(key, DEFAULT_LANGUAGE)

    def test_formatting(self) -> None:
        assert get_message("blacklist.added", domain="evil.com") == '"evil.com" added to blacklist'
        assert get_message("history.exported", "de", format="CSV") == "Erfolgreich als CSV exportiert"
        assert get_message("cli.risk", score=92, level="danger") == "Risk score: 92/100 (danger)"

    def test_missing_format_argument_leaves_template(self) -> None:
        assert get_message("blacklist.added", other="x") == '"{domain}" added to blacklist'

    def test_known_messages(self) -> None:
        assert get_message("input.empty") == "Please enter a URL"
        assert get_message("input.invalid_url", "de") == "Bitte eine gültige URL eingeben"
        assert get_message("whitelist.invalid_domain") == "Please enter a valid domain (e.g., example.com)"
        assert get_message("theme.light", "de") == "Hell"
