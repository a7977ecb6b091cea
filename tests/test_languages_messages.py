from __future__ import annotations

import pytest

from voice_commerce.core.languages import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    get_language,
    is_supported,
    list_supported_languages,
    normalize_language,
    resolve_voice_profile,
)
from voice_commerce.core.messages import MESSAGES, MessageCatalog, catalog as default_catalog


def test_registry_lists_fifteen_locales_with_voice_profiles() -> None:
    languages = list_supported_languages()

    assert len(languages) == 15
    assert {lang["code"] for lang in languages} == set(SUPPORTED_LANGUAGES)
    assert all(lang["voiceProfileId"] for lang in languages)


def test_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        SUPPORTED_LANGUAGES["xx-XX"] = SUPPORTED_LANGUAGES["hi-IN"]  # type: ignore[index]


@pytest.mark.parametrize(
    "code, expected",
    [
        ("hi-IN", "hi-IN"),
        ("hi", "hi-IN"),
        ("HI_in", "hi-IN"),
        ("ta", "ta-IN"),
        ("en-US", "en-IN"),
        ("xx-YY", DEFAULT_LANGUAGE),
        (None, DEFAULT_LANGUAGE),
        ("", DEFAULT_LANGUAGE),
    ],
)
def test_normalize_language(code, expected) -> None:
    assert normalize_language(code) == expected


def test_unknown_language_fails_closed_to_default_voice() -> None:
    assert not is_supported("xx")
    assert get_language("xx").code == DEFAULT_LANGUAGE
    assert resolve_voice_profile("xx") == SUPPORTED_LANGUAGES[DEFAULT_LANGUAGE].voice
    assert resolve_voice_profile("bn") == "bn-IN-TanishaaNeural"


def test_render_substitutes_parameters() -> None:
    text = default_catalog.render("product_created_success", "en-IN", {"productName": "Blue Pottery Vase"})
    assert text == "Excellent! Blue Pottery Vase has been created successfully."


def test_render_leaves_unknown_placeholders_alone() -> None:
    text = default_catalog.render("product_created_success", "en-IN")
    assert "{productName}" in text


def test_unregistered_locale_uses_default_template() -> None:
    text = default_catalog.render("did_not_understand", "fr-FR")
    assert text == MESSAGES[DEFAULT_LANGUAGE]["did_not_understand"]


def test_partial_locale_falls_back_per_key() -> None:
    # Bengali has the prompts but not the listing templates
    assert default_catalog.render("ask_product_name", "bn-IN") == MESSAGES["bn-IN"]["ask_product_name"]
    assert default_catalog.render("help", "bn-IN") == MESSAGES[DEFAULT_LANGUAGE]["help"]


def test_missing_key_renders_as_key() -> None:
    assert default_catalog.render("no_such_message", "hi-IN") == "no_such_message"


def test_key_only_in_non_default_locale_is_still_found() -> None:
    messages = {"hi-IN": {"help": "मदद"}, "en-IN": {"only_english": "English only"}}
    catalog = MessageCatalog(messages, default_language="hi-IN")

    assert catalog.render("only_english", "ta-IN") == "English only"
    assert catalog.render("help", "hi") == "मदद"
