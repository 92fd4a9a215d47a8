"""Tests for trimming localized record payloads."""

from datocms_mcp.tools.locales import dominant_locale, most_populated_locale, only_ids


def test_dominant_locale_counts_non_empty_values():
    record = {
        "id": "1",
        "title": {"en": "Hello", "it": "Ciao"},
        "body": {"en": "", "it": "Testo"},
        "tags": {"en": [], "it": ["a"]},
    }
    assert dominant_locale(record) == "it"


def test_ties_go_to_first_locale_seen():
    assert dominant_locale({"title": {"en": "Hello", "de": "Hallo"}}) == "en"


def test_no_localized_values():
    record = {"id": "1", "type": "item", "slug": "hello"}
    assert dominant_locale(record) is None
    assert most_populated_locale(record) == record


def test_trimming_is_recursive():
    records = [
        {
            "id": "1",
            "type": "item",
            "title": {"en": "Hello", "pt-BR": "Olá"},
            "blocks": [{"type": "item", "caption": {"en": "Cap", "pt-BR": ""}}],
        }
    ]

    assert most_populated_locale(records) == [
        {"id": "1", "type": "item", "title": "Hello", "blocks": [{"type": "item", "caption": "Cap"}]}
    ]


def test_keep_all_locales():
    record = {"type": "item", "title": {"en": "Hello", "it": "Ciao"}}
    assert most_populated_locale(record, keep_all_locales=True) is record


def test_only_ids():
    assert only_ids([{"id": "1"}, {"id": "2"}]) == ["1", "2"]
