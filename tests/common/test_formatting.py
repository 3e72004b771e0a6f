import pytest

from src.quran_portal.quran_portal.common.formatting import (
    class_context_label,
    clean_sms_verses,
    clean_verse_reference,
    format_lesson_display,
    parse_verse_range,
    render_template,
    to_arabic_numerals,
)
from src.quran_portal.quran_portal.core.exceptions import ValidationError


def test_render_template_fills_known_placeholders_and_keeps_unknown():
    text = render_template("{{school_name}}: {{ student_name }} {{missing}}", {"school_name": "Academy", "student_name": "Aisha"})

    assert text == "Academy: Aisha {{missing}}"


def test_render_template_handles_empty_template():
    assert render_template("", {"a": 1}) == ""


@pytest.mark.parametrize(
    "surah,verses,expected",
    [
        (None, "1-5", "Not set"),
        ("Al-Baqarah", "1-5", "Al-Baqarah: 1-5"),
        ("Al-Mulk", "7", "Al-Mulk:7"),
        ("Lesson 1-4", "n/a", "Lesson 1-4"),
        ("Page 3", "n/a", "Page 3"),
        ("Al-Baqarah (2) - Al-Imran (3)", "full", "Al-Baqarah (2) - Al-Imran (3)"),
    ],
)
def test_format_lesson_display(surah, verses, expected):
    assert format_lesson_display(surah, verses) == expected


def test_clean_verse_reference_normalizes_spacing():
    assert clean_verse_reference("Al-Kahf : v1 - v7") == "Al-Kahf: 1-7"


def test_clean_sms_verses_strips_surah_prefixes():
    assert clean_sms_verses("Aal 1-Aal 40") == "1-40"
    assert clean_sms_verses("1 - 10") == "1-10"
    assert clean_sms_verses(None) == ""


def test_parse_verse_range():
    assert parse_verse_range("1-10") == (1, 10)
    assert parse_verse_range("7") == (7, 7)

    with pytest.raises(ValidationError):
        parse_verse_range("10-1")
    with pytest.raises(ValidationError):
        parse_verse_range("abc")


@pytest.mark.parametrize(
    "name,label",
    [
        ("Saturday Hifz", "Quran"),
        ("Sunday Juniors", "Quran"),
        ("Tuesday Girls", "Tuesday class"),
        ("Evening Adults", "class"),
        (None, "class"),
    ],
)
def test_class_context_label(name, label):
    assert class_context_label(name) == label


def test_to_arabic_numerals():
    assert to_arabic_numerals(114) == "١١٤"
    assert to_arabic_numerals(None) == ""
