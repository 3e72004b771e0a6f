from src.quran_portal.quran_portal.common.phone import format_direct_phone, format_sms_phone, unique_phones, with_plus


def test_format_sms_phone_defaults_to_us_prefix():
    assert format_sms_phone("(555) 123-4567") == "+15551234567"
    assert format_sms_phone("+44 20 7946 0958") == "+442079460958"


def test_format_sms_phone_rejects_short_and_empty():
    assert format_sms_phone("12345") is None
    assert format_sms_phone("") is None
    assert format_sms_phone(None) is None


def test_format_direct_phone_accepts_only_north_american_numbers():
    assert format_direct_phone("555-123-4567") == "+15551234567"
    assert format_direct_phone("1 555 123 4567") == "+15551234567"
    assert format_direct_phone("+44 20 7946 0958") is None


def test_with_plus_and_unique_phones():
    assert with_plus(" 15551234567 ") == "+15551234567"
    assert with_plus("+15551234567") == "+15551234567"
    assert unique_phones(["+1555", None, " +1555 ", "", "+1666"]) == ["+1555", "+1666"]
