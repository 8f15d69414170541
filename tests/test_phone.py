from backend.models import Contact
from backend.services.phone import normalize_phone_number, phone_search_variants, to_e164


def test_lead_form_and_carrier_formats_share_a_key():
    assert normalize_phone_number("908-244-8429") == "9082448429"
    assert normalize_phone_number("+19082448429") == "9082448429"


def test_other_us_formats():
    assert normalize_phone_number("(908) 244-8429") == "9082448429"
    assert normalize_phone_number("19082448429") == "9082448429"
    assert normalize_phone_number("9082448429") == "9082448429"


def test_empty_and_international_numbers():
    assert normalize_phone_number("") == ""
    assert normalize_phone_number(None) == ""
    assert normalize_phone_number("+44 20 7183 8750") == "442071838750"
    assert phone_search_variants("") == []


def test_to_e164():
    assert to_e164("9082448429") == "+19082448429"
    assert to_e164("908-244-8429") == "+19082448429"
    assert to_e164("+442071838750") == "+442071838750"
    assert to_e164("") == ""


def test_contact_phone_is_normalized_on_assignment():
    contact = Contact(name="Lead", phone="+1 (908) 244-8429")
    assert contact.phone == "9082448429"
