"""
Phone number normalization.

Contacts store phone numbers digits-only so that lead-form numbers
("908-244-8429", "(908) 244-8429") and carrier numbers ("+19082448429")
resolve to the same contact.
"""
import re

_NON_DIGITS = re.compile(r"\D")


def normalize_phone_number(phone: str) -> str:
    """
    Strip formatting and the US country code.

    11 digits with a leading 1 become 10 digits; anything else (10-digit US,
    international, invalid) is returned as bare digits.
    """
    if not phone:
        return ""
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:]
    return digits


def phone_search_variants(phone: str) -> list[str]:
    """Values to match against the stored phone column."""
    normalized = normalize_phone_number(phone)
    return [normalized] if normalized else []


def to_e164(phone: str) -> str:
    """Render a stored number in the format the carrier expects."""
    if phone and phone.startswith("+"):
        return "+" + _NON_DIGITS.sub("", phone)
    digits = normalize_phone_number(phone)
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}" if digits else ""
