"""Tests for destination masking."""

import pytest

from cqrs_ddd_verification.domain.enums import Channel
from cqrs_ddd_verification.masking import mask_destination, mask_email, mask_phone


@pytest.mark.parametrize(
    ("phone", "masked"),
    [
        ("+254712345678", "********5678"),
        ("0712 345 678", "******5678"),
        ("(555) 010-9999", "******9999"),
        ("12345", "*2345"),
        ("1234", "****"),
        ("", "****"),
    ],
)
def test_mask_phone(phone, masked):
    assert mask_phone(phone) == masked


@pytest.mark.parametrize(
    ("email", "masked"),
    [
        ("johndoe@example.com", "jo****e@example.com"),
        ("jane@example.com", "ja****e@example.com"),
        ("bob@example.com", "b****@example.com"),
        ("a@example.com", "a****@example.com"),
        ("first.last@mail.co.uk", "fi****t@mail.co.uk"),
    ],
)
def test_mask_email(email, masked):
    assert mask_email(email) == masked


@pytest.mark.parametrize("email", ["not-an-email", "@example.com", "john@", ""])
def test_mask_email_malformed(email):
    assert mask_email(email) == "****"


def test_mask_destination_by_channel():
    assert mask_destination(Channel.SMS, "+254712345678") == "********5678"
    assert mask_destination(Channel.WHATSAPP, "+254712345678") == "********5678"
    assert mask_destination(Channel.EMAIL, "johndoe@example.com") == "jo****e@example.com"


def test_masked_phone_never_contains_leading_digits():
    masked = mask_phone("+254712345678")

    assert "254" not in masked
    assert masked.endswith("5678")
