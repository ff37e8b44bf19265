import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import lead_format


def test_ten_digit_numbers_get_us_country_code():
    rng = random.Random(7)
    for _ in range(200):
        digits = "".join(rng.choice("0123456789") for _ in range(10))
        assert lead_format.to_e164(digits) == "+1" + digits


def test_eleven_digit_numbers_starting_with_one_keep_their_digits():
    rng = random.Random(11)
    for _ in range(200):
        digits = "1" + "".join(rng.choice("0123456789") for _ in range(10))
        assert lead_format.to_e164(digits) == "+" + digits


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("(607) 555-1234", "+16075551234"),
        ("607.555.1234", "+16075551234"),
        ("+1 607 555 1234", "+16075551234"),
        ("1-607-555-1234", "+16075551234"),
        ("555-1234", "+15551234"),
        ("44 20 7946 0958", "+1442079460958"),
    ],
)
def test_to_e164_formats(raw, expected):
    assert lead_format.to_e164(raw) == expected


def test_split_name_keeps_first_token_and_joins_the_rest():
    assert lead_format.split_name("Mary Ann  van der Berg") == ("Mary", "Ann van der Berg")
    assert lead_format.split_name("  Jane ") == ("Jane", "")
    assert lead_format.split_name("") == ("", "")


def test_clean_email_trims_and_lowercases():
    assert lead_format.clean_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"


def test_field_checks():
    assert lead_format.valid_name("Al")
    assert not lead_format.valid_name(" J ")

    assert lead_format.valid_email("jane@x.com")
    assert not lead_format.valid_email("jane@x")
    assert not lead_format.valid_email("jane doe@x.com")

    assert lead_format.valid_phone("(607) 555-1234")
    assert lead_format.valid_phone("+1 607 555 1234")
    assert not lead_format.valid_phone("555-1234")
    assert not lead_format.valid_phone("call me 6075551234")

    assert lead_format.valid_zip("13901")
    assert not lead_format.valid_zip("1390")
    assert not lead_format.valid_zip("13901-1234")
