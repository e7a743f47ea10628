import pytest

from src.media.color import parse_hex_color
from src.specs.common.errors import ColorParseError


def test_six_digits_are_opaque():
    assert parse_hex_color("FF0000") == (255, 0, 0, 255)


def test_eight_digits_carry_alpha():
    assert parse_hex_color("00FF0080") == (0, 255, 0, 128)


def test_case_insensitive():
    assert parse_hex_color("abcdef") == parse_hex_color("ABCDEF") == (0xAB, 0xCD, 0xEF, 255)


@pytest.mark.parametrize("text", ["ABC", "", "#FF0000", "FF00000", "FF0000FF00"])
def test_wrong_length_is_rejected(text):
    with pytest.raises(ColorParseError, match="Only hex colors accepted"):
        parse_hex_color(text)


@pytest.mark.parametrize("text", ["GGGGGG", "+F0000", " F0000", "12_456", "00FF00ZZ"])
def test_non_hex_digits_are_rejected(text):
    with pytest.raises(ColorParseError, match="invalid digit"):
        parse_hex_color(text)
