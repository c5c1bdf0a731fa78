"""Unit tests for data URI helpers."""
import pytest

from modelverse.datauri import (
    describe_data_uri,
    file_to_data_uri,
    is_data_uri,
    parse_data_uri,
    to_data_uri,
)


def test_encode_and_parse():
    uri = to_data_uri(b"\x01\x02\x03", "image/webp")

    assert uri == "data:image/webp;base64,AQID"
    assert parse_data_uri(uri) == ("image/webp", b"\x01\x02\x03")


@pytest.mark.parametrize("value", [
    "https://example.com/cat.png",
    "data:image/png,rawdata",
    "data:;base64,AAAA",
])
def test_not_a_base64_data_uri(value):
    assert not is_data_uri(value)
    with pytest.raises(ValueError):
        parse_data_uri(value)


def test_invalid_payload():
    with pytest.raises(ValueError, match="Invalid base64"):
        parse_data_uri("data:image/png;base64,@@@@")


class TestFileToDataUri:
    """Tests for reading image attachments from disk."""

    def test_png_file(self, tmp_path):
        image = tmp_path / "pixel.png"
        image.write_bytes(b"\x89PNG data")

        uri = file_to_data_uri(image)

        assert uri.startswith("data:image/png;base64,")
        assert parse_data_uri(uri)[1] == b"\x89PNG data"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            file_to_data_uri(tmp_path / "nope.png")

    def test_not_an_image(self, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")

        with pytest.raises(ValueError, match="Not an image"):
            file_to_data_uri(notes)

    def test_too_large(self, tmp_path):
        image = tmp_path / "big.jpg"
        image.write_bytes(b"\xff" * 64)

        with pytest.raises(ValueError, match="too large"):
            file_to_data_uri(image, max_bytes=16)


def test_describe():
    assert describe_data_uri(to_data_uri(b"\x00" * 2048, "image/png")) == "image/png, 2.0 KB"
    assert describe_data_uri("https://example.com/cat.png") == "attachment"
