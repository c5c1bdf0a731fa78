"""Data URI helpers for image attachments.

Hides the encoding used to carry images inline with chat messages:
'data:<mimetype>;base64,<encoded_data>'.
"""

import base64
import binascii
import mimetypes
import re
from pathlib import Path

MAX_IMAGE_BYTES = 10 * 1024 * 1024

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URI."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def file_to_data_uri(path: str | Path, max_bytes: int = MAX_IMAGE_BYTES) -> str:
    """Read an image file and return it as a data URI.

    Args:
        path: Image file to read
        max_bytes: Largest accepted file size

    Returns:
        Data URI with the MIME type guessed from the file extension

    Raises:
        ValueError: If the file is missing, too large, or not an image
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise ValueError(f"Image file not found: {file_path}")

    mime_type, _ = mimetypes.guess_type(file_path.name)
    if not mime_type or not mime_type.startswith("image/"):
        raise ValueError(f"Not an image file: {file_path.name}")

    size = file_path.stat().st_size
    if size > max_bytes:
        raise ValueError(
            f"Image is too large ({size / 1024 / 1024:.1f} MB, "
            f"limit {max_bytes / 1024 / 1024:.0f} MB)"
        )

    return to_data_uri(file_path.read_bytes(), mime_type)


def is_data_uri(value: str) -> bool:
    return bool(_DATA_URI_RE.match(value))


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into its MIME type and decoded bytes.

    Raises:
        ValueError: If the URI is not a base64 data URI
    """
    match = _DATA_URI_RE.match(uri)
    if match is None:
        raise ValueError("Expected a base64 data URI ('data:<mimetype>;base64,...')")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload in data URI: {e}") from e
    return match.group("mime"), data


def describe_data_uri(uri: str) -> str:
    """Short human-readable label, e.g. 'image/png, 12.3 KB'."""
    match = _DATA_URI_RE.match(uri)
    if match is None:
        return "attachment"
    payload = match.group("data")
    # base64 expands 3 bytes into 4 characters
    size = len(payload) * 3 // 4 - payload.count("=", -2)
    if size >= 1024 * 1024:
        size_text = f"{size / 1024 / 1024:.1f} MB"
    else:
        size_text = f"{size / 1024:.1f} KB"
    return f"{match.group('mime')}, {size_text}"
