"""Chat transcript export and import.

A transcript is a JSON array of ``{id, sender, text, imageUrl?}`` objects,
one per chat message, in log order. Imports are all-or-nothing: a single
malformed element rejects the whole file.
"""

import json
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from ..errors import TranscriptFormatError
from .models import ChatMessage

REQUIRED_KEYS = ("id", "sender", "text")


def default_filename(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return f"modelverse-chat-{stamp}.json"


def dumps(messages: Iterable[ChatMessage]) -> str:
    """Serialize messages to a transcript string."""
    return json.dumps(
        [message.to_export_dict() for message in messages],
        indent=2,
        ensure_ascii=False,
    )


def loads(raw: str | bytes) -> list[ChatMessage]:
    """Parse and validate a transcript.

    Raises:
        TranscriptFormatError: If the content is not valid JSON, not an array,
            any element does not have the message shape, or an id repeats
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TranscriptFormatError(f"Transcript is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise TranscriptFormatError("Transcript must be a JSON array of messages")

    messages = []
    seen_ids = set()
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise TranscriptFormatError(f"Message {index} is not an object")
        missing = [key for key in REQUIRED_KEYS if key not in item]
        if missing:
            raise TranscriptFormatError(f"Message {index} is missing {', '.join(missing)}")
        try:
            message = ChatMessage.model_validate(item)
        except ValidationError as e:
            raise TranscriptFormatError(f"Message {index} is invalid: {e.errors()[0]['msg']}") from e
        if message.id in seen_ids:
            raise TranscriptFormatError(f"Message {index} repeats id {message.id!r}")
        seen_ids.add(message.id)
        messages.append(message)
    return messages


def save(messages: Iterable[ChatMessage], path: str | Path) -> Path:
    """Write a transcript file, creating parent directories as needed."""
    file_path = Path(path).expanduser()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(dumps(messages), encoding="utf-8")
    return file_path


def load(path: str | Path) -> list[ChatMessage]:
    """Read and validate a transcript file.

    Raises:
        TranscriptFormatError: If the file is missing or malformed
    """
    file_path = Path(path).expanduser()
    try:
        raw = file_path.read_bytes()
    except OSError as e:
        raise TranscriptFormatError(f"Cannot read {file_path}: {e}") from e
    return loads(raw)
