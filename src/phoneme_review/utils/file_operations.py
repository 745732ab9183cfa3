"""File operations for the phoneme review pipeline.

This module reads transcription documents and audio files from disk,
validates their types and writes evaluation exports.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import orjson as json
from loguru import logger

from phoneme_review.constants import (
    AUDIO_EXTENSIONS,
    DEFAULT_AUDIO_CONTENT_TYPE,
    DEFAULT_AUDIO_EXTENSION,
    DOCUMENT_CONTENT_TYPE,
    DOCUMENT_EXTENSION,
)
from phoneme_review.exceptions import DocumentError, DocumentParseError, InvalidFileTypeError

EXTENSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"\.([a-zA-Z0-9]+)$")

_AUDIO_CONTENT_TYPES: Final[dict[str, str]] = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "flac": "audio/flac",
}


@dataclass(frozen=True)
class AudioFile:
    """Audio payload selected for upload.

    Attributes:
        name: Original file name.
        data: File content.
        content_type: Declared MIME type, empty when unknown.
    """

    name: str
    data: bytes
    content_type: str = ""

    @property
    def extension(self) -> str:
        return file_extension(self.name) or DEFAULT_AUDIO_EXTENSION

    @property
    def upload_content_type(self) -> str:
        return self.content_type or DEFAULT_AUDIO_CONTENT_TYPE


def file_extension(filename: str) -> str | None:
    """Lowercased trailing alphanumeric extension, None when absent."""
    match = EXTENSION_PATTERN.search(filename)
    return match.group(1).lower() if match else None


def is_document_file(filename: str, content_type: str | None = None) -> bool:
    return content_type == DOCUMENT_CONTENT_TYPE or filename.lower().endswith(DOCUMENT_EXTENSION)


def is_audio_file(filename: str, content_type: str | None = None) -> bool:
    if content_type and content_type.startswith("audio/"):
        return True
    return file_extension(filename) in AUDIO_EXTENSIONS


def parse_document(data: bytes | str) -> Any:
    """Parse JSON content of a transcription document.

    Raises:
        DocumentParseError: If the content is not valid JSON.
    """
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise DocumentParseError(msg=f"Error parsing JSON file: {e}") from e


def load_document_file(path: str | Path, *, content_type: str | None = None) -> Any:
    """Read and parse a transcription document from disk.

    Args:
        path: Path to the JSON document.
        content_type: Declared MIME type, when known.

    Returns:
        The parsed document.

    Raises:
        InvalidFileTypeError: If the file is not a JSON document.
        DocumentError: If the file cannot be read.
        DocumentParseError: If the content is not valid JSON.
    """
    document_path = Path(path)
    if not is_document_file(document_path.name, content_type):
        raise InvalidFileTypeError(filename=document_path.name, expected="JSON")

    try:
        data = document_path.read_bytes()
    except OSError as e:
        raise DocumentError(msg=f"Cannot read {document_path}: {e}") from e

    document = parse_document(data)
    logger.debug(f"Loaded document {document_path.name} ({len(data)} bytes)")
    return document


def read_audio_file(path: str | Path, *, content_type: str | None = None) -> AudioFile:
    """Read an audio file from disk after validating its type.

    Raises:
        InvalidFileTypeError: If the file is not audio.
        DocumentError: If the file cannot be read.
    """
    audio_path = Path(path)
    if not is_audio_file(audio_path.name, content_type):
        raise InvalidFileTypeError(filename=audio_path.name, expected="audio")

    try:
        data = audio_path.read_bytes()
    except OSError as e:
        raise DocumentError(msg=f"Cannot read {audio_path}: {e}") from e

    extension = file_extension(audio_path.name) or ""
    resolved_type = content_type or _AUDIO_CONTENT_TYPES.get(extension, "")
    return AudioFile(name=audio_path.name, data=data, content_type=resolved_type)


class FileExportSink:
    """Writes export documents as indented JSON into a directory."""

    def __init__(self, *, output_dir: str | Path) -> None:
        self._output_dir = Path(output_dir)

    def write(self, *, document: dict[str, Any], filename: str) -> str:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self._output_dir / filename
        output_path.write_bytes(json.dumps(document, option=json.OPT_INDENT_2))
        logger.info(f"Exported {len(document.get('evaluations', []))} evaluations to {output_path}")
        return str(output_path)
