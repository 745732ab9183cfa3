"""Test suite for document, audio and export file operations."""

from pathlib import Path

import orjson
import pytest

from phoneme_review.exceptions import DocumentParseError, InvalidFileTypeError
from phoneme_review.utils.file_operations import (
    AudioFile,
    FileExportSink,
    file_extension,
    is_audio_file,
    is_document_file,
    load_document_file,
    parse_document,
    read_audio_file,
)


@pytest.mark.unit
class TestTypeChecks:
    """Test cases for file type checks."""

    @pytest.mark.parametrize(
        "name,expected", [("a.MP3", "mp3"), ("a.b.flac", "flac"), ("noext", None), ("a.", None)]
    )
    def test_file_extension(self, name: str, expected: str | None) -> None:
        """Test extension parsing."""
        assert file_extension(name) == expected

    def test_document_by_extension_or_type(self) -> None:
        """Test that JSON is accepted by extension or content type."""
        assert is_document_file("result.JSON")
        assert is_document_file("result", "application/json")
        assert not is_document_file("result.txt", "text/plain")

    def test_audio_by_extension_or_type(self) -> None:
        """Test that audio is accepted by extension or content type."""
        assert is_audio_file("clip.wav")
        assert is_audio_file("clip", "audio/webm")
        assert not is_audio_file("clip.txt", "text/plain")

    def test_audio_defaults(self) -> None:
        """Test extension and content type fallbacks for upload."""
        audio = AudioFile(name="recording", data=b"")
        assert audio.extension == "mp3"
        assert audio.upload_content_type == "audio/mpeg"


@pytest.mark.unit
class TestDocuments:
    """Test cases for document loading."""

    def test_load_document(self, tmp_path: Path) -> None:
        """Test loading a JSON document."""
        path = tmp_path / "doc.json"
        path.write_bytes(orjson.dumps({"text": "ciao"}))
        assert load_document_file(path) == {"text": "ciao"}

    def test_wrong_extension(self, tmp_path: Path) -> None:
        """Test that non-JSON files are rejected before reading."""
        path = tmp_path / "doc.txt"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(InvalidFileTypeError, match="doc.txt"):
            load_document_file(path)

    def test_content_type_allows_other_names(self, tmp_path: Path) -> None:
        """Test that the JSON content type accepts any file name."""
        path = tmp_path / "payload"
        path.write_text('{"a": 1}', encoding="utf-8")
        assert load_document_file(path, content_type="application/json") == {"a": 1}

    def test_invalid_json(self) -> None:
        """Test that invalid JSON raises DocumentParseError."""
        with pytest.raises(DocumentParseError):
            parse_document(b"{not json")


@pytest.mark.unit
class TestAudio:
    """Test cases for audio reading."""

    def test_read_audio(self, tmp_path: Path) -> None:
        """Test reading audio with an inferred content type."""
        path = tmp_path / "clip.wav"
        path.write_bytes(b"RIFF")
        audio = read_audio_file(path)

        assert audio.name == "clip.wav"
        assert audio.data == b"RIFF"
        assert audio.content_type == "audio/wav"

    def test_reject_non_audio(self, tmp_path: Path) -> None:
        """Test that non-audio files are rejected."""
        path = tmp_path / "notes.txt"
        path.write_text("x", encoding="utf-8")
        with pytest.raises(InvalidFileTypeError):
            read_audio_file(path)


@pytest.mark.unit
class TestFileExportSink:
    """Test cases for FileExportSink."""

    def test_write(self, tmp_path: Path) -> None:
        """Test that the export is written as JSON under the given name."""
        sink = FileExportSink(output_dir=tmp_path / "exports")
        written = sink.write(document={"evaluations": []}, filename="out.json")

        assert Path(written) == tmp_path / "exports" / "out.json"
        assert orjson.loads(Path(written).read_bytes()) == {"evaluations": []}
