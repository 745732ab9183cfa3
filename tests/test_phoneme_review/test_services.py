"""Test suite for the upload and transcription API clients."""

import asyncio
from unittest.mock import AsyncMock

import aiohttp
import orjson
import pytest

from phoneme_review.config import ServiceConfig
from phoneme_review.exceptions import (
    JobFailedError,
    MissingResultError,
    TranscriptionError,
    TransportError,
    UploadError,
)
from phoneme_review.services.transcription import (
    JobState,
    JobStatus,
    TranscriptionClient,
    interpret_job_status,
)
from phoneme_review.services.upload import UploadClient, UploadTarget

ENDPOINT = "https://api.example.test"


@pytest.fixture
def service_config() -> ServiceConfig:
    """Create a service configuration with a trailing slash endpoint."""
    return ServiceConfig(api_endpoint=f"{ENDPOINT}/")


def _response(payload: object, status: int = 200) -> tuple[int, bytes]:
    return status, orjson.dumps(payload)


@pytest.mark.unit
class TestApiClient:
    """Test cases for the shared request plumbing."""

    def test_endpoint_normalized(self, service_config: ServiceConfig) -> None:
        """Test that the endpoint setter strips trailing slashes."""
        client = UploadClient(config=service_config)
        assert client.endpoint == ENDPOINT

        client.endpoint = "  https://other.test/v1/ "
        assert client.endpoint == "https://other.test/v1"

    @pytest.mark.asyncio
    async def test_non_success_status(self, service_config: ServiceConfig) -> None:
        """Test that a non-2xx response raises TransportError with the status."""
        client = TranscriptionClient(config=service_config)
        client._make_request = AsyncMock(return_value=(503, b"unavailable"))

        with pytest.raises(TransportError, match=r"API error \(503\)") as exc_info:
            await client.submit(bucket="b", key="k", language="it")

        assert exc_info.value.status == 503
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()]
    )
    async def test_network_error_is_retryable(
        self, service_config: ServiceConfig, error: Exception
    ) -> None:
        """Test that network failures surface as retryable TransportError."""
        client = TranscriptionClient(config=service_config)
        client._make_request = AsyncMock(side_effect=error)

        with pytest.raises(TransportError) as exc_info:
            await client.poll_status("job-1")

        assert exc_info.value.retryable
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]"])
    async def test_unusable_body(self, service_config: ServiceConfig, body: bytes) -> None:
        """Test that non-object bodies raise TransportError."""
        client = TranscriptionClient(config=service_config)
        client._make_request = AsyncMock(return_value=(200, body))

        with pytest.raises(TransportError):
            await client.poll_status("job-1")

    @pytest.mark.asyncio
    async def test_close_keeps_shared_session(self, service_config: ServiceConfig) -> None:
        """Test that a provided session is not closed by the client."""
        session = AsyncMock(spec=aiohttp.ClientSession)
        client = UploadClient(config=service_config, session=session)

        await client.close()

        session.close.assert_not_awaited()


@pytest.mark.unit
class TestUploadClient:
    """Test cases for UploadClient."""

    @pytest.mark.asyncio
    async def test_request_upload_target(self, service_config: ServiceConfig) -> None:
        """Test the presigned URL request and response mapping."""
        client = UploadClient(config=service_config)
        client._make_request = AsyncMock(
            return_value=_response(
                {"uploadUrl": "https://s3.test/put", "s3Bucket": "bkt", "s3Key": "uploads/a.wav"}
            )
        )

        target = await client.request_upload_target(extension="wav", content_type="audio/wav")

        assert target == UploadTarget(
            upload_url="https://s3.test/put", bucket="bkt", key="uploads/a.wav"
        )
        kwargs = client._make_request.await_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == f"{ENDPOINT}/uploads/url"
        assert orjson.loads(kwargs["data"]) == {"extension": "wav", "contentType": "audio/wav"}
        assert kwargs["headers"] == {"Content-Type": "application/json"}

    @pytest.mark.asyncio
    async def test_incomplete_upload_target(self, service_config: ServiceConfig) -> None:
        """Test that a response without a key raises UploadError."""
        client = UploadClient(config=service_config)
        client._make_request = AsyncMock(
            return_value=_response({"uploadUrl": "https://s3.test/put", "s3Bucket": "bkt"})
        )

        with pytest.raises(UploadError, match="presigned upload data missing"):
            await client.request_upload_target(extension="mp3", content_type="audio/mpeg")

    @pytest.mark.asyncio
    async def test_put(self, service_config: ServiceConfig) -> None:
        """Test that the file is PUT with its content type."""
        client = UploadClient(config=service_config)
        client._make_request = AsyncMock(return_value=(200, b""))

        await client.put(upload_url="https://s3.test/put", data=b"abc", content_type="audio/ogg")

        client._make_request.assert_awaited_once_with(
            method="PUT",
            url="https://s3.test/put",
            data=b"abc",
            headers={"Content-Type": "audio/ogg"},
        )

    @pytest.mark.asyncio
    async def test_put_rejected(self, service_config: ServiceConfig) -> None:
        """Test that a rejected upload raises TransportError."""
        client = UploadClient(config=service_config)
        client._make_request = AsyncMock(return_value=(403, b"denied"))

        with pytest.raises(TransportError):
            await client.put(upload_url="https://s3.test/put", data=b"", content_type="audio/ogg")


@pytest.mark.unit
class TestTranscriptionClient:
    """Test cases for TranscriptionClient."""

    @pytest.mark.asyncio
    async def test_submit(self, service_config: ServiceConfig) -> None:
        """Test job submission payload and job id."""
        client = TranscriptionClient(config=service_config)
        client._make_request = AsyncMock(return_value=_response({"jobId": "j1"}))

        job_id = await client.submit(bucket="bkt", key="uploads/a.wav", language="it")

        assert job_id == "j1"
        kwargs = client._make_request.await_args.kwargs
        assert kwargs["url"] == f"{ENDPOINT}/transcriptions"
        assert orjson.loads(kwargs["data"]) == {
            "s3Bucket": "bkt",
            "s3Key": "uploads/a.wav",
            "language": "it",
        }

    @pytest.mark.asyncio
    async def test_submit_without_job_id(self, service_config: ServiceConfig) -> None:
        """Test that a response without jobId raises TranscriptionError."""
        client = TranscriptionClient(config=service_config)
        client._make_request = AsyncMock(return_value=_response({"status": "QUEUED"}))

        with pytest.raises(TranscriptionError, match="jobId missing"):
            await client.submit(bucket="bkt", key="k", language="it")

    @pytest.mark.asyncio
    async def test_poll_status(self, service_config: ServiceConfig) -> None:
        """Test that the status is fetched with GET and uppercased."""
        client = TranscriptionClient(config=service_config)
        client._make_request = AsyncMock(return_value=_response({"status": "processing"}))

        status = await client.poll_status("j1")

        assert status.status == "PROCESSING"
        kwargs = client._make_request.await_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == f"{ENDPOINT}/transcriptions/j1"
        assert kwargs["data"] is None


@pytest.mark.unit
class TestInterpretJobStatus:
    """Test cases for interpret_job_status."""

    def test_done_with_result(self) -> None:
        """Test that the wrapped result is preferred."""
        result = {"text": "ciao"}
        outcome = interpret_job_status(
            JobStatus.from_payload({"status": "done", "result": result, "text": "other"})
        )

        assert outcome.is_done
        assert outcome.document == result

    def test_done_with_inline_fields(self) -> None:
        """Test that a payload carrying transcription fields is used as the document."""
        payload = {"status": "DONE", "word_segments": [{"word": "ciao"}]}
        outcome = interpret_job_status(JobStatus.from_payload(payload))

        assert outcome.document == payload

    def test_done_without_result(self) -> None:
        """Test that DONE without any result raises MissingResultError."""
        with pytest.raises(MissingResultError, match="result not available"):
            interpret_job_status(JobStatus.from_payload({"status": "DONE", "text": ""}))

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"status": "FAILED", "error": "bad audio"}, "bad audio"),
            ({"status": "error"}, "The transcription failed."),
        ],
    )
    def test_failure(self, payload: dict, message: str) -> None:
        """Test that failures raise JobFailedError with the remote message."""
        with pytest.raises(JobFailedError, match=message):
            interpret_job_status(JobStatus.from_payload(payload))

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("PROCESSING", JobState.PROCESSING),
            ("PENDING", JobState.PENDING),
            ("QUEUED", JobState.PENDING),
            (None, JobState.PENDING),
        ],
    )
    def test_non_terminal(self, status: str | None, expected: JobState) -> None:
        """Test that unknown statuses are treated as pending."""
        outcome = interpret_job_status(JobStatus.from_payload({"status": status}))

        assert outcome.state is expected
        assert outcome.document is None
