"""Transcription job submission and status interpretation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Final

from loguru import logger

from phoneme_review.exceptions import JobFailedError, MissingResultError, TranscriptionError
from phoneme_review.services.api import ApiClient

INLINE_RESULT_KEYS: Final[tuple[str, ...]] = ("text", "word_segments", "segments")


class JobState(StrEnum):
    """Non-terminal and successful states of a remote job."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"


@dataclass(frozen=True)
class JobStatus:
    """Status payload of a remote job.

    Attributes:
        status: Uppercased status string.
        result: Wrapped result, when the payload carries one.
        error: Remote error text, when the payload carries one.
        payload: The complete payload.
    """

    status: str
    result: Any = None
    error: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "JobStatus":
        status = payload.get("status")
        error = payload.get("error")
        return cls(
            status=str(status or "").upper(),
            result=payload.get("result"),
            error=str(error) if error else None,
            payload=dict(payload),
        )


@dataclass(frozen=True)
class JobOutcome:
    """Interpreted job status; ``document`` is set once the job is done."""

    state: JobState
    document: Any = None

    @property
    def is_done(self) -> bool:
        return self.state is JobState.DONE


def interpret_job_status(status: JobStatus) -> JobOutcome:
    """Map a job status onto the review flow.

    Args:
        status: Status reported by the service.

    Returns:
        The outcome; for DONE jobs the document to load is the wrapped
        ``result`` when present, else the payload itself when it already
        carries transcription fields.

    Raises:
        JobFailedError: If the job reports FAILED or ERROR.
        MissingResultError: If the job reports DONE without a usable result.
    """
    if status.status == "DONE":
        if status.result:
            return JobOutcome(state=JobState.DONE, document=status.result)
        if any(status.payload.get(key) for key in INLINE_RESULT_KEYS):
            return JobOutcome(state=JobState.DONE, document=status.payload)
        raise MissingResultError(msg="Transcription completed but result not available.")

    if status.status in ("FAILED", "ERROR"):
        raise JobFailedError(msg=status.error or "The transcription failed.")

    if status.status == "PROCESSING":
        return JobOutcome(state=JobState.PROCESSING)
    return JobOutcome(state=JobState.PENDING)


class TranscriptionClient(ApiClient):
    """Client for the transcription job endpoints."""

    async def submit(self, *, bucket: str, key: str, language: str) -> str:
        """Submit a transcription job for an uploaded file.

        Returns:
            The job identifier.

        Raises:
            TransportError: If the request fails.
            TranscriptionError: If the response lacks a job id.
        """
        data = await self._request_json(
            method="POST",
            url=f"{self.endpoint}/transcriptions",
            payload={"s3Bucket": bucket, "s3Key": key, "language": language},
        )
        job_id = data.get("jobId")
        if not job_id:
            raise TranscriptionError(msg="Unexpected response: jobId missing.")

        logger.info(f"Submitted transcription job {job_id} for s3://{bucket}/{key}")
        return str(job_id)

    async def poll_status(self, job_id: str) -> JobStatus:
        data = await self._request_json(
            method="GET", url=f"{self.endpoint}/transcriptions/{job_id}"
        )
        status = JobStatus.from_payload(data)
        logger.debug(f"Job {job_id} status: {status.status or '<empty>'}")
        return status
