"""
Review session orchestration.

A review session owns one loaded transcription document, its processed words
and the reviewer evaluations, plus the staged upload and transcription flow
that can produce a document from an audio file. Public operations never
raise for expected failures: each one records a status and message on the
session and reports success as a boolean.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any, Final

import orjson as json
from loguru import logger

from phoneme_review.config import ReviewConfig, get_review_config
from phoneme_review.constants import UPLOAD_KEY_PREFIX
from phoneme_review.core.processor import ProcessingResult, process_document
from phoneme_review.exceptions import ReviewError
from phoneme_review.models import (
    EvaluationStats,
    NormalizedDocument,
    PhonemeIdStrategy,
    ProcessedWord,
)
from phoneme_review.services.polling import JobPoller
from phoneme_review.services.transcription import JobOutcome, JobState, TranscriptionClient
from phoneme_review.services.upload import UploadClient
from phoneme_review.utils.file_operations import AudioFile, is_audio_file, load_document_file
from phoneme_review.views.evaluation import EvaluationBook, EvaluationStore
from phoneme_review.views.export import (
    EvaluationExport,
    ExportSink,
    build_export,
    export_filename,
    ipa_transcription,
)
from phoneme_review.views.filtering import ReviewFocus, can_mark_phoneme, unique_phonemes
from phoneme_review.views.samples import SampleSentence, transcript_matches_sample


class UploadStep(StrEnum):
    IDLE = "idle"
    REQUESTING_URL = "requesting-url"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


class TranscriptionStatus(StrEnum):
    IDLE = "idle"
    REQUESTING = "requesting"
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


UPLOAD_STEP_LABELS: Final[dict[UploadStep, str]] = {
    UploadStep.IDLE: "Waiting",
    UploadStep.REQUESTING_URL: "Requesting presigned URL",
    UploadStep.UPLOADING: "Uploading to S3",
    UploadStep.COMPLETED: "Upload completed",
    UploadStep.ERROR: "Upload error",
}

TRANSCRIPTION_STATUS_LABELS: Final[dict[TranscriptionStatus, str]] = {
    TranscriptionStatus.IDLE: "Not started",
    TranscriptionStatus.REQUESTING: "Starting transcription",
    TranscriptionStatus.PENDING: "Queued",
    TranscriptionStatus.PROCESSING: "Processing",
    TranscriptionStatus.DONE: "Completed",
    TranscriptionStatus.ERROR: "Error",
}

IN_PROGRESS_STATUSES: Final[frozenset[TranscriptionStatus]] = frozenset(
    {TranscriptionStatus.REQUESTING, TranscriptionStatus.PENDING, TranscriptionStatus.PROCESSING}
)

PROGRESS_TOTAL: Final[int] = 5


@dataclass
class StepState:
    """Status of one stage with its user-facing message and error text."""

    status: UploadStep | TranscriptionStatus
    message: str = ""
    error: str = ""


@dataclass(frozen=True)
class Progress:
    current: int
    total: int
    percentage: int


class ReviewSession:
    """Single in-memory review of one document.

    Args:
        config: Review configuration, the cached environment configuration when omitted.
        upload_client: Presigned upload collaborator.
        transcription_client: Transcription job collaborator.
    """

    def __init__(
        self,
        *,
        config: ReviewConfig | None = None,
        upload_client: UploadClient | None = None,
        transcription_client: TranscriptionClient | None = None,
    ) -> None:
        self._config = config or get_review_config()
        self._upload_client = upload_client or UploadClient(config=self._config.service)
        self._transcription_client = transcription_client or TranscriptionClient(
            config=self._config.service
        )
        self._generation = 0
        self._poller: JobPoller | None = None

        self.language = self._config.service.language
        self.focus = ReviewFocus()
        self.store = EvaluationStore()

        self.raw_document: Any = None
        self.source_name = ""
        self.document_error = ""
        self._result: ProcessingResult | None = None
        self._book: EvaluationBook | None = None

        self.audio: AudioFile | None = None
        self.audio_error = ""
        self.bucket = ""
        self.key = ""
        self.job_id: str | None = None
        self.upload = StepState(status=UploadStep.IDLE)
        self.transcription = StepState(status=TranscriptionStatus.IDLE)

    @property
    def config(self) -> ReviewConfig:
        return self._config

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def endpoint(self) -> str:
        return self._transcription_client.endpoint

    @endpoint.setter
    def endpoint(self, value: str) -> None:
        self._transcription_client.endpoint = value
        self._upload_client.endpoint = value

    # Document

    @property
    def document(self) -> NormalizedDocument:
        return self._result.document if self._result else NormalizedDocument()

    @property
    def full_text(self) -> str:
        return self.document.full_text

    @property
    def words(self) -> list[ProcessedWord]:
        return self._result.words if self._result else []

    @property
    def selected_word(self) -> ProcessedWord | None:
        index = self.focus.selected_word
        if index is None or not 0 <= index < len(self.words):
            return None
        return self.words[index]

    def load_document(self, raw: Any, *, source_name: str = "") -> bool:
        """Replace the loaded document and start a fresh evaluation store.

        An upload or transcription still in flight is abandoned so its result
        cannot overwrite this document.
        """
        if self.is_process_in_progress():
            logger.info("Abandoning in-flight job for a newly loaded document")
            self._reset_job_state()
        return self._apply_document(raw, source_name=source_name)

    def _apply_document(self, raw: Any, *, source_name: str) -> bool:
        self.raw_document = raw
        self.source_name = source_name
        self.document_error = ""
        self.store = EvaluationStore()
        self.focus.reset()
        self._run_processing()
        logger.info(
            f"Loaded document '{source_name}': {len(self.words)} words, "
            f"{sum(len(w.phonemes) for w in self.words)} phonemes"
        )
        return True

    def load_document_file(self, path: str | Path, *, content_type: str | None = None) -> bool:
        """Load a JSON document from disk.

        On failure the prior document and evaluations are kept and
        ``document_error`` describes the problem.
        """
        try:
            raw = load_document_file(path, content_type=content_type)
        except ReviewError as e:
            logger.warning(f"Document load failed: {e}")
            self.document_error = str(e)
            return False
        return self.load_document(raw, source_name=Path(path).name)

    def clear_document(self) -> None:
        self.raw_document = None
        self.source_name = ""
        self.document_error = ""
        self.store = EvaluationStore()
        self.focus.reset()
        self._result = None
        self._book = None

    def reprocess(self) -> bool:
        """Run processing again over the loaded document.

        With deterministic phoneme ids the stored evaluations are re-applied;
        with random ids they no longer match any phoneme and are cleared.
        """
        if self.raw_document is None:
            return False
        if self._config.alignment.phoneme_id_strategy is not PhonemeIdStrategy.DETERMINISTIC:
            self.store.clear()
        self.focus.selected_word = None
        self._run_processing()
        return True

    def _run_processing(self) -> None:
        self._result = process_document(self.raw_document, config=self._config.alignment)
        self._book = EvaluationBook(words=self._result.words, store=self.store)
        self._book.restore_from_store()

    def raw_document_json(self) -> str:
        if self.raw_document is None:
            return ""
        return json.dumps(self.raw_document, option=json.OPT_INDENT_2).decode("utf-8")

    def unique_phonemes(self) -> list[str]:
        return unique_phonemes(self.document)

    def ipa_transcription(self) -> str:
        return ipa_transcription(self.document)

    def shows_phonemes(self, sample: SampleSentence | None) -> bool:
        return transcript_matches_sample(self.full_text, sample)

    # Focus

    def set_filter(self, phoneme: str | None) -> None:
        self.focus.set_filter(phoneme)

    def select_word(self, index: int | None) -> None:
        self.focus.select_word(index)

    # Evaluations

    def mark_phoneme(self, phoneme_id: str, is_correct: bool) -> bool:
        """Label a phoneme; refused for non-matching phonemes under a filter."""
        if self._book is None:
            return False
        phoneme = self._book.find(phoneme_id)
        if phoneme is not None and not can_mark_phoneme(phoneme, self.focus.phoneme_filter):
            logger.debug(f"Phoneme {phoneme_id} is outside the active filter")
            return False
        return self._book.mark_phoneme(phoneme_id, is_correct)

    def clear_evaluation(self, phoneme_id: str) -> bool:
        if self._book is None:
            return False
        return self._book.clear_evaluation(phoneme_id)

    def stats(self) -> EvaluationStats:
        if self._book is None:
            return EvaluationStats()
        return self._book.stats()

    def export(self, *, now: datetime | None = None) -> EvaluationExport:
        book = self._book or EvaluationBook(words=[])
        source_name = self.audio.name if self.audio else self.source_name
        return build_export(book=book, source_name=source_name, now=now)

    def save_export(self, sink: ExportSink, *, now: datetime | None = None) -> str | None:
        """Write the export snapshot to ``sink``; None when the sink fails."""
        snapshot = self.export(now=now)
        try:
            return sink.write(document=snapshot.to_document(), filename=export_filename(now=now))
        except OSError as e:
            logger.error(f"Export failed: {e}")
            return None

    # Audio and transcription

    def select_audio(self, audio: AudioFile) -> bool:
        """Select an audio file for upload, resetting any previous job."""
        if not is_audio_file(audio.name, audio.content_type):
            self.audio_error = "Please upload a valid audio file."
            self.audio = None
            return False

        self._reset_job_state()
        self.audio = audio
        self.audio_error = ""
        self.key = f"{UPLOAD_KEY_PREFIX}{audio.name}"
        return True

    def clear_audio(self) -> None:
        self._reset_job_state()
        self.audio = None
        self.audio_error = ""
        self.bucket = ""
        self.key = ""

    def reset(self) -> None:
        """Abandon any in-flight job and clear all state."""
        self.clear_audio()
        self.clear_document()

    def _reset_job_state(self) -> None:
        self._generation += 1
        self._cancel_polling()
        self.job_id = None
        self.upload = StepState(status=UploadStep.IDLE)
        self.transcription = StepState(status=TranscriptionStatus.IDLE)

    def _cancel_polling(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None

    def is_transcription_in_progress(self) -> bool:
        return self.transcription.status in IN_PROGRESS_STATUSES

    def is_process_in_progress(self) -> bool:
        uploading = self.upload.status in (UploadStep.REQUESTING_URL, UploadStep.UPLOADING)
        return uploading or self.is_transcription_in_progress()

    def can_start_transcription(self) -> bool:
        return (
            self.audio is not None
            and bool(self.endpoint)
            and bool(self.bucket.strip())
            and bool(self.key.strip())
            and not self.is_transcription_in_progress()
        )

    def upload_label(self) -> str:
        return UPLOAD_STEP_LABELS[self.upload.status]  # type: ignore[index]

    def transcription_label(self) -> str:
        return TRANSCRIPTION_STATUS_LABELS[self.transcription.status]  # type: ignore[index]

    def overall_progress(self) -> Progress:
        upload = self.upload.status
        transcription = self.transcription.status

        current = 0
        if upload is UploadStep.ERROR or transcription is TranscriptionStatus.ERROR:
            current = 0
        elif upload is UploadStep.REQUESTING_URL:
            current = 1
        elif upload is UploadStep.UPLOADING:
            current = 2
        elif upload is UploadStep.COMPLETED:
            current = 3
            if transcription in (TranscriptionStatus.PENDING, TranscriptionStatus.PROCESSING):
                current = 4
            elif transcription is TranscriptionStatus.DONE:
                current = 5

        return Progress(
            current=current,
            total=PROGRESS_TOTAL,
            percentage=round(current / PROGRESS_TOTAL * 100),
        )

    async def upload_audio(self) -> bool:
        """Upload the selected audio through a presigned URL."""
        if self.audio is None:
            self.upload = StepState(status=UploadStep.ERROR, error="No audio file selected.")
            return False
        if not self.endpoint:
            self.upload = StepState(
                status=UploadStep.IDLE,
                error="Provide a valid API endpoint to obtain the upload URL.",
            )
            return False

        generation = self._generation
        audio = self.audio
        self.upload = StepState(
            status=UploadStep.REQUESTING_URL, message="Requesting presigned upload URL..."
        )

        try:
            target = await self._upload_client.request_upload_target(
                extension=audio.extension, content_type=audio.upload_content_type
            )
            if generation != self._generation:
                return self._discard_stale("upload")

            self.bucket = target.bucket
            self.key = target.key
            self.upload = StepState(
                status=UploadStep.UPLOADING,
                message=f"Uploading file to S3 (bucket: {target.bucket}, key: {target.key})...",
            )
            await self._upload_client.put(
                upload_url=target.upload_url,
                data=audio.data,
                content_type=audio.upload_content_type,
            )
        except ReviewError as e:
            if generation != self._generation:
                return self._discard_stale("upload")
            logger.error(f"Upload failed: {e}")
            self.upload = StepState(
                status=UploadStep.ERROR, error=str(e) or "Error while uploading audio."
            )
            return False

        if generation != self._generation:
            return self._discard_stale("upload")
        self.upload = StepState(status=UploadStep.COMPLETED, message="File uploaded to S3.")
        return True

    async def start_transcription(self) -> bool:
        """Submit a transcription job and poll it until it resolves.

        On success the job's document replaces the loaded one.
        """
        if not self.can_start_transcription():
            self.transcription.error = "Provide endpoint, bucket and S3 key before proceeding."
            return False

        generation = self._generation
        self._cancel_polling()
        self.job_id = None
        self.transcription = StepState(
            status=TranscriptionStatus.REQUESTING, message="Sending transcription request..."
        )

        try:
            job_id = await self._transcription_client.submit(
                bucket=self.bucket.strip(),
                key=self.key.strip(),
                language=self.language.strip() or self._config.service.language,
            )
        except ReviewError as e:
            if generation != self._generation:
                return self._discard_stale("transcription")
            return self._fail_transcription(e)

        if generation != self._generation:
            return self._discard_stale("transcription")

        self.job_id = job_id
        self.transcription = StepState(
            status=TranscriptionStatus.PENDING,
            message="Transcription started. Waiting for completion...",
        )
        return await self._await_job(job_id=job_id, generation=generation)

    async def upload_and_transcribe(self, audio: AudioFile) -> bool:
        """Select, upload and transcribe an audio file in one flow."""
        if not self.select_audio(audio):
            return False
        if not await self.upload_audio():
            return False
        if not self.can_start_transcription():
            self.transcription = StepState(
                status=TranscriptionStatus.IDLE,
                message="Audio uploaded. Provide bucket and key to start transcription.",
            )
            return False
        return await self.start_transcription()

    async def _await_job(self, *, job_id: str, generation: int) -> bool:
        def _on_update(outcome: JobOutcome) -> None:
            if generation != self._generation:
                return
            if outcome.state is JobState.PROCESSING:
                self.transcription = StepState(
                    status=TranscriptionStatus.PROCESSING, message="Transcription in progress..."
                )
            elif outcome.state is JobState.PENDING:
                self.transcription = StepState(
                    status=TranscriptionStatus.PENDING,
                    message="Waiting for transcription to start...",
                )

        self._poller = JobPoller(
            client=self._transcription_client,
            interval=self._config.service.poll_interval_seconds,
            on_update=_on_update,
        )
        task = self._poller.start(job_id)

        try:
            outcome = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return self._discard_stale("transcription")
            raise
        except ReviewError as e:
            if generation != self._generation:
                return self._discard_stale("transcription")
            return self._fail_transcription(e)

        if generation != self._generation:
            return self._discard_stale("transcription")

        self._poller = None
        self._apply_document(
            outcome.document, source_name=self.audio.name if self.audio else job_id
        )
        self.transcription = StepState(
            status=TranscriptionStatus.DONE, message="Transcription completed successfully."
        )
        return True

    def _fail_transcription(self, error: ReviewError) -> bool:
        logger.error(f"Transcription failed: {error}")
        self._poller = None
        self.transcription = StepState(
            status=TranscriptionStatus.ERROR,
            error=str(error) or "Error while retrieving transcription status.",
        )
        return False

    def _discard_stale(self, stage: str) -> bool:
        logger.info(f"Discarding stale {stage} result")
        return False

    async def aclose(self) -> None:
        self._cancel_polling()
        await self._upload_client.close()
        await self._transcription_client.close()
