"""Custom exception classes for the phoneme review pipeline."""


class ReviewError(Exception):
    """Root class for all distinguished errors raised by this package.

    Args:
        msg: Error message
        retryable: Whether the operation that caused this error can be retried
    """

    def __init__(self, *, msg: str, retryable: bool = False) -> None:
        super().__init__(msg)
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        """Whether this error indicates a retryable operation."""
        return self._retryable


class ConfigurationError(ReviewError):
    """Raised when configuration is invalid or missing."""


class DocumentError(ReviewError):
    """Base exception for problems with a loaded alignment document."""


class DocumentParseError(DocumentError):
    """Raised when a document is not parseable structured data."""


class InvalidFileTypeError(DocumentError):
    """Raised when a file of the wrong type is offered to the pipeline.

    Args:
        filename: Name of the rejected file
        expected: Human readable description of the accepted types
    """

    def __init__(self, *, filename: str, expected: str) -> None:
        super().__init__(msg=f"Please upload a valid {expected} file (got '{filename}').")
        self.filename = filename


class ServiceError(ReviewError):
    """Base exception for remote collaborator failures."""


class TransportError(ServiceError):
    """Raised on a non-success response or network failure.

    Args:
        msg: Error message
        status: HTTP status code, if a response was received
        retryable: Whether the request can be retried
    """

    def __init__(self, *, msg: str, status: int | None = None, retryable: bool = False) -> None:
        super().__init__(msg=msg, retryable=retryable)
        self.status = status


class UploadError(ServiceError):
    """Raised when the presigned upload flow cannot complete."""


class TranscriptionError(ServiceError):
    """Raised when the transcription service returns an unusable response."""


class JobFailedError(TranscriptionError):
    """Raised when the remote job reports a terminal failure."""


class MissingResultError(TranscriptionError):
    """Raised when a job reports DONE but carries no usable result."""
