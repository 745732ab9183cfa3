"""Presigned upload of audio files."""

from dataclasses import dataclass

from loguru import logger

from phoneme_review.exceptions import UploadError
from phoneme_review.services.api import ApiClient


@dataclass(frozen=True)
class UploadTarget:
    """Presigned destination for one audio upload.

    Attributes:
        upload_url: URL accepting a single PUT of the file.
        bucket: Storage bucket the file lands in.
        key: Object key the file lands at.
    """

    upload_url: str
    bucket: str
    key: str


class UploadClient(ApiClient):
    """Client for the presigned upload endpoints."""

    async def request_upload_target(self, *, extension: str, content_type: str) -> UploadTarget:
        """Request a presigned upload URL.

        Args:
            extension: Audio file extension without the dot.
            content_type: MIME type the file will be uploaded with.

        Returns:
            The upload target.

        Raises:
            TransportError: If the request fails.
            UploadError: If the response lacks the URL, bucket or key.
        """
        data = await self._request_json(
            method="POST",
            url=f"{self.endpoint}/uploads/url",
            payload={"extension": extension, "contentType": content_type},
        )

        upload_url = data.get("uploadUrl")
        bucket = data.get("s3Bucket")
        key = data.get("s3Key")
        if not upload_url or not bucket or not key:
            raise UploadError(msg="Unexpected response: presigned upload data missing.")

        logger.info(f"Received upload target s3://{bucket}/{key}")
        return UploadTarget(upload_url=upload_url, bucket=bucket, key=key)

    async def put(self, *, upload_url: str, data: bytes, content_type: str) -> None:
        """Upload file content to a presigned URL.

        Raises:
            TransportError: If the upload fails or is rejected.
        """
        await self._send(
            method="PUT", url=upload_url, data=data, headers={"Content-Type": content_type}
        )
        logger.info(f"Uploaded {len(data)} bytes ({content_type})")
