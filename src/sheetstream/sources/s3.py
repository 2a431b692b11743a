"""AWS S3 source."""

from collections.abc import Iterator
import logging
from typing import Any

from typing_extensions import override

from sheetstream.sources.base import StreamSource, guess_mime_type

logger = logging.getLogger(__name__)


class S3Source(StreamSource):
    """Stream a workbook object from S3 with a boto3 client; one GET per pass."""

    def __init__(
        self,
        bucket: str,
        key: str,
        client: Any = None,
        chunk_size: int = 16777216,
    ) -> None:
        """
        Initialize S3Source.

        Args:
            bucket: S3 bucket name.
            key: S3 object key.
            client: boto3 S3 client. If None, a default client is created.
            chunk_size: Size of chunks to read (default: 16MB).

        Raises:
            ImportError: If boto3 is not installed.
            ValueError: If bucket or key is empty.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 is required for S3Source. Install with: pip install sheetstream[s3]"
            ) from e

        if not bucket or not key:
            raise ValueError("bucket and key must be non-empty")

        self.bucket = bucket
        self.key = key
        self.chunk_size = chunk_size
        self.client = client or boto3.client("s3")

        logger.debug("S3Source initialized for s3://%s/%s", bucket, key)

    @override
    def get_stream(self) -> Iterator[bytes]:
        """
        Stream the object body in chunks.

        Raises:
            IOError: If the object cannot be read.
        """
        try:
            body = self.client.get_object(Bucket=self.bucket, Key=self.key)["Body"]
            try:
                while True:
                    chunk = body.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk
            finally:
                body.close()
        except Exception as e:
            logger.exception("Error reading s3://%s/%s: %s", self.bucket, self.key, e)
            raise OSError(f"Failed to read S3 object s3://{self.bucket}/{self.key}: {e}") from e

    @override
    def get_metadata(self) -> dict[str, Any]:
        size = 0
        content_type = guess_mime_type(self.key)
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=self.key)
            size = response.get("ContentLength", 0)
            content_type = response.get("ContentType", content_type)
        except Exception as e:
            logger.warning(
                "Could not retrieve metadata for s3://%s/%s: %s", self.bucket, self.key, e
            )

        return {
            "size": size,
            "type": content_type,
            "source_type": "s3",
            "bucket": self.bucket,
            "key": self.key,
        }
