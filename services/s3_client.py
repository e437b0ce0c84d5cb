"""MinIO S3 client for storing generated signature documents."""
import io
import logging
from datetime import timedelta

import urllib3
from minio import Minio
from minio.error import S3Error

from core.settings import s3_settings

logger = logging.getLogger(__name__)


class S3Client:
    """Client for interacting with MinIO S3 storage."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = True,
        url_expiry: timedelta = timedelta(days=7),
    ):
        """
        Initialize S3 client.

        Args:
            endpoint: S3 endpoint (e.g., "minio.internal:9000")
            access_key: S3 access key
            secret_key: S3 secret key
            bucket: S3 bucket name
            secure: Use HTTPS (default: True)
            url_expiry: Lifetime of presigned download URLs
        """
        self.bucket = bucket
        self.endpoint = endpoint
        self.url_expiry = url_expiry

        http_client = urllib3.PoolManager(
            timeout=urllib3.Timeout(connect=5.0, read=30.0),
            retries=urllib3.Retry(total=3, backoff_factor=0.2),
        )

        self.client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            http_client=http_client,
        )

        logger.info(f"S3Client initialized: endpoint={endpoint}, bucket={bucket}")

    def upload_pdf(self, object_key: str, data: bytes) -> str:
        """
        Upload a PDF and return a presigned GET URL for it.

        Args:
            object_key: S3 object key/path
            data: PDF bytes

        Returns:
            Presigned URL the email function can fetch the document from

        Raises:
            S3Error: If the upload or URL signing fails
        """
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)

            self.client.put_object(
                self.bucket,
                object_key,
                io.BytesIO(data),
                length=len(data),
                content_type="application/pdf",
            )
            logger.info(f"Uploaded S3 object: key={object_key}, size={len(data)} bytes")

            return self.client.presigned_get_object(
                self.bucket, object_key, expires=self.url_expiry
            )
        except S3Error as e:
            logger.error(f"S3 error uploading {object_key}: {e}")
            raise


def create_s3_client_from_env() -> S3Client:
    """Create S3Client from centralized settings."""
    return S3Client(
        endpoint=s3_settings.S3_ENDPOINT,
        access_key=s3_settings.S3_ACCESS_KEY,
        secret_key=s3_settings.S3_SECRET_KEY.get_secret_value(),
        bucket=s3_settings.S3_BUCKET,
        secure=s3_settings.S3_SECURE,
        url_expiry=timedelta(hours=s3_settings.S3_URL_EXPIRY_HOURS),
    )
