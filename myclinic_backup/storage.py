"""S3-compatible upload of encrypted backups (AWS, Wasabi, MinIO)."""

from __future__ import annotations

import logging
from pathlib import Path

import boto3
from boto3.exceptions import Boto3Error, S3UploadFailedError
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from myclinic_backup.errors import LocalFileMissing, UploadAuthError, UploadTransportError

logger = logging.getLogger(__name__)

AUTH_ERROR_CODES = frozenset(
    {
        "403",
        "AccessDenied",
        "AllAccessDisabled",
        "AuthorizationHeaderMalformed",
        "ExpiredToken",
        "InvalidAccessKeyId",
        "InvalidToken",
        "SignatureDoesNotMatch",
        "TokenRefreshRequired",
    }
)


def _is_auth_failure(error: Exception) -> bool:
    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return True
    if isinstance(error, ClientError):
        code = str(error.response.get("Error", {}).get("Code", ""))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return code in AUTH_ERROR_CODES or status == 403
    # upload_file wraps ClientError into S3UploadFailedError, keeping only the message.
    if isinstance(error, S3UploadFailedError):
        message = str(error)
        return any(f"({code})" in message for code in AUTH_ERROR_CODES)
    return False


class S3Uploader:
    """Stream local files to an S3 bucket."""

    def __init__(self, region: str, endpoint_url: str | None = None, client=None) -> None:
        self.region = region
        self.endpoint_url = endpoint_url
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
        )

    def upload(self, bucket: str, key: str, filename: str) -> None:
        """Upload ``filename`` to ``s3://bucket/key``.

        ``upload_fileobj`` reads the file in chunks and switches to a multipart
        upload for large files, so the dump is never held in memory whole.
        """
        path = Path(filename)
        try:
            f = path.open("rb")
        except FileNotFoundError as e:
            raise LocalFileMissing(f"file to upload not found: {filename}") from e
        except OSError as e:
            raise LocalFileMissing(f"cannot open file to upload {filename}: {e}") from e

        with f:
            try:
                self.client.upload_fileobj(f, bucket, key)
            except (ClientError, BotoCoreError, Boto3Error) as e:
                if _is_auth_failure(e):
                    raise UploadAuthError(f"access to s3://{bucket}/{key} denied: {e}") from e
                raise UploadTransportError(f"upload to s3://{bucket}/{key} failed: {e}") from e

        logger.info(f"Uploaded {filename} to s3://{bucket}/{key}")


def upload_to_s3(region: str, bucket: str, key: str, filename: str, endpoint_url: str | None = None) -> None:
    """Upload ``filename`` with a fresh client for ``region``."""
    S3Uploader(region, endpoint_url=endpoint_url).upload(bucket, key, filename)
