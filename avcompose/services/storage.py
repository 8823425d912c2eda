"""
The object store adapter. Talks to MinIO (or any S3-compatible store) through
boto3 and translates its errors into `StorageError`/`ObjectNotFoundError`.
"""
from pathlib import Path

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..domain.exceptions import ObjectNotFoundError, StorageError

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


class ObjectStore:
    """
    Downloads and uploads whole objects to and from local files.

    The underlying boto3 client is thread-safe, so one instance is shared by
    all concurrently running jobs.
    """

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_config(cls, cfg) -> "ObjectStore":
        """
        Builds the store from a `MinioConfig`.

        The endpoint is given as host:port, as MinIO documents it; the scheme
        is derived from the `secure` flag.
        """
        scheme = "https" if cfg.secure else "http"
        client = boto3.client(
            "s3",
            endpoint_url=f"{scheme}://{cfg.endpoint}",
            aws_access_key_id=cfg.access_key,
            aws_secret_access_key=cfg.secret_key,
            region_name=cfg.region,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        logger.info(f"Object store client created for {scheme}://{cfg.endpoint}")
        return cls(client)

    def download_file(self, bucket: str, key: str, local_path: Path) -> int:
        """
        Writes the object to `local_path`.

        Returns:
            The size of the downloaded file in bytes.

        Raises:
            ObjectNotFoundError: If the bucket or key does not exist.
            StorageError: For any other transfer or local I/O failure.
        """
        try:
            self.client.download_file(bucket, key, str(local_path))
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"Object not found (bucket={bucket}, key={key})") from e
            raise StorageError(f"Get object failed (bucket={bucket}, key={key}): {e}") from e
        except (BotoCoreError, OSError) as e:
            raise StorageError(f"Get object failed (bucket={bucket}, key={key}): {e}") from e
        return local_path.stat().st_size

    def upload_file(self, bucket: str, key: str, local_path: Path, content_type: str) -> int:
        """
        Uploads `local_path` as `bucket/key` with the given content type.

        Returns:
            The size of the uploaded file in bytes.

        Raises:
            StorageError: If the file cannot be read or the upload fails.
        """
        try:
            size = local_path.stat().st_size
            self.client.upload_file(
                str(local_path), bucket, key, ExtraArgs={"ContentType": content_type}
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise StorageError(f"Put object failed (bucket={bucket}, key={key}): {e}") from e
        return size
