import logging
import os
import uuid
from dataclasses import dataclass

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from beanmart.config import REQUIRED_STORAGE_KEYS
from beanmart.errors import ConfigurationError, UploadError

logger = logging.getLogger(__name__)

KEY_PREFIX = "product-images"


@dataclass
class UploadResult:
    url: str
    key: str


def unique_filename(original_name):
    """Fresh UUID plus the original file's extension."""
    ext = os.path.splitext(original_name or "")[1]
    return f"{uuid.uuid4()}{ext.lower()}"


class StorageClient:
    """S3-compatible object store (MinIO, R2, AWS) holding product images.

    One instance is built per app in ``create_app`` and shared by every
    request; boto3 clients are thread-safe.
    """

    def __init__(
        self,
        endpoint,
        region,
        access_key,
        secret_key,
        bucket,
        public_endpoint,
        client=None,
    ):
        self.endpoint = endpoint
        self.bucket = bucket
        self.public_endpoint = public_endpoint.rstrip("/")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": "path"},  # MinIO needs path-style
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        )

    @classmethod
    def from_config(cls, config, client=None):
        missing = [key for key in REQUIRED_STORAGE_KEYS if not config.get(key)]
        if missing:
            raise ConfigurationError(
                "Missing required storage configuration",
                error=", ".join(missing),
            )
        return cls(
            endpoint=config["STORAGE_ENDPOINT"],
            region=config["STORAGE_REGION"],
            access_key=config["STORAGE_ACCESS_KEY"],
            secret_key=config["STORAGE_SECRET_KEY"],
            bucket=config["STORAGE_BUCKET_NAME"],
            public_endpoint=config["STORAGE_PUBLIC_ENDPOINT"],
            client=client,
        )

    def public_url(self, key):
        return f"{self.public_endpoint}/{self.bucket}/{key}"

    def put(self, data, filename, content_type):
        """Upload bytes under a fresh ``product-images/<uuid>.<ext>`` key.

        Returns:
            UploadResult with the public URL and the storage key

        Raises:
            UploadError when the store rejects the upload
        """
        key = f"{KEY_PREFIX}/{unique_filename(filename)}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError("Failed to upload file", error=str(e)) from e

        logger.info("Uploaded %s (%d bytes, %s)", key, len(data), content_type)
        return UploadResult(url=self.public_url(key), key=key)

    def delete(self, key):
        """Delete an object. Returns False if it was already gone or the call failed."""
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("404", "NoSuchKey", "NotFound"):
                logger.info("Object %s already absent from storage", key)
            else:
                logger.warning("Could not stat %s before delete: %s", key, e)
            return False
        except BotoCoreError as e:
            logger.warning("Could not stat %s before delete: %s", key, e)
            return False

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.warning("Failed to delete %s: %s", key, e)
            return False

        logger.info("Deleted %s from storage", key)
        return True

    def key_from_url(self, url):
        """Inverse of ``public_url``. None for URLs this store did not issue."""
        if not url:
            return None
        prefix = f"{self.public_endpoint}/{self.bucket}/"
        if url.startswith(prefix) and len(url) > len(prefix):
            return url[len(prefix):]
        return None
