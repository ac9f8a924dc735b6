"""
S3-based backup sink.

This module provides S3BackupSink, which stores key backups as single
objects in an Amazon S3 bucket.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sealrotate.errors import TransportError
from sealrotate.storage.base import YAML_CONTENT_TYPE, BackupSink

logger = logging.getLogger(__name__)


class S3BackupSink(BackupSink):
    """
    S3 storage for key backups.

    Objects are written with a single PutObject request, so S3 either
    stores the full body or nothing.

    Attributes:
        bucket: S3 bucket name
        region: AWS region
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
    ) -> None:
        """
        Initialize the S3 sink.

        Args:
            bucket: S3 bucket name for backups
            region: AWS region of the bucket
            access_key_id: AWS access key (default: boto3 credential chain)
            secret_access_key: AWS secret key (default: boto3 credential chain)
        """
        self.bucket = bucket
        self.region = region
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._client: Any = None

    def _get_s3_client(self) -> Any:
        """Get or create S3 client."""
        if self._client is None:
            kwargs: dict[str, Any] = {"region_name": self.region}
            if self._access_key_id and self._secret_access_key:
                kwargs["aws_access_key_id"] = self._access_key_id
                kwargs["aws_secret_access_key"] = self._secret_access_key
            try:
                self._client = boto3.client("s3", **kwargs)
            except BotoCoreError as e:
                raise TransportError(
                    "Unable to open session to AWS",
                    resource=self.describe(),
                    cause=e,
                ) from e
        return self._client

    def describe(self) -> str:
        return f"s3://{self.bucket}"

    def upload(
        self,
        key: str,
        body: bytes,
        content_type: str = YAML_CONTENT_TYPE,
    ) -> str:
        """Upload body to s3://bucket/key."""
        client = self._get_s3_client()
        location = f"s3://{self.bucket}/{key}"

        try:
            client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                ServerSideEncryption="AES256",
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "AccessDenied":
                message = f"Access denied when writing to {location}"
            elif error_code == "NoSuchBucket":
                message = f"Bucket does not exist: {self.bucket}"
            else:
                message = f"Unable to upload key to bucket {self.bucket}"
            raise TransportError(message, resource=location, cause=e) from e
        except BotoCoreError as e:
            raise TransportError(
                f"Unable to upload key to bucket {self.bucket}",
                resource=location,
                cause=e,
            ) from e

        logger.info(f"Stored {len(body)} bytes to {location}")
        return location
