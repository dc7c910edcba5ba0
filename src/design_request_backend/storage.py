"""
Artifact publishing to S3-compatible object storage.

This module provides functionality for:
- Uploading rendered request PDFs under a sanitized object key
- Computing the public URL an operator can open later
- Building the storage client from settings, or reporting it as not configured

The bucket is configured via ``storage.bucket`` / the S3_BUCKET_NAME
environment variable. Any S3-compatible endpoint works (AWS, MinIO, Supabase
Storage's S3 endpoint) through ``storage.endpoint_url``. When no bucket is
configured, publishing is skipped by the intake orchestrator.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from omegaconf import DictConfig

from .errors import PublishError
from .utils import sanitize_filename

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
MAX_ARTIFACT_BYTES = 10 * 1024 * 1024


class ObjectStorage(Protocol):
    def upload(self, key: str, data: bytes, content_type: str) -> Dict[str, str]:
        ...

    def public_url(self, path: str) -> str:
        ...


class S3ObjectStorage:
    """
    Thin boto3 wrapper exposing the upload contract used by the publisher.

    Calls are bounded by connect/read timeouts and botocore retries are
    disabled, so a slow or failing bucket turns into a prompt PublishError.
    """

    def __init__(
        self,
        bucket: str,
        client: Any = None,
        region: str = "",
        endpoint_url: str = "",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region or None,
            endpoint_url=endpoint_url or None,
            config=Config(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )

    def upload(self, key: str, data: bytes, content_type: str) -> Dict[str, str]:
        """
        Upload bytes to ``s3://<bucket>/<key>``.

        Raises:
            PublishError: On any client, network or timeout failure
        """
        try:
            logger.info(f"Uploading {len(data)} bytes to s3://{self.bucket}/{key}")
            self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            raise PublishError(f"S3 upload failed for {key}: {exc}") from exc
        logger.info(f"Upload successful: s3://{self.bucket}/{key}")
        return {"path": key}

    def public_url(self, path: str) -> str:
        quoted = quote(path)
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{quoted}"
        if self.region:
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quoted}"


class ArtifactPublisher:
    """Validates, names and uploads rendered documents."""

    def __init__(
        self,
        storage: ObjectStorage,
        prefix: str = "",
        public_base_url: str = "",
        max_bytes: int = MAX_ARTIFACT_BYTES,
    ) -> None:
        self.storage = storage
        self.prefix = prefix
        self.public_base_url = public_base_url.rstrip("/")
        self.max_bytes = max_bytes

    def object_key(self, suggested_name: str) -> str:
        return f"{self.prefix}{sanitize_filename(suggested_name, fallback='design-request')}"

    def publish(self, data: bytes, suggested_name: str) -> str:
        """
        Upload a document and return its public URL.

        Args:
            data: The rendered document bytes
            suggested_name: Desired filename; sanitized before use

        Returns:
            Publicly resolvable URL of the stored object

        Raises:
            PublishError: If the payload is empty or too large, or the upload fails
        """
        if not data:
            raise PublishError("Refusing to publish an empty artifact")
        if len(data) > self.max_bytes:
            raise PublishError(f"Artifact is {len(data)} bytes, limit is {self.max_bytes}")

        key = self.object_key(suggested_name)
        result = self.storage.upload(key, data, PDF_CONTENT_TYPE)
        path = result.get("path") or key
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(path)}"
        return self.storage.public_url(path)


def build_publisher(settings: DictConfig) -> Optional[ArtifactPublisher]:
    """
    Create the artifact publisher from settings.

    Returns:
        The publisher, or None if no bucket is configured or the client
        could not be created
    """
    storage_settings = settings.storage
    if not storage_settings.bucket:
        logger.warning("S3 bucket not configured, PDF publishing disabled")
        return None
    try:
        storage = S3ObjectStorage(
            bucket=storage_settings.bucket,
            region=storage_settings.region,
            endpoint_url=storage_settings.endpoint_url,
            timeout_seconds=float(storage_settings.timeout_seconds),
        )
    except (BotoCoreError, ValueError) as exc:
        logger.warning(f"Failed to create S3 client: {exc}")
        return None
    return ArtifactPublisher(
        storage,
        prefix=storage_settings.prefix,
        public_base_url=storage_settings.public_base_url,
        max_bytes=int(storage_settings.max_bytes),
    )
