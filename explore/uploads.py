from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import re
import time
from typing import Protocol
from uuid import uuid4

import boto3

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

THUMBNAIL_CONTENT_TYPE = "image/jpeg"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class StorageConfig:
    access_key_id: str
    secret_access_key: str
    bucket: str
    region: str
    public_base_url: str
    upload_ttl_s: int


@dataclass(frozen=True)
class UploadTargets:
    video_key: str
    thumbnail_key: str
    video_write_url: str
    thumbnail_write_url: str
    video_read_url: str
    thumbnail_read_url: str
    expires_in: int


class StorageSigner(Protocol):
    def issue_write_url(self, key: str, content_type: str, ttl: int) -> str: ...

    def public_read_url(self, key: str) -> str: ...


def load_storage_config() -> StorageConfig:
    access_key_id = os.getenv("AWS_ACCESS_KEY_ID", "").strip()
    secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY", "").strip()
    if not access_key_id or not secret_access_key:
        raise ConfigurationError(
            "Storage credentials not configured",
            ["AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required"],
        )
    bucket = os.getenv("AWS_S3_BUCKET", "listify-properties-sa").strip()
    region = os.getenv("AWS_REGION", "eu-north-1").strip()
    public_base_url = os.getenv(
        "CLOUDFRONT_URL", f"https://{bucket}.s3.{region}.amazonaws.com"
    ).strip().rstrip("/")
    upload_ttl_s = int(os.getenv("EXPLORE_UPLOAD_URL_TTL_S", "3600"))
    return StorageConfig(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        bucket=bucket,
        region=region,
        public_base_url=public_base_url,
        upload_ttl_s=upload_ttl_s,
    )


class S3StorageSigner:
    """Presigns S3 PUT requests; no bytes are moved by this class."""

    def __init__(self, config: StorageConfig, client=None) -> None:  # type: ignore[no-untyped-def]
        self.config = config
        self._client = client or boto3.client(
            "s3",
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
        )

    def issue_write_url(self, key: str, content_type: str, ttl: int) -> str:
        return self._client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.config.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=ttl,
        )

    def public_read_url(self, key: str) -> str:
        return f"{self.config.public_base_url}/{key}"


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


class UploadBroker:
    def __init__(self, signer: StorageSigner, ttl_s: int = 3600) -> None:
        self.signer = signer
        self.ttl_s = ttl_s

    @classmethod
    def from_env(cls) -> "UploadBroker":
        config = load_storage_config()
        return cls(S3StorageSigner(config), ttl_s=config.upload_ttl_s)

    def issue_upload_targets(
        self, creator_id: int, filename: str, content_type: str
    ) -> UploadTargets:
        timestamp_ms = int(time.time() * 1000)
        file_id = uuid4().hex
        video_key = (
            f"explore/videos/{creator_id}/{timestamp_ms}-{file_id}-{sanitize_filename(filename)}"
        )
        thumbnail_key = f"explore/thumbnails/{creator_id}/{timestamp_ms}-{file_id}.jpg"

        video_write_url = self.signer.issue_write_url(video_key, content_type, self.ttl_s)
        thumbnail_write_url = self.signer.issue_write_url(
            thumbnail_key, THUMBNAIL_CONTENT_TYPE, self.ttl_s
        )
        logger.info("issued upload targets creator_id=%s key=%s", creator_id, video_key)
        return UploadTargets(
            video_key=video_key,
            thumbnail_key=thumbnail_key,
            video_write_url=video_write_url,
            thumbnail_write_url=thumbnail_write_url,
            video_read_url=self.signer.public_read_url(video_key),
            thumbnail_read_url=self.signer.public_read_url(thumbnail_key),
            expires_in=self.ttl_s,
        )
