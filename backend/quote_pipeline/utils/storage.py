from __future__ import annotations

from typing import Optional

import boto3
from botocore.config import Config

from ..core.config import Settings


class StorageConfig:
    def __init__(
        self,
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        endpoint_url: Optional[str],
    ) -> None:
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        # Example: https://9bd...d91c.r2.cloudflarestorage.com (or EU endpoint)
        self.endpoint_url = endpoint_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        return cls(
            access_key_id=settings.R2_ACCESS_KEY_ID or None,
            secret_access_key=settings.R2_SECRET_ACCESS_KEY or None,
            endpoint_url=settings.storage_endpoint_url,
        )

    def is_configured(self) -> bool:
        return bool(self.endpoint_url and self.access_key_id and self.secret_access_key)


def _client(cfg: StorageConfig):
    """Create an S3 client configured for Cloudflare R2.

    Important bits:
    - signature_version s3v4 (required for presigned URLs)
    - region "auto" (R2 requirement)
    - path-style addressing (virtual-hosted style is not supported the same way)
    - endpoint_url MUST match the host you will call (eu vs non-eu)
    """
    return boto3.client(
        "s3",
        aws_access_key_id=cfg.access_key_id,
        aws_secret_access_key=cfg.secret_access_key,
        endpoint_url=cfg.endpoint_url,
        region_name="auto",
        config=Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        ),
    )


class ObjectStorage:
    """Thin wrapper over an S3 client: object writes and presigned reads.

    Errors from botocore propagate unchanged; callers decide which failures
    are terminal.
    """

    def __init__(self, cfg: StorageConfig, client=None) -> None:
        self.cfg = cfg
        self._s3 = client

    @property
    def client(self):
        if self._s3 is None:
            if not self.cfg.is_configured():
                raise RuntimeError("Object storage is not configured")
            self._s3 = _client(self.cfg)
        return self._s3

    def put_object(self, bucket: str, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
        }
        if content_type:
            params["ContentType"] = content_type
        self.client.put_object(**params)

    def presign_get(self, bucket: str, key: str, expires_in: int) -> str:
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )
