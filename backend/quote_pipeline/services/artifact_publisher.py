from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from ..schemas.quote import Attachment, QuoteSnapshot
from ..utils.errors import UploadFailed
from ..utils.storage import ObjectStorage

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
SIGNED_URL_TTL_SECONDS = 24 * 60 * 60

AppendAttachment = Callable[[str, Attachment], object]


def build_key(quote_id: str, quote_number: str, timestamp_ms: int) -> str:
    return f"quotes/{quote_id}/quote-{quote_number}-{timestamp_ms}.pdf"


class ArtifactPublisher:
    """Upload a rendered document, sign a read URL and attach it to the quote.

    Steps run in order and fail independently:

    1. upload: any storage error is terminal and raised as ``UploadFailed``;
       the quote is left untouched.
    2. signed url: a failure is logged and the raw ``{bucket}/{key}`` path is
       used as the attachment url instead.
    3. append: ``append_attachment`` persists the record. Nothing is rolled
       back if this fails after the upload succeeded.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        append_attachment: AppendAttachment,
        signed_url_ttl: int = SIGNED_URL_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.append_attachment = append_attachment
        self.signed_url_ttl = signed_url_ttl
        self.clock = clock

    def publish(self, pdf: bytes, quote: QuoteSnapshot, bucket: str, uploaded_by: str) -> Attachment:
        now = self.clock()
        key = build_key(quote.id, quote.quote_number, int(now * 1000))
        try:
            self.storage.put_object(bucket, key, pdf, content_type=PDF_CONTENT_TYPE)
        except Exception as exc:
            logger.error("Upload of %s to bucket %s failed: %s", key, bucket, exc, exc_info=True)
            raise UploadFailed(f"Failed to upload PDF: {exc}") from exc
        logger.info("Uploaded %s (%d bytes) to bucket %s", key, len(pdf), bucket)

        try:
            url = self.storage.presign_get(bucket, key, self.signed_url_ttl)
        except Exception as exc:
            url = f"{bucket}/{key}"
            logger.warning("Signing %s failed, falling back to storage path: %s", key, exc)

        attachment = Attachment(
            id=uuid.uuid4().hex,
            name=key.rsplit("/", 1)[-1],
            url=url,
            type=PDF_CONTENT_TYPE,
            size=len(pdf),
            uploaded_at=datetime.fromtimestamp(now, tz=timezone.utc),
            uploaded_by=uploaded_by,
        )
        self.append_attachment(quote.id, attachment)
        logger.info("Attached %s to quote %s", attachment.name, quote.id)
        return attachment
