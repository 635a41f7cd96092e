from typing import Optional
import logging

from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..utils.errors import InvalidQuoteData

logger = logging.getLogger(__name__)


def get_quote(db: Session, quote_id: str) -> Optional[models.Quote]:
    return db.query(models.Quote).filter(models.Quote.id == quote_id).first()


def to_snapshot(quote: models.Quote) -> schemas.QuoteSnapshot:
    """Validate a stored quote against the canonical schema.

    Rows that do not match (unknown client fields, missing totals, malformed
    line items) are rejected instead of being patched with defaults.
    """
    try:
        return schemas.QuoteSnapshot.model_validate(
            {
                "id": quote.id,
                "quoteNumber": quote.quote_number,
                "title": quote.title,
                "clientInfo": quote.client_info or {},
                "lineItems": quote.line_items or [],
                "totals": quote.totals,
                "settings": quote.settings,
                "validUntil": quote.valid_until,
                "attachments": quote.attachments or [],
            }
        )
    except SchemaError as exc:
        logger.error("Quote %s does not match the quote schema: %s", quote.id, exc)
        raise InvalidQuoteData(f"Quote {quote.id} data is invalid") from exc


def get_quote_snapshot(db: Session, quote_id: str) -> Optional[schemas.QuoteSnapshot]:
    quote = get_quote(db, quote_id)
    if quote is None:
        return None
    return to_snapshot(quote)


def append_attachment(db: Session, quote_id: str, attachment: schemas.Attachment) -> list[dict]:
    """Append ``attachment`` to the quote's attachment list.

    Reads the current array and writes the whole array back. There is no
    lock or revision check: two concurrent appends for the same quote can
    lose one entry (last write wins).
    """
    quote = get_quote(db, quote_id)
    if quote is None:
        raise InvalidQuoteData(f"Quote {quote_id} disappeared before the attachment was saved")
    current = list(quote.attachments or [])
    updated = current + [attachment.model_dump(mode="json", by_alias=True)]
    # Assign a new list so SQLAlchemy flags the JSON column as changed
    quote.attachments = updated
    db.commit()
    logger.info("Quote %s now has %d attachments", quote_id, len(updated))
    return updated
