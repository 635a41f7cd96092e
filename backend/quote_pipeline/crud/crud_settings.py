"""Read-only lookups against the global settings store.

Values are fetched on every call; nothing is cached between requests.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import logging

from pydantic import TypeAdapter, ValidationError as SchemaError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..utils.errors import InternalError

logger = logging.getLogger(__name__)

GST_RATE_KEY = "gst_rate"
VOLUME_DISCOUNTS_KEY = "volume_discounts"

_rules_adapter = TypeAdapter(list[schemas.DiscountRule])


def get_setting(db: Session, key: str) -> Optional[Any]:
    row = db.query(models.GlobalSetting).filter(models.GlobalSetting.key == key).first()
    return row.value if row is not None else None


def get_gst_rate(db: Session, default: Decimal) -> Decimal:
    raw = get_setting(db, GST_RATE_KEY)
    # Unset (or zero) falls back to the default rate
    if not raw:
        return default
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InternalError(f"Invalid {GST_RATE_KEY} setting: {raw!r}") from exc


def get_volume_discounts(db: Session) -> list[schemas.DiscountRule]:
    raw = get_setting(db, VOLUME_DISCOUNTS_KEY)
    if not raw:
        return []
    try:
        return _rules_adapter.validate_python(raw)
    except SchemaError as exc:
        logger.error("Invalid %s setting: %s", VOLUME_DISCOUNTS_KEY, exc)
        raise InternalError(f"Invalid {VOLUME_DISCOUNTS_KEY} setting") from exc
