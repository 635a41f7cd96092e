from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from .. import schemas
from ..core.config import Settings
from ..crud import crud_settings
from ..database import get_db
from ..services.pricing import PricingCalculator
from .cors import preflight_response
from .dependencies import CallerIdentity, get_current_user, get_settings

router = APIRouter(tags=["pricing"])
logger = logging.getLogger(__name__)


@router.options("/calculate-quote-totals", include_in_schema=False)
def calculate_quote_totals_preflight():
    return preflight_response()


@router.post("/calculate-quote-totals", response_model=schemas.CalculateTotalsOut)
def calculate_quote_totals(
    payload: schemas.CalculateTotalsIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Price line items with volume discounts, the quote discount and GST.

    Nothing is persisted; callers store the returned line items and totals.
    """
    gst_rate = crud_settings.get_gst_rate(db, settings.DEFAULT_GST_RATE)
    rules = crud_settings.get_volume_discounts(db)
    calculator = PricingCalculator(rules=rules, gst_rate=gst_rate)
    result = calculator.calculate(payload.line_items, payload.discount, payload.discount_type)
    logger.info(
        "Calculated totals for user %s: %d items, %d volume rules, gst_rate=%s",
        current_user.user_id,
        len(result.line_items),
        len(rules),
        gst_rate,
    )
    return schemas.CalculateTotalsOut(line_items=result.line_items, totals=result.totals)
