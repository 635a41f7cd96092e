from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from .. import schemas
from ..core.config import Settings
from ..crud import crud_quote
from ..database import get_db
from ..services.artifact_publisher import ArtifactPublisher
from ..services.quote_pdf import QuoteDocumentRenderer
from ..utils.errors import BadRequest, NotFound
from .cors import preflight_response
from .dependencies import (
    CallerIdentity,
    get_current_user,
    get_publisher,
    get_renderer,
    get_settings,
)

router = APIRouter(tags=["quote-documents"])
logger = logging.getLogger(__name__)


@router.options("/generate-quote-pdf", include_in_schema=False)
def generate_quote_pdf_preflight():
    return preflight_response()


@router.post("/generate-quote-pdf", response_model=schemas.GeneratePdfOut)
def generate_quote_pdf(
    payload: Optional[schemas.GeneratePdfIn] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    renderer: QuoteDocumentRenderer = Depends(get_renderer),
    publisher: ArtifactPublisher = Depends(get_publisher),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Render the stored quote to PDF, upload it and attach it to the quote."""
    quote_id = ((payload.quote_id if payload else None) or "").strip()
    if not quote_id:
        raise BadRequest("quoteId is required")

    quote = crud_quote.get_quote_snapshot(db, quote_id)
    if quote is None:
        logger.warning("Quote %s not found", quote_id)
        raise NotFound("Quote not found")

    pdf = renderer.render(quote)
    attachment = publisher.publish(pdf, quote, settings.STORAGE_BUCKET, current_user.user_id)
    logger.info("Generated PDF for quote %s by user %s", quote_id, current_user.user_id)
    return schemas.GeneratePdfOut(success=True, file=attachment)
