from sqlalchemy import Column, String, DateTime, JSON

from .base import TimestampedModel


class Quote(TimestampedModel):
    """A quote record as owned by the quote store.

    JSON columns hold the canonical camelCase payloads (see
    ``schemas.quote``); the pipeline only ever reads a snapshot and appends to
    ``attachments``.
    """

    __tablename__ = "quotes"

    id = Column(String, primary_key=True, index=True)
    quote_number = Column(String, nullable=False)
    title = Column(String, nullable=True)
    client_info = Column(JSON, nullable=False, default=dict)
    line_items = Column(JSON, nullable=False, default=list)
    totals = Column(JSON, nullable=True)
    settings = Column(JSON, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    valid_until = Column(DateTime, nullable=True)
