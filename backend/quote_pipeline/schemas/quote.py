from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimals internally, plain JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

DiscountType = Literal["percentage", "fixed"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class LineItem(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    quantity: int
    unit_price: Money
    cost: Optional[Money] = None
    markup_percent: Money = Decimal("0")
    category: str = ""
    total_price: Optional[Money] = None
    # Written by the pricing calculator: the list price the volume discount
    # is computed from, and the discount that produced ``unit_price``.
    base_unit_price: Optional[Money] = None
    volume_discount_percent: Optional[Money] = None


class DiscountRule(CamelModel):
    applicable_categories: List[str]
    minimum_quantity: int
    discount_percentage: Money


class QuoteTotals(CamelModel):
    subtotal: Money
    discount: Money
    discount_type: DiscountType = "percentage"
    gst: Money
    total: Money
    gst_rate: Optional[Money] = None


class ClientInfo(CamelModel):
    model_config = ConfigDict(extra="forbid")

    company: Optional[str] = None
    name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    abn: Optional[str] = None


class QuoteTerms(CamelModel):
    model_config = ConfigDict(extra="forbid")

    payment_terms: Optional[str] = None
    warranty: Optional[str] = None
    delivery_terms: Optional[str] = None
    validity_days: Optional[int] = None
    terms: Optional[str] = None
    notes: Optional[str] = None


class Attachment(CamelModel):
    id: str
    name: str
    url: str
    type: str
    size: int
    uploaded_at: datetime
    uploaded_by: str


class QuoteSnapshot(CamelModel):
    id: str
    quote_number: str
    title: Optional[str] = None
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    line_items: List[LineItem] = Field(default_factory=list)
    totals: QuoteTotals
    settings: Optional[QuoteTerms] = None
    valid_until: Optional[datetime] = None
    attachments: List[Attachment] = Field(default_factory=list)


class CalculateTotalsIn(CamelModel):
    line_items: List[LineItem]
    discount: Money = Decimal("0")
    discount_type: DiscountType = "percentage"


class CalculateTotalsOut(CamelModel):
    line_items: List[LineItem]
    totals: QuoteTotals


class GeneratePdfIn(BaseModel):
    quote_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("quoteId", "quote_id"),
    )

    model_config = ConfigDict(coerce_numbers_to_str=True)


class GeneratePdfOut(CamelModel):
    success: bool = True
    file: Attachment
