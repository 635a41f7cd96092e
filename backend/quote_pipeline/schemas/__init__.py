from .quote import (
    Money,
    DiscountType,
    LineItem,
    DiscountRule,
    QuoteTotals,
    ClientInfo,
    QuoteTerms,
    Attachment,
    QuoteSnapshot,
    CalculateTotalsIn,
    CalculateTotalsOut,
    GeneratePdfIn,
    GeneratePdfOut,
)
