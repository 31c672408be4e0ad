"""Invoice extraction models for SiteLedger."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class InvoiceData(BaseModel):
    """Fields extracted from a supplier invoice image.

    Only vendor_name, total_amount, confidence_score and suggested_gl_account
    are required; everything else may be missing from a given invoice.
    """

    invoice_id: Optional[str] = Field(
        default=None,
        description="The invoice number or identifier."
    )
    vendor_name: str = Field(
        description="The name of the vendor or supplier."
    )
    date_issued: Optional[str] = Field(
        default=None,
        description="The date the invoice was issued (YYYY-MM-DD)."
    )
    total_amount: float = Field(
        description="The total amount due."
    )
    currency: Optional[str] = Field(
        default=None,
        description="The currency code (e.g. USD, EUR)."
    )
    suggested_gl_account: str = Field(
        description=(
            "A suggested General Ledger account code based on the vendor and items "
            "(e.g., 5001-Materials, 6002-Services)."
        )
    )
    confidence_score: float = Field(
        ge=0.0,
        le=1.0,
        description="A confidence score between 0.0 and 1.0 regarding the extraction accuracy."
    )
    line_items_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Number of line items on the invoice, if visible."
    )

    @field_validator("date_issued")
    @classmethod
    def date_must_be_iso(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        date.fromisoformat(v)
        return v

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v
