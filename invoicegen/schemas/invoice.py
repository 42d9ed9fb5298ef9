from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from invoicegen.services.totals import to_decimal

DocumentType = Literal["invoice", "estimate"]


class CamelModel(BaseModel):
    """Accepts both snake_case and the camelCase keys the web client sends."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineItem(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    quantity: int = Field(default=1, ge=1)
    amount: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("quantity", mode="before")
    def _default_quantity(cls, value):
        if value is None or value == "":
            return 1
        return value

    @field_validator("description", mode="before")
    def _blank_description(cls, value):
        return "" if value is None else value


class InvoiceDraft(CamelModel):
    """Form data for an invoice or estimate that has not been persisted yet."""

    document_type: DocumentType = "invoice"
    invoice_number: str = ""
    issue_date: str = ""
    due_date: str = ""

    company_name: str = ""
    company_email: str = ""
    company_address: str = ""
    company_phone: str = ""
    company_website: str = ""
    company_logo: str = ""

    client_name: str = ""
    client_email: str = ""
    client_address: str = ""

    items: List[LineItem] = Field(default_factory=list)

    subtotal: Decimal = Decimal("0.00")
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    tax_amount: Decimal = Decimal("0.00")
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)
    total: Decimal = Decimal("0.00")

    bank_name: str = ""
    bank_account_holder: str = ""
    bank_account: str = ""
    ifsc_code: str = ""
    upi_id: str = ""
    payment_qr_code: str = ""
    payment_terms: str = ""
    notes: str = ""

    @field_validator("tax_rate", "discount_amount", mode="before")
    def _coerce_numeric_input(cls, value):
        return to_decimal(value)

    @field_validator(
        "invoice_number",
        "issue_date",
        "due_date",
        "company_name",
        "company_email",
        "company_address",
        "company_phone",
        "company_website",
        "company_logo",
        "client_name",
        "client_email",
        "client_address",
        "bank_name",
        "bank_account_holder",
        "bank_account",
        "ifsc_code",
        "upi_id",
        "payment_qr_code",
        "payment_terms",
        "notes",
        mode="before",
    )
    def _none_as_blank(cls, value):
        return "" if value is None else value

    @property
    def is_estimate(self) -> bool:
        return self.document_type == "estimate"


class InvoiceRecord(InvoiceDraft):
    id: str
    created_at: str
    updated_at: str


class InvoiceUpdate(CamelModel):
    """Partial update; only fields present in the payload are applied."""

    document_type: Optional[DocumentType] = None
    invoice_number: Optional[str] = None
    issue_date: Optional[str] = None
    due_date: Optional[str] = None
    company_name: Optional[str] = None
    company_email: Optional[str] = None
    company_address: Optional[str] = None
    company_phone: Optional[str] = None
    company_website: Optional[str] = None
    company_logo: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    items: Optional[List[LineItem]] = None
    tax_rate: Optional[Any] = None
    discount_amount: Optional[Any] = None
    bank_name: Optional[str] = None
    bank_account_holder: Optional[str] = None
    bank_account: Optional[str] = None
    ifsc_code: Optional[str] = None
    upi_id: Optional[str] = None
    payment_qr_code: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None


class InvoiceListResponse(BaseModel):
    total: int
    items: List[InvoiceRecord]


class TotalsRequest(CamelModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)
    tax_rate: Any = None
    discount_amount: Any = None


class TotalsResponse(CamelModel):
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


class MessageResponse(BaseModel):
    message: str
