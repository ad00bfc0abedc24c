# --------------------------- quoting/models.py ----------------------------
"""
Spare-Parts Quotation · Shared Data Model

OVERVIEW:
Typed values exchanged between the reply parser, the fulfillment agent,
the repository, the PDF renderer and the delivery gateway.

PERSISTED:
- QuotationRequest  (quotation_requests table)
- CustomerProfile   (profiles table)
- UserIdentity      (identity provider)

TRANSIENT:
- ParsedReply                 (one per inbound reply)
- QuotationDocumentContext    (one per fulfillment attempt)
- Attachment                  (outbound email payload)
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class QuotationStatus(Enum):
    """Quotation request lifecycle states."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReplyField(Enum):
    """Labeled fields the operator fills in on a reply."""
    QUOTATION_ID = "quotation_id"
    PRICE = "price"
    LEAD_TIME = "lead_time"

    @property
    def label(self) -> str:
        return _FIELD_LABELS[self]


_FIELD_LABELS = {
    ReplyField.QUOTATION_ID: "Quotation ID",
    ReplyField.PRICE: "Price",
    ReplyField.LEAD_TIME: "Lead Time",
}


def parse_timestamp(value: Any) -> datetime:
    """Parse a PostgREST timestamp (ISO 8601, optional trailing Z)."""
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a numeric column value to Decimal, keeping None as None."""
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal value: {value!r}") from e


@dataclass
class QuotationRequest:
    """
    One customer request for a price and lead time on a part.

    INVARIANT:
    price and lead_time are both None, or both set with status
    processing or completed.
    """
    id: str
    user_id: str
    article_number: str
    model: str
    quantity: int
    delivery_place: str
    status: QuotationStatus
    created_at: datetime
    comments: Optional[str] = None
    price: Optional[Decimal] = None
    lead_time: Optional[str] = None

    def __post_init__(self):
        if int(self.quantity) <= 0:
            raise ValueError(f"Quantity must be a positive integer, got {self.quantity!r}")
        self.quantity = int(self.quantity)

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def is_quoted(self) -> bool:
        return self.price is not None and self.lead_time is not None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "QuotationRequest":
        """Build from a quotation_requests row as returned by PostgREST."""
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            article_number=row["article_number"],
            model=row["model"],
            quantity=row["quantity"],
            delivery_place=row.get("delivery_place") or "",
            status=QuotationStatus(row.get("status") or "pending"),
            created_at=parse_timestamp(row["created_at"]),
            comments=row.get("comments"),
            price=to_decimal(row.get("price")),
            lead_time=row.get("lead_time"),
        )


@dataclass(frozen=True)
class CustomerProfile:
    """Denormalized customer identity. Both fields are nullable in the schema."""
    user_id: str
    full_name: Optional[str] = None
    company_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CustomerProfile":
        return cls(
            user_id=str(row.get("id", "")),
            full_name=row.get("full_name"),
            company_name=row.get("company_name"),
        )


@dataclass(frozen=True)
class UserIdentity:
    user_id: str
    email: str


@dataclass(frozen=True)
class ExtractionFailure:
    """One labeled field that could not be found in a reply body."""
    field: ReplyField
    reason: str

    def describe(self) -> str:
        return f"{self.field.label}: {self.reason}"


@dataclass(frozen=True)
class ParsedReply:
    """
    Result of parsing an operator reply.

    Either all three values are present and ``failures`` is empty,
    or ``failures`` names every field that could not be extracted.
    """
    quotation_id: Optional[str] = None
    price_text: Optional[str] = None
    lead_time: Optional[str] = None
    failures: Tuple[ExtractionFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_fields(self) -> Tuple[ReplyField, ...]:
        return tuple(f.field for f in self.failures)


@dataclass(frozen=True)
class QuotationDocumentContext:
    """Everything the PDF renderer needs for one quotation document."""
    quotation_id: str
    created_at: datetime
    customer_email: str
    article_number: str
    model: str
    quantity: int
    price: Decimal
    lead_time: str
    customer_company_name: Optional[str] = None
    customer_full_name: Optional[str] = None

    @property
    def short_id(self) -> str:
        return self.quotation_id[:8]

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(days=1)

    @classmethod
    def assemble(cls, request: QuotationRequest, profile: CustomerProfile,
                 identity: UserIdentity) -> "QuotationDocumentContext":
        """Aggregate a quoted request with its profile and identity records."""
        if not request.is_quoted:
            raise ValueError(f"Quotation request {request.id} has no price/lead time yet")
        return cls(
            quotation_id=request.id,
            created_at=request.created_at,
            customer_email=identity.email,
            article_number=request.article_number,
            model=request.model,
            quantity=request.quantity,
            price=request.price,
            lead_time=request.lead_time,
            customer_company_name=profile.company_name,
            customer_full_name=profile.full_name,
        )


@dataclass(frozen=True)
class Attachment:
    content: bytes
    filename: str
    content_type: str = "application/pdf"


@dataclass
class OutboundEmail:
    to: str
    subject: str
    html: str
    attachments: list = field(default_factory=list)
