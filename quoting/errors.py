# --------------------------- quoting/errors.py ----------------------------
"""
Spare-Parts Quotation · Fulfillment Error Taxonomy

Every failure a fulfillment attempt can hit is one of the kinds below.
They are raised inside the pipeline steps and caught by the fulfillment
agent, which logs them and reports them in the attempt outcome. Only the
webhook's structural check (missing ``text`` field) ever reaches the
inbound caller as an error.

KIND                 STATE AFTER FAILURE
ExtractionIncomplete unchanged (no mutation)
InvalidPrice         unchanged (no mutation)
RequestNotFound      unchanged (no row matched)
PersistenceFailed    unchanged (store rejected the update)
AggregationFailed    processing
RenderingFailed      processing
DeliveryFailed       processing
FinalizationFailed   processing, document already delivered
"""

from enum import Enum
from typing import Iterable, Tuple

from quoting.models import ExtractionFailure, ReplyField


class FailureKind(Enum):
    EXTRACTION_INCOMPLETE = "extraction_incomplete"
    INVALID_PRICE = "invalid_price"
    REQUEST_NOT_FOUND = "request_not_found"
    PERSISTENCE_FAILED = "persistence_failed"
    AGGREGATION_FAILED = "aggregation_failed"
    RENDERING_FAILED = "rendering_failed"
    DELIVERY_FAILED = "delivery_failed"
    FINALIZATION_FAILED = "finalization_failed"


class FulfillmentError(Exception):
    """Base class for all fulfillment failures."""
    kind: FailureKind

    def __init__(self, message: str, quotation_id: str = None):
        super().__init__(message)
        self.message = message
        self.quotation_id = quotation_id

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "quotation_id": self.quotation_id,
        }


class ExtractionIncomplete(FulfillmentError):
    kind = FailureKind.EXTRACTION_INCOMPLETE

    def __init__(self, failures: Iterable[ExtractionFailure]):
        self.failures: Tuple[ExtractionFailure, ...] = tuple(failures)
        super().__init__("; ".join(f.describe() for f in self.failures))

    @property
    def fields(self) -> Tuple[ReplyField, ...]:
        return tuple(f.field for f in self.failures)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = [f.value for f in self.fields]
        return data


class InvalidPrice(FulfillmentError):
    kind = FailureKind.INVALID_PRICE

    def __init__(self, price_text: str, quotation_id: str = None):
        super().__init__(f'Invalid price format: "{price_text}"', quotation_id)
        self.price_text = price_text


class RequestNotFound(FulfillmentError):
    kind = FailureKind.REQUEST_NOT_FOUND


class PersistenceFailed(FulfillmentError):
    """The store rejected the reply update itself (not a missing row)."""
    kind = FailureKind.PERSISTENCE_FAILED


class AggregationFailed(FulfillmentError):
    kind = FailureKind.AGGREGATION_FAILED


class RenderingFailed(FulfillmentError):
    kind = FailureKind.RENDERING_FAILED


class DeliveryFailed(FulfillmentError):
    kind = FailureKind.DELIVERY_FAILED


class FinalizationFailed(FulfillmentError):
    kind = FailureKind.FINALIZATION_FAILED
