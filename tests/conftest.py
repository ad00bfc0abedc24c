"""
Shared pytest fixtures for the quotation fulfillment test suite.

The Supabase store and the Resend transport are replaced with in-memory
fakes that implement the same contracts, so every pipeline step runs for
real without network access.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from quoting.agents.reply_fulfillment import FulfillmentOrchestrator
from quoting.errors import DeliveryFailed, RequestNotFound
from quoting.models import (
    CustomerProfile,
    OutboundEmail,
    QuotationRequest,
    QuotationStatus,
    UserIdentity,
)
from quoting.rendering.quotation_pdf import QuotationPDFRenderer
from quoting.services.delivery import DeliveryGateway
from quoting.services.quotation_repository import QuotationRepository

QUOTATION_ID = "123e4567-e89b-12d3-a456-426614174000"
USER_ID = "9b2f4c1e-5d6a-4e3b-8c7d-0a1b2c3d4e5f"
CUSTOMER_EMAIL = "compras@acme.mx"

VALID_REPLY = f"Quotation ID: {QUOTATION_ID}\nPrice: 50\nLead Time: 3 days"


class InMemoryQuotationRepository(QuotationRepository):
    """Dict-backed store with switchable failures per operation."""

    def __init__(self):
        self.requests: Dict[str, QuotationRequest] = {}
        self.profiles: Dict[str, CustomerProfile] = {}
        self.identities: Dict[str, UserIdentity] = {}
        self.fail_on: set = set()
        self.calls: List[str] = []

    def _enter(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise ConnectionError(f"simulated {name} failure")

    def record_reply(self, quotation_id, price, lead_time, require_pending=False):
        self._enter("record_reply")
        request = self.requests.get(quotation_id)
        if request is None or (require_pending and request.status != QuotationStatus.PENDING):
            raise RequestNotFound(
                f"Quotation request with ID {quotation_id} not found for update.", quotation_id
            )
        request.price = Decimal(price)
        request.lead_time = lead_time
        request.status = QuotationStatus.PROCESSING
        return request

    def get_request(self, quotation_id) -> Optional[QuotationRequest]:
        self._enter("get_request")
        return self.requests.get(quotation_id)

    def get_profile(self, user_id) -> Optional[CustomerProfile]:
        self._enter("get_profile")
        return self.profiles.get(user_id)

    def get_user_identity(self, user_id) -> Optional[UserIdentity]:
        self._enter("get_user_identity")
        return self.identities.get(user_id)

    def set_status(self, quotation_id, status):
        self._enter("set_status")
        self.requests[quotation_id].status = status

    def create_requests(self, rows):
        self._enter("create_requests")
        created = []
        for row in rows:
            request = QuotationRequest(
                id=str(uuid.uuid4()),
                status=QuotationStatus.PENDING,
                created_at=datetime.now(timezone.utc),
                **row,
            )
            self.requests[request.id] = request
            created.append(request)
        return created


class RecordingGateway(DeliveryGateway):
    """Keeps every sent email; can be told to reject sends."""

    def __init__(self):
        self.sent: List[OutboundEmail] = []
        self.fail = False

    def send(self, message: OutboundEmail):
        if self.fail:
            raise DeliveryFailed(f"Failed to send email to {message.to}: 550 mailbox unavailable")
        self.sent.append(message)
        return f"msg_{len(self.sent)}"


def make_request(**overrides) -> QuotationRequest:
    data = dict(
        id=QUOTATION_ID,
        user_id=USER_ID,
        article_number="ZA-114523",
        model="FN063-SDQ.4I.V7P1",
        quantity=3,
        delivery_place="Monterrey, NL",
        status=QuotationStatus.PENDING,
        created_at=datetime(2025, 3, 7, 10, 30, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return QuotationRequest(**data)


@pytest.fixture
def repository():
    repo = InMemoryQuotationRepository()
    repo.requests[QUOTATION_ID] = make_request()
    repo.profiles[USER_ID] = CustomerProfile(USER_ID, full_name="Ana López", company_name="Acme Industrial")
    repo.identities[USER_ID] = UserIdentity(USER_ID, CUSTOMER_EMAIL)
    return repo


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def renderer():
    return QuotationPDFRenderer(logo_path=None, compress=False)


@pytest.fixture
def orchestrator(repository, renderer, gateway):
    return FulfillmentOrchestrator(repository, renderer, gateway)
