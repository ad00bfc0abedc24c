"""
Request intake tests: pending rows plus the operator notification.
"""
import pytest

from quoting.errors import DeliveryFailed
from quoting.models import Attachment, QuotationStatus
from quoting.services.intake import ProductRequest, QuotationIntake, reply_block
from quoting.utils.reply_parser import extract_reply_fields
from tests.conftest import CUSTOMER_EMAIL, USER_ID

OPERATOR = "operador@gruponsr.mx"


@pytest.fixture
def intake(repository, gateway):
    return QuotationIntake(repository, gateway, notification_email=OPERATOR)


def product(**overrides):
    data = dict(article_number="ZA-114523", model="FN063-SDQ.4I.V7P1", quantity=2,
                delivery_place="Monterrey, NL")
    data.update(overrides)
    return ProductRequest(**data)


def test_submit_creates_pending_requests(intake, repository):
    created = intake.submit(USER_ID, [product(), product(article_number="ZA-000001", quantity=5)])

    assert len(created) == 2
    for request in created:
        assert repository.requests[request.id].status == QuotationStatus.PENDING
        assert request.user_id == USER_ID
        assert request.price is None and request.lead_time is None
    assert [r.quantity for r in created] == [2, 5]


def test_notification_contains_reply_block_per_request(intake, gateway):
    created = intake.submit(USER_ID, [product(comments="urgente"), product(model="FN050")])

    assert len(gateway.sent) == 1
    message = gateway.sent[0]
    assert message.to == OPERATOR
    assert message.subject == "New Quotation Request"
    assert "Ana López" in message.html
    assert "Acme Industrial" in message.html
    assert CUSTOMER_EMAIL in message.html
    assert "urgente" in message.html
    for request in created:
        assert f"Quotation ID: {request.id}" in message.html


def test_filled_notification_block_parses(intake, gateway):
    created = intake.submit(USER_ID, [product()])

    filled = reply_block(created[0].id).replace("Price:", "Price: 75").replace("Lead Time:", "Lead Time: 2 weeks")
    parsed = extract_reply_fields(filled)

    assert parsed.ok
    assert parsed.quotation_id == created[0].id


def test_images_are_forwarded_as_attachments(intake, gateway):
    image = Attachment(b"\xff\xd8\xff", "placa.jpg", "image/jpeg")

    intake.submit(USER_ID, [product()], images=[image])

    message = gateway.sent[0]
    assert message.attachments == [image]
    assert "placa.jpg" in message.html


def test_unknown_profile_falls_back_to_placeholder(intake, repository, gateway):
    repository.profiles.clear()
    repository.identities.clear()

    intake.submit(USER_ID, [product()])

    assert gateway.sent[0].html.count("N/A") == 3


@pytest.mark.parametrize("count", [0, 3])
def test_product_count_is_limited(intake, repository, count):
    with pytest.raises(ValueError):
        intake.submit(USER_ID, [product() for _ in range(count)])

    assert "create_requests" not in repository.calls


@pytest.mark.parametrize("overrides", [
    {"quantity": 0},
    {"article_number": ""},
    {"delivery_place": ""},
])
def test_invalid_product_is_rejected(overrides):
    with pytest.raises(ValueError):
        product(**overrides)


def test_notification_failure_propagates(intake, repository, gateway):
    gateway.fail = True

    with pytest.raises(DeliveryFailed):
        intake.submit(USER_ID, [product()])

    assert "create_requests" in repository.calls
