# --------------------------- quoting/services/intake.py ----------------------------
"""
Spare-Parts Quotation · Request Intake

OVERVIEW:
Records a customer's part request(s) as pending quotation requests and
notifies the back-office operator by email. The notification carries one
literal reply block per request, which the operator fills in and sends
back; that reply is what the fulfillment agent parses.

WORKFLOW:
1. Validate product count and quantities
2. Insert one pending quotation_requests row per product
3. Look up the customer's profile and email for the notification
4. Email the operator with product details, reply blocks and any images

BUSINESS LOGIC:
- At most two products per submission, one request row each
- Images are forwarded as attachments only, never stored
- Authentication happens upstream; user_id is trusted here

DEPENDENCIES:
- QuotationRepository for persistence
- DeliveryGateway for the operator email
- Jinja2 for the notification template
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from jinja2 import Environment

from config.settings import MAX_PRODUCTS_PER_REQUEST
from quoting.models import Attachment, OutboundEmail, QuotationRequest
from quoting.services.delivery import DeliveryGateway
from quoting.services.quotation_repository import QuotationRepository

logger = logging.getLogger(__name__)


NOTIFICATION_TEMPLATE = """
<h2>New Quotation Request</h2>

<h3>User Information</h3>
<p><strong>Name:</strong> {{ full_name }}</p>
<p><strong>Company:</strong> {{ company_name }}</p>
<p><strong>Email:</strong> {{ email }}</p>

{% for request in requests %}
<h3>Product {{ loop.index }}</h3>
<p><strong>Article Number:</strong> {{ request.article_number }}</p>
<p><strong>Model:</strong> {{ request.model }}</p>
<p><strong>Quantity:</strong> {{ request.quantity }}</p>
<p><strong>Delivery Place:</strong> {{ request.delivery_place }}</p>
{% if request.comments %}<p><strong>Comments:</strong> {{ request.comments }}</p>{% endif %}
<p>Reply to this email keeping the lines below, filling in price and lead time:</p>
<pre>
Quotation ID: {{ request.id }}
Price:
Lead Time:
</pre>
{% endfor %}
{% if image_names %}<p><strong>Images Attached:</strong> {{ image_names | join(", ") }}</p>{% endif %}
"""


@dataclass(frozen=True)
class ProductRequest:
    """One product line from the customer's request form."""
    article_number: str
    model: str
    quantity: int
    delivery_place: str
    comments: Optional[str] = None

    def __post_init__(self):
        if not self.article_number or not self.model or not self.delivery_place:
            raise ValueError("article_number, model and delivery_place are required")
        if int(self.quantity) < 1:
            raise ValueError(f"Quantity must be at least 1, got {self.quantity!r}")


def reply_block(quotation_id: str) -> str:
    """The literal lines the operator must keep in the reply."""
    return f"Quotation ID: {quotation_id}\nPrice:\nLead Time:\n"


class QuotationIntake:

    def __init__(self, repository: QuotationRepository, gateway: DeliveryGateway,
                 notification_email: str):
        self.repository = repository
        self.gateway = gateway
        self.notification_email = notification_email
        self.jinja_env = Environment(autoescape=True)

    def submit(self, user_id: str, products: Sequence[ProductRequest],
               images: Sequence[Attachment] = ()) -> List[QuotationRequest]:
        """
        Create pending requests and notify the operator.

        ARGS:
            user_id: authenticated customer id
            products: one or two ProductRequest values
            images: optional product images to forward

        RETURNS:
            The created QuotationRequest records

        RAISES:
            ValueError: wrong product count
            DeliveryFailed: requests were stored but the notification failed
        """
        if not 1 <= len(products) <= MAX_PRODUCTS_PER_REQUEST:
            raise ValueError(
                f"Expected 1 to {MAX_PRODUCTS_PER_REQUEST} products, got {len(products)}"
            )

        rows = [
            {
                "user_id": user_id,
                "article_number": p.article_number,
                "model": p.model,
                "quantity": int(p.quantity),
                "delivery_place": p.delivery_place,
                "comments": p.comments,
            }
            for p in products
        ]
        requests = self.repository.create_requests(rows)
        logger.info(f"Created {len(requests)} quotation request(s) for user {user_id}: "
                    f"{[r.short_id for r in requests]}")

        profile = self.repository.get_profile(user_id)
        identity = self.repository.get_user_identity(user_id)

        html = self.jinja_env.from_string(NOTIFICATION_TEMPLATE).render(
            full_name=(profile.full_name if profile else None) or "N/A",
            company_name=(profile.company_name if profile else None) or "N/A",
            email=identity.email if identity else "N/A",
            requests=requests,
            image_names=[i.filename for i in images],
        )

        self.gateway.send(OutboundEmail(
            to=self.notification_email,
            subject="New Quotation Request",
            html=html,
            attachments=list(images),
        ))
        return requests
