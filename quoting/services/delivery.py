# --------------------------- quoting/services/delivery.py ----------------------------
"""
Spare-Parts Quotation · Outbound Email Delivery

OVERVIEW:
Sends HTML emails with binary attachments. Used for the customer's
quotation PDF and for the operator's new-request notification.

BUSINESS LOGIC:
- One send attempt per call; no retry or backoff here
- Any transport error surfaces as DeliveryFailed

DEPENDENCIES:
- Resend API
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import resend

from quoting.errors import DeliveryFailed
from quoting.models import OutboundEmail

logger = logging.getLogger(__name__)


class DeliveryGateway(ABC):

    @abstractmethod
    def send(self, message: OutboundEmail) -> Optional[str]:
        """
        Send one email.

        RETURNS:
            Provider message id, if the provider returns one

        RAISES:
            DeliveryFailed: the transport rejected or could not send it
        """


class ResendDeliveryGateway(DeliveryGateway):
    """
    Resend-backed gateway.

    ``client`` defaults to the resend module; the API key is set on it when
    the gateway is built, not at import time.
    """

    def __init__(self, api_key: str, sender: str, client=None):
        self.sender = sender
        self.client = client if client is not None else resend
        self.client.api_key = api_key

    def send(self, message: OutboundEmail) -> Optional[str]:
        params = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.attachments:
            params["attachments"] = [
                {
                    "filename": a.filename,
                    "content": list(a.content),
                    "content_type": a.content_type,
                }
                for a in message.attachments
            ]

        try:
            response = self.client.Emails.send(params)
        except Exception as e:
            raise DeliveryFailed(f"Failed to send email to {message.to}: {e}") from e

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"Email sent to {message.to} ({len(message.attachments)} attachments): {message_id}")
        return message_id
