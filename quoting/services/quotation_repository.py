# --------------------------- quoting/services/quotation_repository.py ----------------------------
"""
Spare-Parts Quotation · Quotation Repository

OVERVIEW:
Persistence contract for quotation requests, customer profiles and user
identities, plus the Supabase implementation used in production.

TABLES:
- quotation_requests  keyed by id (uuid)
- profiles            keyed by user id, full_name + company_name
- auth.users          email, read through the admin API

TECHNICAL ARCHITECTURE:
- The Supabase client is constructed by the caller and injected
- Row-level atomicity of PostgREST updates is relied on for the reply update
- Optional status guard turns the reply update into a compare-and-swap
  on status = 'pending'

DEPENDENCIES:
- supabase-py (service role key, bypasses RLS)
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from supabase import Client

from quoting.errors import RequestNotFound
from quoting.models import (
    CustomerProfile,
    QuotationRequest,
    QuotationStatus,
    UserIdentity,
)

logger = logging.getLogger(__name__)

REQUESTS_TABLE = "quotation_requests"
PROFILES_TABLE = "profiles"


class QuotationRepository(ABC):
    """Store operations the fulfillment pipeline and intake rely on."""

    @abstractmethod
    def record_reply(self, quotation_id: str, price: Decimal, lead_time: str,
                     require_pending: bool = False) -> QuotationRequest:
        """
        Set price, lead time and status 'processing' on one request.

        RAISES:
            RequestNotFound: no row matched the id (or, with require_pending,
                the row is no longer pending)
        """

    @abstractmethod
    def get_request(self, quotation_id: str) -> Optional[QuotationRequest]:
        """Point lookup by id; None when no row exists."""

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[CustomerProfile]:
        """Point lookup of the owning user's profile; None when missing."""

    @abstractmethod
    def get_user_identity(self, user_id: str) -> Optional[UserIdentity]:
        """Owning user's contact email; None when the user has no email."""

    @abstractmethod
    def set_status(self, quotation_id: str, status: QuotationStatus) -> None:
        """Write a lifecycle status for one request."""

    @abstractmethod
    def create_requests(self, rows: List[Dict]) -> List[QuotationRequest]:
        """Insert pending requests and return them with their generated ids."""


class SupabaseQuotationRepository(QuotationRepository):
    """
    Supabase-backed repository.

    Every call goes straight to PostgREST; nothing is cached.
    """

    def __init__(self, client: Client):
        self.client = client

    def record_reply(self, quotation_id: str, price: Decimal, lead_time: str,
                     require_pending: bool = False) -> QuotationRequest:
        query = self.client.table(REQUESTS_TABLE).update({
            "price": str(price),
            "lead_time": lead_time,
            "status": QuotationStatus.PROCESSING.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", quotation_id)

        if require_pending:
            query = query.eq("status", QuotationStatus.PENDING.value)

        result = query.execute()

        if not result.data:
            detail = " in status 'pending'" if require_pending else ""
            raise RequestNotFound(
                f"Quotation request with ID {quotation_id}{detail} not found for update.",
                quotation_id,
            )

        updated = QuotationRequest.from_row(result.data[0])
        logger.info(f"Recorded reply for {updated.id}: status={updated.status.value}")
        return updated

    def get_request(self, quotation_id: str) -> Optional[QuotationRequest]:
        result = (
            self.client.table(REQUESTS_TABLE)
            .select("*")
            .eq("id", quotation_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return QuotationRequest.from_row(result.data[0])

    def get_profile(self, user_id: str) -> Optional[CustomerProfile]:
        result = (
            self.client.table(PROFILES_TABLE)
            .select("id, full_name, company_name")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return CustomerProfile.from_row(result.data[0])

    def get_user_identity(self, user_id: str) -> Optional[UserIdentity]:
        response = self.client.auth.admin.get_user_by_id(user_id)
        user = getattr(response, "user", None)
        if user is None or not getattr(user, "email", None):
            return None
        return UserIdentity(user_id=user_id, email=user.email)

    def set_status(self, quotation_id: str, status: QuotationStatus) -> None:
        self.client.table(REQUESTS_TABLE).update({
            "status": status.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", quotation_id).execute()
        logger.info(f"Status updated to '{status.value}' for {quotation_id}")

    def create_requests(self, rows: List[Dict]) -> List[QuotationRequest]:
        payload = [{**row, "status": QuotationStatus.PENDING.value} for row in rows]
        result = self.client.table(REQUESTS_TABLE).insert(payload).execute()
        created = [QuotationRequest.from_row(r) for r in (result.data or [])]
        if len(created) != len(payload):
            raise RuntimeError(
                f"Expected {len(payload)} inserted quotation requests, got {len(created)}"
            )
        return created
