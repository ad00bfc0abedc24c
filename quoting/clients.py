# --------------------------- quoting/clients.py ----------------------------
"""
Client construction for the quotation service.

Every external client is built here from an explicit Settings object and
handed to the components that need it. Nothing is created at import time.
"""

import logging

from supabase import Client, create_client

from config.settings import Settings
from quoting.agents.reply_fulfillment import FulfillmentOrchestrator
from quoting.rendering.quotation_pdf import QuotationPDFRenderer
from quoting.services.delivery import ResendDeliveryGateway
from quoting.services.intake import QuotationIntake
from quoting.services.quotation_repository import SupabaseQuotationRepository

logger = logging.getLogger(__name__)


def _require(settings: Settings):
    missing = settings.missing()
    if missing:
        raise RuntimeError(f"Missing configuration. Set env vars: {', '.join(missing)}")


def create_supabase_client(settings: Settings) -> Client:
    """Service-role client; bypasses RLS for back-office updates."""
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


def build_orchestrator(settings: Settings) -> FulfillmentOrchestrator:
    _require(settings)
    repository = SupabaseQuotationRepository(create_supabase_client(settings))
    gateway = ResendDeliveryGateway(settings.resend_api_key, settings.from_email)
    renderer = QuotationPDFRenderer(logo_path=settings.logo_path)
    logger.info(f"Fulfillment pipeline ready (require_pending={settings.require_pending})")
    return FulfillmentOrchestrator(
        repository, renderer, gateway, require_pending=settings.require_pending
    )


def build_intake(settings: Settings) -> QuotationIntake:
    _require(settings)
    if not settings.notification_email:
        raise RuntimeError("Missing configuration. Set env vars: NOTIFICATION_EMAIL")
    client = create_supabase_client(settings)
    return QuotationIntake(
        SupabaseQuotationRepository(client),
        ResendDeliveryGateway(settings.resend_api_key, settings.from_email),
        notification_email=settings.notification_email,
    )
