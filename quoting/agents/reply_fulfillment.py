# --------------------------- quoting/agents/reply_fulfillment.py ----------------------------
"""
Spare-Parts Quotation · Reply Fulfillment Agent (LangGraph)

OVERVIEW:
Drives one fulfillment attempt for an operator's reply: parse the reply,
record the quoted price and lead time, build the quotation PDF, email it to
the customer and mark the request completed.

WORKFLOW:
1. extract_fields: Quotation ID / Price / Lead Time from the body
2. coerce_price: price text to Decimal
3. persist_reply: price + lead time + status 'processing'
4. aggregate_context: re-fetch request, profile and customer email
5. render_document: quotation PDF
6. deliver_document: email PDF to the customer
7. finalize: status 'completed'

BUSINESS LOGIC:
- pending --(reply parsed and persisted)--> processing --(delivered)--> completed
- Any failing step ends the attempt; the status it reached is kept so a
  later attempt or manual resend can pick it up
- Steps 1-2 never touch the database
- A failed completed-status write after delivery is only logged; the
  customer already has the document, so nothing is re-sent
- No de-duplication: replaying the same reply re-sends the document
  unless the pending-status guard is enabled

TECHNICAL ARCHITECTURE:
- LangGraph state machine, one node per step, routing to END on error
- Repository, renderer and gateway are injected, never module globals
- Each node catches its own failures and converts them to FulfillmentError
- One attempt per call; no retries or locks

DEPENDENCIES:
- langgraph for the state machine
- jinja2 for the customer email body
"""

import json
import logging
import sys
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from jinja2 import Environment
from langgraph.graph import END, StateGraph
from typing_extensions import TypedDict

from quoting.errors import (
    AggregationFailed,
    DeliveryFailed,
    ExtractionIncomplete,
    FinalizationFailed,
    FulfillmentError,
    PersistenceFailed,
    RenderingFailed,
)
from quoting.models import (
    Attachment,
    OutboundEmail,
    ParsedReply,
    QuotationDocumentContext,
    QuotationRequest,
    QuotationStatus,
)
from quoting.rendering.quotation_pdf import QuotationPDFRenderer
from quoting.services.delivery import DeliveryGateway
from quoting.services.quotation_repository import QuotationRepository
from quoting.utils.reply_parser import coerce_price, extract_reply_fields, load_reply_text

logger = logging.getLogger(__name__)


CUSTOMER_EMAIL_TEMPLATE = """
<p>Dear {{ customer_name }},</p>
<p>Please find your requested quotation attached.</p>
<p>Quotation Reference: {{ quotation_id }}</p>
<p>Thank you for your inquiry.</p>
<br>
<p>Best regards,</p>
<p>{{ issuer_name }}</p>
"""

ISSUER_NAME = "Grupo NSR HVAC y Control S.A. de C.V."


class FulfillmentState(TypedDict, total=False):
    """
    State for one fulfillment attempt.

    FIELDS:
    - raw_text: inbound email body
    - parsed: ParsedReply from the extractor
    - quotation_id: id named in the reply
    - price: coerced Decimal price
    - request: request row after the reply update / re-fetch
    - context: aggregated document context
    - document: rendered PDF bytes
    - message_id: provider id of the delivered email
    - delivered: the customer email was accepted by the transport
    - status: last lifecycle status this attempt reached
    - error: terminal FulfillmentError, if any
    - warnings: non-terminal FulfillmentErrors (finalization)
    """
    raw_text: str
    parsed: Optional[ParsedReply]
    quotation_id: Optional[str]
    price: Optional[Decimal]
    request: Optional[QuotationRequest]
    context: Optional[QuotationDocumentContext]
    document: Optional[bytes]
    message_id: Optional[str]
    delivered: bool
    status: Optional[QuotationStatus]
    error: Optional[FulfillmentError]
    warnings: List[FulfillmentError]


@dataclass
class FulfillmentOutcome:
    """What one attempt achieved, for the webhook log and for tests."""
    quotation_id: Optional[str] = None
    status: Optional[QuotationStatus] = None
    delivered: bool = False
    message_id: Optional[str] = None
    error: Optional[FulfillmentError] = None
    warnings: List[FulfillmentError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict:
        return {
            "quotation_id": self.quotation_id,
            "status": self.status.value if self.status else None,
            "delivered": self.delivered,
            "message_id": self.message_id,
            "error": self.error.to_dict() if self.error else None,
            "warnings": [w.to_dict() for w in self.warnings],
        }


class FulfillmentOrchestrator:
    """
    Reply fulfillment pipeline.

    ARGS:
        repository: quotation store
        renderer: quotation PDF renderer
        gateway: outbound email transport
        require_pending: only accept replies for requests still 'pending'
    """

    def __init__(self, repository: QuotationRepository, renderer: QuotationPDFRenderer,
                 gateway: DeliveryGateway, require_pending: bool = False):
        self.repository = repository
        self.renderer = renderer
        self.gateway = gateway
        self.require_pending = require_pending
        self.jinja_env = Environment(autoescape=True)
        self.graph = self._build_graph()

    # ╔══════════ Node Functions ═══════════════════════════════════════

    def _fail(self, error: FulfillmentError) -> Dict:
        logger.error(f"Fulfillment failed [{error.kind.value}] {error.message}")
        return {"error": error}

    def extract_fields(self, state: FulfillmentState) -> Dict:
        parsed = extract_reply_fields(state.get("raw_text", ""))
        if not parsed.ok:
            return {"parsed": parsed, **self._fail(ExtractionIncomplete(parsed.failures))}

        logger.info(
            f"Parsed reply: quotation_id={parsed.quotation_id} "
            f"price={parsed.price_text!r} lead_time={parsed.lead_time!r}"
        )
        return {"parsed": parsed, "quotation_id": parsed.quotation_id}

    def parse_price(self, state: FulfillmentState) -> Dict:
        parsed = state["parsed"]
        try:
            price = coerce_price(parsed.price_text, parsed.quotation_id)
        except FulfillmentError as e:
            return self._fail(e)
        return {"price": price}

    def persist_reply(self, state: FulfillmentState) -> Dict:
        quotation_id = state["quotation_id"]
        try:
            request = self.repository.record_reply(
                quotation_id,
                state["price"],
                state["parsed"].lead_time,
                require_pending=self.require_pending,
            )
        except FulfillmentError as e:
            return self._fail(e)
        except Exception as e:
            return self._fail(PersistenceFailed(f"Reply update failed: {e}", quotation_id))

        return {"request": request, "status": QuotationStatus.PROCESSING}

    def aggregate_context(self, state: FulfillmentState) -> Dict:
        """Re-fetch the request, then its profile and customer email."""
        quotation_id = state["quotation_id"]
        try:
            request = self.repository.get_request(quotation_id)
            if request is None:
                raise AggregationFailed(
                    f"Failed to fetch full request data for ID {quotation_id} after update.",
                    quotation_id,
                )

            profile = self.repository.get_profile(request.user_id)
            if profile is None:
                raise AggregationFailed(
                    f"Failed to fetch profile data for user ID {request.user_id}.", quotation_id
                )

            identity = self.repository.get_user_identity(request.user_id)
            if identity is None:
                raise AggregationFailed(
                    f"Failed to fetch user email for user ID {request.user_id}.", quotation_id
                )

            context = QuotationDocumentContext.assemble(request, profile, identity)
        except FulfillmentError as e:
            return self._fail(e)
        except Exception as e:
            return self._fail(AggregationFailed(f"Aggregation failed: {e}", quotation_id))

        return {"request": request, "context": context}

    def render_document(self, state: FulfillmentState) -> Dict:
        context = state["context"]
        try:
            document = self.renderer.render(context)
        except FulfillmentError as e:
            return self._fail(e)
        except Exception as e:
            return self._fail(RenderingFailed(f"Failed to generate PDF: {e}", context.quotation_id))
        return {"document": document}

    def deliver_document(self, state: FulfillmentState) -> Dict:
        context = state["context"]
        message = OutboundEmail(
            to=context.customer_email,
            subject=f"Your Quotation is Ready - Ref: {context.short_id}",
            html=self.jinja_env.from_string(CUSTOMER_EMAIL_TEMPLATE).render(
                customer_name=context.customer_full_name or "Customer",
                quotation_id=context.quotation_id,
                issuer_name=ISSUER_NAME,
            ),
            attachments=[Attachment(
                content=state["document"],
                filename=f"Quotation_{context.short_id}.pdf",
                content_type="application/pdf",
            )],
        )

        logger.info(f"Sending quotation {context.short_id} to {context.customer_email}")
        try:
            message_id = self.gateway.send(message)
        except DeliveryFailed as e:
            e.quotation_id = context.quotation_id
            return self._fail(e)
        except Exception as e:
            return self._fail(DeliveryFailed(f"Delivery failed: {e}", context.quotation_id))
        return {"message_id": message_id, "delivered": True}

    def finalize(self, state: FulfillmentState) -> Dict:
        quotation_id = state["quotation_id"]
        try:
            self.repository.set_status(quotation_id, QuotationStatus.COMPLETED)
        except Exception as e:
            warning = FinalizationFailed(
                f"Document delivered but status update to 'completed' failed: {e}", quotation_id
            )
            logger.error(f"[{warning.kind.value}] {warning.message} (not re-sent)")
            return {"warnings": list(state.get("warnings", [])) + [warning]}
        return {"status": QuotationStatus.COMPLETED}

    # ╔══════════ Build Workflow ═══════════════════════════════════════

    def _build_graph(self):
        """
        Build the fulfillment workflow.

        Each step routes to the next one, or to END once an error is set.
        """
        steps = [
            ("extract_fields", self.extract_fields),
            ("coerce_price", self.parse_price),
            ("persist_reply", self.persist_reply),
            ("aggregate_context", self.aggregate_context),
            ("render_document", self.render_document),
            ("deliver_document", self.deliver_document),
            ("finalize", self.finalize),
        ]

        workflow = StateGraph(FulfillmentState)
        for name, node in steps:
            workflow.add_node(name, node)

        for (name, _), (next_name, _) in zip(steps, steps[1:]):
            workflow.add_conditional_edges(name, _continue_unless_error(next_name))

        workflow.set_entry_point(steps[0][0])
        workflow.set_finish_point(steps[-1][0])
        return workflow.compile()

    # ╔══════════ Entry Point ═══════════════════════════════════════

    def process(self, raw_text: str) -> FulfillmentOutcome:
        """
        Run one fulfillment attempt for an inbound reply body.

        Never raises for pipeline failures; they are logged and returned
        in the outcome.
        """
        result = self.graph.invoke({"raw_text": raw_text or "", "delivered": False, "warnings": []})

        outcome = FulfillmentOutcome(
            quotation_id=result.get("quotation_id"),
            status=result.get("status"),
            delivered=result.get("delivered", False),
            message_id=result.get("message_id"),
            error=result.get("error"),
            warnings=list(result.get("warnings", [])),
        )

        if outcome.ok:
            logger.info(
                f"Fulfillment finished for {outcome.quotation_id}: status={outcome.status.value}"
            )
        return outcome


def _continue_unless_error(next_node: str):
    def route(state: FulfillmentState) -> str:
        return END if state.get("error") else next_node
    return route


# ╔══════════ CLI Interface ═══════════════════════════════════════

def main():
    """Replay a saved operator reply (.txt or .eml) through the pipeline."""
    if len(sys.argv) < 2:
        print("Usage: python -m quoting.agents.reply_fulfillment <reply.txt|reply.eml>")
        sys.exit(1)

    from config.settings import Settings
    from quoting.clients import build_orchestrator

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    orchestrator = build_orchestrator(settings)
    outcome = orchestrator.process(load_reply_text(sys.argv[1]))

    print(json.dumps(outcome.to_dict(), indent=2))
    sys.exit(0 if outcome.ok else 2)


if __name__ == "__main__":
    main()
