# --------------------------- quoting/api/webhook.py ----------------------------
"""
Spare-Parts Quotation · Inbound Reply Webhook

OVERVIEW:
HTTP endpoint the inbound-email provider posts operator replies to
(multipart/form-data, plain-text body in the ``text`` field).

ACKNOWLEDGMENT POLICY:
- 400 only when the ``text`` field is absent: the event cannot be read
- 200 for every processed event, including parse and pipeline failures,
  so the provider does not redeliver the same reply indefinitely
- 500 only for an exception that escaped the fulfillment agent

DEPENDENCIES:
- Flask
- FulfillmentOrchestrator (injected into create_app)
"""

import logging

from flask import Flask, jsonify, request

from quoting.agents.reply_fulfillment import FulfillmentOrchestrator

logger = logging.getLogger(__name__)


def create_app(orchestrator: FulfillmentOrchestrator) -> Flask:
    app = Flask(__name__)

    @app.route("/api/email-reply", methods=["POST"])
    def email_reply():
        logger.info("--- Received inbound reply webhook ---")
        logger.debug(f"Form fields: {sorted(request.form.keys())}, files: {sorted(request.files.keys())}")

        text = request.form.get("text")
        if text is None:
            logger.error('No "text" field found in the form data.')
            return jsonify({"error": "Missing email text body"}), 400

        try:
            outcome = orchestrator.process(text)
        except Exception:
            logger.exception("Error processing inbound reply webhook")
            return jsonify({"error": "Failed to process webhook"}), 500

        if not outcome.ok:
            logger.error(
                f"Acknowledging receipt but processing failed: "
                f"[{outcome.error.kind.value}] {outcome.error.message}"
            )
        for warning in outcome.warnings:
            logger.warning(f"Needs reconciliation: [{warning.kind.value}] {warning.message}")

        return jsonify({"message": "Webhook received successfully"}), 200

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return app


def main():
    """Run the webhook with clients built from the environment."""
    from config.settings import Settings
    from quoting.clients import build_orchestrator

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = create_app(build_orchestrator(settings))
    app.run(host=settings.webhook_host, port=settings.webhook_port)


if __name__ == "__main__":
    main()
