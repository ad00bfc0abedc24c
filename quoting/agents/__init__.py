"""Fulfillment Agent Module"""
from .reply_fulfillment import FulfillmentOrchestrator, FulfillmentOutcome

__all__ = ["FulfillmentOrchestrator", "FulfillmentOutcome"]
