"""Spare-parts quotation reply fulfillment."""

__version__ = "0.1.0"
