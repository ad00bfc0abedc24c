# quoting/utils/__init__.py
"""
Spare-Parts Quotation - Utilities Package

Text helpers used by the fulfillment pipeline.
"""

from .reply_parser import coerce_price, extract_reply_fields, load_reply_text

__all__ = ['extract_reply_fields', 'coerce_price', 'load_reply_text']
