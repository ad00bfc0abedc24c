"""Quotation Document Rendering"""
from .quotation_pdf import QuotationPDFRenderer, build_layout

__all__ = ["QuotationPDFRenderer", "build_layout"]
