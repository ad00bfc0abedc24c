"""Persistence, delivery and intake services"""
from .delivery import DeliveryGateway, ResendDeliveryGateway
from .intake import ProductRequest, QuotationIntake
from .quotation_repository import QuotationRepository, SupabaseQuotationRepository

__all__ = ["DeliveryGateway", "ResendDeliveryGateway", "ProductRequest", "QuotationIntake",
           "QuotationRepository", "SupabaseQuotationRepository"]
