"""Pricing services package"""

from api.services.prices.price_service import PriceApiService, price_service, resolve_chain

__all__ = ["PriceApiService", "price_service", "resolve_chain"]
