"""Pricing router bindings."""

from __future__ import annotations

from collections.abc import Sequence

from api.router_registry.base import RouterBinding
from api.routers.prices import prices as price_routes


def get_price_router_bindings() -> Sequence[RouterBinding]:
    return (RouterBinding(price_routes.router, tags=("Prices",)),)
