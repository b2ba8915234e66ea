"""Insights route package exports."""

from backend.app.routes.insights.query_route import router as query_router
from backend.app.routes.insights.saved_route import cart_router, dashboard_router, pins_router

__all__ = ["query_router", "pins_router", "dashboard_router", "cart_router"]
