"""Main API router aggregator."""
from fastapi import APIRouter

from app.core import settings as app_settings
from .routes import analysis, audit, auth, customers, management, offers, telephony

api_router = APIRouter(prefix=app_settings.api_v1_prefix)

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(management.router, tags=["management"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(analysis.router, prefix="/analysis", tags=["analysis"])
api_router.include_router(offers.router, prefix="/offers", tags=["offers"])
api_router.include_router(telephony.router, prefix="/telephony", tags=["telephony"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["audit"])

__all__ = ["api_router"]
