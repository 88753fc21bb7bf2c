"""Dependency injection for FastAPI endpoints"""

from typing import List
from fastapi import Request
from refi_gateway.domain.models import LenderRate, RateData
from refi_gateway.infrastructure.cache import TTLCache
from refi_gateway.infrastructure.rate_service import RateProvenanceService
from refi_gateway.infrastructure.rate_store import load_fallback_rates


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_rate_service(request: Request) -> RateProvenanceService:
    """Provide the app-wide rate provenance service (owns the rate cache)"""
    return request.app.state.rate_service


def get_lender_cache(request: Request) -> TTLCache[List[LenderRate]]:
    return request.app.state.lender_cache


def get_fallback_rates() -> RateData:
    """Provide the last known good rates from disk"""
    return load_fallback_rates()

