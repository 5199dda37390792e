"""
API Routes Package

This module consolidates all API routes for the payment bridge.
"""

from fastapi import APIRouter

from . import bank_accounts
from . import credit_cards
from . import payments

# Create main router
router = APIRouter()

# Include all route modules
router.include_router(
    bank_accounts.router, prefix="/bank-accounts", tags=["bank-accounts"]
)
router.include_router(credit_cards.router, prefix="/credit-cards", tags=["credit-cards"])
router.include_router(payments.router, tags=["payments"])

# Export for use in main application
__all__ = ["router"]
