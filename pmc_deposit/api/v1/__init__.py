"""
API v1 routes.
"""

from fastapi import APIRouter

from pmc_deposit.api.v1 import pmc

router = APIRouter()

router.include_router(pmc.router, prefix="/pmc", tags=["PMC Deposits"])
