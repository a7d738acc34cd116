# ipd_billing/api/router.py
from fastapi import APIRouter
from ipd_billing.api import (
    routes_ipd_billing,
    routes_sequences,
)

api_router = APIRouter()

api_router.include_router(routes_ipd_billing.router)
api_router.include_router(routes_sequences.router)
