from fastapi import APIRouter

from leave_ledger.api.balances import balances_router
from leave_ledger.api.policies import router as policies_router
from leave_ledger.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(balances_router)
api_router.include_router(policies_router)
