from fastapi import APIRouter

from leaveflow.api.balances import user_balance_router
from leaveflow.api.leave_types import leave_types_router
from leaveflow.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(leave_types_router)
api_router.include_router(user_balance_router)
