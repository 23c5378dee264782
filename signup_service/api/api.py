# signup_service/api/api.py

from fastapi import APIRouter, Depends

from signup_service.api import deps
from signup_service.api.endpoints import health, registrations

# Every route below counts against the general per-address limit.
api_router = APIRouter(dependencies=[Depends(deps.enforce_general_rate_limit)])

api_router.include_router(registrations.router)
api_router.include_router(health.router)
