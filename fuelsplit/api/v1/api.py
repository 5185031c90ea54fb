from fastapi import APIRouter
from fuelsplit.api.v1.endpoints import auth, ledger

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(ledger.router, prefix="/ledger", tags=["ledger"])
