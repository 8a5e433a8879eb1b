from fastapi import APIRouter

from prediction_ledger.interfaces.http.routers import admin, auth, payments, predictions, wallet


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(auth.router, prefix="/auth", tags=["auth"])
    router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
    router.include_router(predictions.router, prefix="/predictions", tags=["predictions"])
    router.include_router(payments.router, prefix="/payments", tags=["payments"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return router


__all__ = [
    "create_api_router",
]
