from fastapi import APIRouter

from salespipe.api.routes import audit, exports, forecasting, health, pipeline


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(pipeline.router)
api_router.include_router(forecasting.router)
api_router.include_router(exports.router)
api_router.include_router(audit.router)
