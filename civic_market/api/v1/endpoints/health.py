from fastapi import APIRouter

from civic_market.core.config import settings

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"success": True, "status": "ok", "service": settings.service_name, "environment": settings.env}
