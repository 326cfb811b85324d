from fastapi import APIRouter

from civic_market.api.v1.endpoints.health import router as health_router
from civic_market.api.v1.endpoints.listings import router as listings_router
from civic_market.api.v1.endpoints.comments import router as comments_router
from civic_market.api.v1.endpoints.configuration import router as configuration_router


router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(listings_router, tags=["listings"])
router.include_router(comments_router, tags=["comments"])
router.include_router(configuration_router, tags=["config"])
