from fastapi import APIRouter

from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.me import router as me_router
from app.api.v1.endpoints.listings import router as listings_router
from app.api.v1.endpoints.share_links import router as share_links_router
from app.api.v1.endpoints.contracts import router as contracts_router
from app.api.v1.endpoints.notifications import router as notifications_router


router = APIRouter(prefix="/v1")
router.include_router(health_router, tags=["health"])
router.include_router(me_router, tags=["me"])
router.include_router(listings_router, tags=["files"])
router.include_router(share_links_router, tags=["share-links"])
router.include_router(contracts_router, tags=["contracts"])
router.include_router(notifications_router, tags=["notifications"])
