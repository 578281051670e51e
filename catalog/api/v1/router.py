from fastapi import APIRouter

from catalog.api.v1.endpoints.admin import router as admin_router
from catalog.api.v1.endpoints.articles import router as articles_router

router = APIRouter(prefix="/api/v1")
router.include_router(articles_router)
router.include_router(admin_router)
