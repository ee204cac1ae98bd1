from fastapi import APIRouter
from .users import router as users_router
from .groups import router as groups_router

# Mounted under settings.api_prefix by create_app()
router = APIRouter()

router.include_router(users_router)
router.include_router(groups_router)
