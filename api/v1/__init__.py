# api/v1/__init__.py
from fastapi import APIRouter
from .auth import router as auth_router
from .invitations import router as invitations_router
from .connections import router as connections_router
from .affirmations import router as affirmations_router
from .persons import router as persons_router
from .profiles import router as profiles_router
from .events import router as events_router

router = APIRouter(prefix="/v1")
router.include_router(auth_router)
router.include_router(invitations_router)
router.include_router(connections_router)
router.include_router(affirmations_router)
router.include_router(persons_router)
router.include_router(profiles_router)
router.include_router(events_router)
