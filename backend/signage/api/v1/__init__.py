from fastapi import APIRouter

from signage.api.v1.schedule import router as schedule_router
from signage.api.v1.settings import router as settings_router
from signage.api.v1.devices import router as devices_router
from signage.api.v1.websocket import router as websocket_router

router = APIRouter()
router.include_router(schedule_router)
router.include_router(settings_router)
router.include_router(devices_router)
router.include_router(websocket_router)
