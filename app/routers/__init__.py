"""API routers."""

from app.routers.hooks import router as hooks_router
from app.routers.mobile import router as mobile_router
from app.routers.voice_messages import router as voice_messages_router

__all__ = ["voice_messages_router", "mobile_router", "hooks_router"]
