# routers/__init__.py

from .auth import router as auth_router
from .permissions import router as permissions_router
from .buildings import router as buildings_router
from .apartments import router as apartments_router
from .water_meters import router as water_meters_router
from .invite_codes import router as invite_codes_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "permissions_router",
    "buildings_router",
    "apartments_router",
    "water_meters_router",
    "invite_codes_router",
    "health_router",
]
