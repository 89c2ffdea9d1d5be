from fastapi import APIRouter

from edugate.interfaces.api.v1.routes.admin import router as admin_router
from edugate.interfaces.api.v1.routes.auth import router as auth_router
from edugate.interfaces.api.v1.routes.branches import router as branches_router
from edugate.interfaces.api.v1.routes.me import router as me_router
from edugate.interfaces.api.v1.routes.notifications import router as notifications_router
from edugate.interfaces.api.v1.routes.ping import router as ping_router
from edugate.interfaces.api.v1.routes.principals import router as principals_router
from edugate.interfaces.api.v1.routes.records import (
    attendance_router,
    classes_router,
    fees_router,
    parents_router,
    students_router,
    teachers_router,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(admin_router)
api_router.include_router(attendance_router)
api_router.include_router(auth_router)
api_router.include_router(branches_router)
api_router.include_router(classes_router)
api_router.include_router(fees_router)
api_router.include_router(me_router)
api_router.include_router(notifications_router)
api_router.include_router(parents_router)
api_router.include_router(ping_router)
api_router.include_router(principals_router)
api_router.include_router(students_router)
api_router.include_router(teachers_router)
