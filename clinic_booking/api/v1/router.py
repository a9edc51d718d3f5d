"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_booking.api.v1.endpoints import admin, auth, doctors, health, users

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(doctors.router, prefix="/doctor", tags=["Doctor"])
api_router.include_router(users.router, prefix="/user", tags=["User"])
