"""Main API router."""

from fastapi import APIRouter

from cleanbook.api.routes import (
    analytics,
    assignments,
    auth,
    bookings,
    notifications,
    oauth,
    services,
    staff,
    teams,
    users,
)

api_router = APIRouter()

# =============================================================================
# Authentication
# =============================================================================
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(oauth.router, prefix="/auth", tags=["Google Sign-In"])

# =============================================================================
# Customers
# =============================================================================
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(services.router, prefix="/services", tags=["Services"])

# =============================================================================
# Operations
# =============================================================================
api_router.include_router(staff.router, prefix="/staff", tags=["Staff"])
api_router.include_router(teams.router, prefix="/teams", tags=["Teams"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
