"""Business logic services."""

from cleanbook.services.analytics_service import AnalyticsService
from cleanbook.services.assignment_service import AssignmentService
from cleanbook.services.booking_service import BookingService
from cleanbook.services.catalog_service import CatalogService
from cleanbook.services.email_service import EmailService
from cleanbook.services.notification_service import NotificationService
from cleanbook.services.staff_service import StaffService
from cleanbook.services.team_service import TeamService
from cleanbook.services.user_service import UserService

__all__ = [
    "AnalyticsService",
    "AssignmentService",
    "BookingService",
    "CatalogService",
    "EmailService",
    "NotificationService",
    "StaffService",
    "TeamService",
    "UserService",
]
