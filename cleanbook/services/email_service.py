"""Email service - what gets sent, and what happens when sending fails.

Every email is tied to an ``EmailEvent`` and every event has a fixed
``DeliveryPolicy``:

* ``REQUIRED``: the surrounding write is all-or-nothing with the email.
  ``EmailDeliveryError`` propagates and the caller rolls back.
* ``BEST_EFFORT``: failures are logged and swallowed; the write stands.
"""

from enum import Enum as PyEnum
from typing import Dict

import structlog

from cleanbook.config import get_settings
from cleanbook.integrations.smtp_client import EmailDeliveryError
from cleanbook.services import email_templates as templates

settings = get_settings()
logger = structlog.get_logger(__name__)


class EmailEvent(str, PyEnum):
    BOOKING_VERIFICATION = "booking_verification"
    BOOKING_CONFIRMATION = "booking_confirmation"
    CUSTOMER_WELCOME = "customer_welcome"
    NEW_BOOKING_ADMIN_ALERT = "new_booking_admin_alert"
    NEW_CUSTOMER_ADMIN_ALERT = "new_customer_admin_alert"
    STAFF_VERIFICATION = "staff_verification"
    STAFF_PROFILE_SUBMITTED = "staff_profile_submitted"
    STAFF_APPROVED = "staff_approved"
    STAFF_REJECTED = "staff_rejected"
    ASSIGNMENT_CREATED = "assignment_created"


class DeliveryPolicy(str, PyEnum):
    REQUIRED = "required"
    BEST_EFFORT = "best_effort"


DELIVERY_POLICIES: Dict[EmailEvent, DeliveryPolicy] = {
    EmailEvent.BOOKING_VERIFICATION: DeliveryPolicy.REQUIRED,
    EmailEvent.STAFF_VERIFICATION: DeliveryPolicy.REQUIRED,
    EmailEvent.BOOKING_CONFIRMATION: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.CUSTOMER_WELCOME: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.NEW_BOOKING_ADMIN_ALERT: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.NEW_CUSTOMER_ADMIN_ALERT: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.STAFF_PROFILE_SUBMITTED: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.STAFF_APPROVED: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.STAFF_REJECTED: DeliveryPolicy.BEST_EFFORT,
    EmailEvent.ASSIGNMENT_CREATED: DeliveryPolicy.BEST_EFFORT,
}


def app_link(path: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}{path}"


class EmailService:
    """Renders and sends transactional email through a mailer.

    The mailer is anything with ``async send(to, subject, html)`` that raises
    ``EmailDeliveryError`` on failure.
    """

    def __init__(self, mailer):
        self.mailer = mailer

    async def deliver(self, event: EmailEvent, to: str, subject: str, html: str) -> bool:
        """Send one email under the event's policy. Returns True when sent."""
        policy = DELIVERY_POLICIES[event]
        try:
            await self.mailer.send(to, subject, html)
        except EmailDeliveryError as e:
            logger.warning(
                "email_delivery_failed",
                email_event=event.value,
                policy=policy.value,
                to=to,
                error=str(e),
            )
            if policy == DeliveryPolicy.REQUIRED:
                raise
            return False
        return True

    async def _notify_admin(self, event: EmailEvent, subject: str, html: str) -> bool:
        recipient = settings.admin_notification_email
        if not recipient:
            logger.info("admin_alert_skipped", email_event=event.value, reason="no admin email configured")
            return False
        return await self.deliver(event, recipient, subject, html)

    # =========================================================================
    # Customer emails
    # =========================================================================

    async def send_booking_verification(self, booking, token: str) -> bool:
        link = app_link(f"/verify-booking?token={token}")
        html = templates.booking_verification_template(
            booking.name, link, settings.BOOKING_VERIFICATION_HOURS
        )
        return await self.deliver(
            EmailEvent.BOOKING_VERIFICATION, booking.email, "Verify your email to confirm your booking", html
        )

    async def send_booking_confirmation(self, booking) -> bool:
        html = templates.booking_confirmation_template(booking)
        return await self.deliver(
            EmailEvent.BOOKING_CONFIRMATION, booking.email, "Your booking is confirmed", html
        )

    async def send_welcome(self, user) -> bool:
        html = templates.welcome_template(user.name, app_link("/dashboard"))
        return await self.deliver(
            EmailEvent.CUSTOMER_WELCOME, user.email, f"Welcome to {templates.BRAND}", html
        )

    # =========================================================================
    # Admin alerts
    # =========================================================================

    async def notify_admin_new_booking(self, booking) -> bool:
        html = templates.new_booking_admin_template(booking, app_link("/admin"))
        return await self._notify_admin(
            EmailEvent.NEW_BOOKING_ADMIN_ALERT, f"New booking from {booking.name}", html
        )

    async def notify_admin_new_customer(self, user) -> bool:
        html = templates.new_customer_admin_template(user, app_link("/admin"))
        return await self._notify_admin(
            EmailEvent.NEW_CUSTOMER_ADMIN_ALERT, f"New customer: {user.name}", html
        )

    async def notify_admin_staff_profile(self, staff) -> bool:
        html = templates.staff_profile_submitted_template(staff, app_link("/admin/staff"))
        return await self._notify_admin(
            EmailEvent.STAFF_PROFILE_SUBMITTED, f"Staff application: {staff.name}", html
        )

    # =========================================================================
    # Staff emails
    # =========================================================================

    async def send_staff_verification(self, staff, token: str) -> bool:
        link = app_link(f"/staff/verify-email?token={token}")
        html = templates.staff_verification_template(staff.name, link)
        return await self.deliver(
            EmailEvent.STAFF_VERIFICATION, staff.email, "Verify your email address", html
        )

    async def send_staff_approved(self, staff) -> bool:
        html = templates.staff_approved_template(staff.name, app_link("/staff/login"))
        return await self.deliver(
            EmailEvent.STAFF_APPROVED, staff.email, "Your application has been approved", html
        )

    async def send_staff_rejected(self, staff) -> bool:
        html = templates.staff_rejected_template(staff.name, staff.rejection_reason or "")
        return await self.deliver(
            EmailEvent.STAFF_REJECTED, staff.email, "Update on your application", html
        )

    async def send_assignment(self, staff, booking) -> bool:
        html = templates.assignment_template(staff.name, booking, app_link("/staff/dashboard"))
        return await self.deliver(
            EmailEvent.ASSIGNMENT_CREATED, staff.email, "You have a new assignment", html
        )
