"""
HTML email templates.
Every template returns a complete HTML document; user-supplied values are escaped.
"""

from html import escape
from typing import Optional

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "danger": "#ef4444",
}

BRAND = "Cleanoo"


def get_base_template(
    title: str,
    content: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base HTML wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <p style="text-align:center;margin:32px 0;">
          <a href="{escape(cta_url, quote=True)}"
             style="background:{THEME['primary']};color:#ffffff;padding:14px 32px;
                    border-radius:8px;text-decoration:none;font-weight:600;">
            {escape(cta_label)}
          </a>
        </p>
        <p style="font-size:12px;color:{THEME['text_muted']};word-break:break-all;">
          Or open this link: {escape(cta_url)}
        </p>
        """

    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{escape(title)}</title></head>
  <body style="margin:0;background:{THEME['background']};
               font-family:-apple-system,'Segoe UI',Arial,sans-serif;color:{THEME['text_secondary']};">
    <div style="max-width:600px;margin:0 auto;padding:32px 20px;">
      <h1 style="color:{THEME['primary']};font-size:24px;">{BRAND}</h1>
      <div style="background:{THEME['card_bg']};border:1px solid {THEME['border']};
                  border-radius:12px;padding:32px;">
        <h2 style="color:{THEME['text_primary']};font-size:20px;margin-top:0;">{escape(title)}</h2>
        {content}
        {cta_section}
      </div>
      <p style="text-align:center;font-size:12px;color:{THEME['text_muted']};">
        &copy; {BRAND}. All rights reserved.
      </p>
    </div>
  </body>
</html>"""


def _details_table(rows: dict) -> str:
    cells = "".join(
        f"<tr><td style='padding:6px 12px 6px 0;color:{THEME['text_muted']};'>{escape(label)}</td>"
        f"<td style='padding:6px 0;color:{THEME['text_primary']};'>{escape(str(value))}</td></tr>"
        for label, value in rows.items()
        if value not in (None, "")
    )
    return f"<table style='width:100%;border-collapse:collapse;margin:16px 0;'>{cells}</table>"


def _booking_rows(booking) -> dict:
    return {
        "Service": booking.service_type,
        "Date": booking.preferred_date,
        "Time": booking.preferred_time,
        "Address": booking.address,
        "Notes": booking.notes,
    }


# =============================================================================
# Customer emails
# =============================================================================

def booking_verification_template(name: str, verification_link: str, expires_hours: int) -> str:
    content = f"""
    <p>Hi {escape(name)},</p>
    <p>Thanks for booking with {BRAND}. Please confirm your email address to
    continue. The link expires in {expires_hours} hours.</p>
    """
    return get_base_template("Verify your email", content, verification_link, "Verify email")


def booking_confirmation_template(booking) -> str:
    content = f"""
    <p>Hi {escape(booking.name)},</p>
    <p>Your booking is confirmed. Here are the details:</p>
    {_details_table(_booking_rows(booking))}
    <p>We will let you know as soon as a cleaner has been assigned.</p>
    """
    return get_base_template("Booking confirmed", content)


def welcome_template(name: str, dashboard_url: str) -> str:
    content = f"""
    <p>Hi {escape(name)},</p>
    <p>Your account has been created and your booking is confirmed.
    You can follow its progress from your dashboard.</p>
    """
    return get_base_template(f"Welcome to {BRAND}", content, dashboard_url, "Open dashboard")


# =============================================================================
# Admin alerts
# =============================================================================

def new_booking_admin_template(booking, admin_url: str) -> str:
    rows = {"Customer": booking.name, "Email": booking.email, "Phone": booking.phone}
    rows.update(_booking_rows(booking))
    content = f"<p>A new booking was placed.</p>{_details_table(rows)}"
    return get_base_template("New booking", content, admin_url, "View bookings")


def new_customer_admin_template(user, admin_url: str) -> str:
    rows = {"Name": user.name, "Email": user.email, "Phone": user.phone, "Address": user.address}
    content = f"<p>A new customer registered.</p>{_details_table(rows)}"
    return get_base_template("New customer", content, admin_url, "View customers")


def staff_profile_submitted_template(staff, admin_url: str) -> str:
    rows = {
        "Name": staff.name,
        "Email": staff.email,
        "Phone": staff.phone,
        "KVK number": staff.kvk_number,
        "Car type": staff.car_type,
        "BHV certificate": "Yes" if staff.bhv_certificate else "No",
    }
    content = f"""
    <p>{escape(staff.name)} completed their profile and is waiting for approval.</p>
    {_details_table(rows)}
    """
    return get_base_template("Staff application ready for review", content, admin_url, "Review application")


# =============================================================================
# Staff emails
# =============================================================================

def staff_verification_template(name: str, verification_link: str) -> str:
    content = f"""
    <p>Hi {escape(name)},</p>
    <p>Thanks for applying to work with {BRAND}. Please verify your email
    address, then complete your profile so we can review your application.</p>
    """
    return get_base_template("Verify your email", content, verification_link, "Verify email")


def staff_approved_template(name: str, login_url: str) -> str:
    content = f"""
    <p>Hi {escape(name)},</p>
    <p>Good news: your application has been approved. You can now log in and
    start accepting assignments.</p>
    """
    return get_base_template("Application approved", content, login_url, "Log in")


def staff_rejected_template(name: str, reason: str) -> str:
    content = f"""
    <p>Hi {escape(name)},</p>
    <p>Unfortunately your application was not approved.</p>
    <p style="color:{THEME['danger']};">Reason: {escape(reason)}</p>
    """
    return get_base_template("Application update", content)


def assignment_template(name: str, booking, dashboard_url: str) -> str:
    content = f"""
    <p>Hi {escape(name)},</p>
    <p>You have a new assignment:</p>
    {_details_table(_booking_rows(booking))}
    <p>Please accept or reject it from your dashboard.</p>
    """
    return get_base_template("New assignment", content, dashboard_url, "Open dashboard")
