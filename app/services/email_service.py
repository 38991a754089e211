"""Email notification service using SendGrid.

When SendGrid is not configured, messages are logged instead of sent and the
result reports the ``simulation`` provider.
"""

import asyncio
import html
import logging
from dataclasses import dataclass
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    ok: bool
    provider: str
    reason: Optional[str] = None


def fmt_time(time_24: str) -> str:
    """Format a 24-hour HH:MM string as 12-hour with AM/PM."""
    h, m = (int(part) for part in str(time_24 or "09:00").split(":")[:2])
    suffix = "PM" if h >= 12 else "AM"
    return f"{(h + 11) % 12 + 1}:{m:02d} {suffix}"


def sanitize_subject(subject: str) -> str:
    """Strip CR/LF so a subject can't inject headers."""
    return " ".join(str(subject or "").splitlines()).strip()


def build_branded_html(
    business_name: str,
    title: str,
    message: str,
    details: list[tuple[str, str]],
    subtitle: Optional[str] = None,
) -> str:
    brand = html.escape(business_name or settings.DEFAULT_BUSINESS_NAME)
    subtitle_html = (
        f'<p style="margin: 6px 0 0; color: #64748b; font-size: 14px;">{html.escape(subtitle)}</p>'
        if subtitle else ""
    )
    rows = "".join(
        f"""
                        <p><strong>{html.escape(label)}:</strong> {html.escape(str(value))}</p>"""
        for label, value in details
    )
    body = html.escape(message).replace("\n", "<br/>")
    return f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <div style="font-size: 13px; color: #666;">{brand}</div>
                    <h2 style="color: #4A90E2;">{html.escape(title)}</h2>
                    {subtitle_html}
                    <p>{body}</p>
                    <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;">{rows}
                    </div>
                    <p style="color: #666; font-size: 14px; margin-top: 40px;">Sent by {brand}</p>
                </div>
            </body>
        </html>
        """


class EmailService:
    """Email service for sending booking notifications."""

    def __init__(self):
        self.api_key = settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME

        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not configured. Emails will be logged, not sent.")
            self.client = None
        else:
            self.client = SendGridAPIClient(self.api_key)

    @property
    def provider(self) -> str:
        return "sendgrid" if self.client else "simulation"

    async def send_email(
        self,
        to: Optional[str],
        subject: str,
        html_body: str,
        plain_body: Optional[str] = None,
    ) -> EmailResult:
        """
        Send an email.

        Args:
            to: Recipient email address
            subject: Email subject
            html_body: HTML body content
            plain_body: Plain text body (optional)

        Returns:
            EmailResult with the provider used and whether delivery was accepted
        """
        if not to:
            return EmailResult(ok=False, provider="none", reason="missing-to")

        subject = sanitize_subject(subject)

        if self.client is None:
            logger.info("[EMAIL_SIMULATION] to=%s subject=%s preview=%s", to, subject, (plain_body or "")[:120])
            return EmailResult(ok=True, provider="simulation")

        try:
            message = Mail(
                from_email=(self.from_email, self.from_name),
                to_emails=to,
                subject=subject,
                html_content=html_body,
            )
            if plain_body:
                message.plain_text_content = plain_body

            # sendgrid is a blocking client; keep the event loop free so hooks overlap
            response = await asyncio.to_thread(self.client.send, message)

            if 200 <= response.status_code < 300:
                logger.info("Email sent successfully to %s: %s", to, subject)
                return EmailResult(ok=True, provider="sendgrid")
            logger.error("Failed to send email to %s: %s %s", to, response.status_code, response.body)
            return EmailResult(ok=False, provider="sendgrid", reason=str(response.status_code))

        except Exception as e:
            logger.error("Error sending email to %s: %s", to, e)
            return EmailResult(ok=False, provider="sendgrid", reason=str(e))

    async def send_booking_confirmation(self, to: str, business_name: str, appointment: dict) -> EmailResult:
        """Client-facing confirmation; public bookings get "awaiting confirmation" wording."""
        is_public = appointment["source"] == "public"
        when = fmt_time(appointment["time"])
        type_name = appointment.get("typeName") or "Appointment"
        if is_public:
            subject = f"{business_name}: Booking received — awaiting confirmation"
            title = "Booking Received — Awaiting Confirmation"
            plain = (
                f"Hi {appointment['clientName']},\n\n"
                f"Your {type_name} request for {appointment['date']} at {when} has been received "
                f"and is awaiting confirmation from the business.\n\n"
                f"Location: {appointment['location']}\nDuration: {appointment['durationMinutes']} minutes\n\n"
                f"You will be notified once it is confirmed.\n\nThanks,\n{business_name}"
            )
        else:
            subject = f"{business_name}: Appointment confirmed"
            title = "Appointment Confirmed"
            plain = (
                f"Hi {appointment['clientName']},\n\n"
                f"Your {type_name} is confirmed for {appointment['date']} at {when}.\n\n"
                f"Location: {appointment['location']}\nDuration: {appointment['durationMinutes']} minutes\n\n"
                f"Thanks,\n{business_name}"
            )
        intro = (
            "Your booking request has been received and is pending confirmation."
            if is_public else "Your appointment is confirmed."
        )
        html_body = build_branded_html(
            business_name,
            title,
            f"Hi {appointment['clientName']},\n\n{intro}",
            [
                ("Service", type_name),
                ("Date", appointment["date"]),
                ("Time", when),
                ("Duration", f"{appointment['durationMinutes']} minutes"),
                ("Location", appointment["location"]),
                ("Status", "Pending Confirmation" if is_public else "Confirmed"),
            ],
            subtitle=type_name,
        )
        return await self.send_email(to, subject, html_body, plain)

    async def send_owner_alert(self, to: str, business_name: str, appointment: dict) -> EmailResult:
        is_public = appointment["source"] == "public"
        when = f"{appointment['date']} {fmt_time(appointment['time'])}"
        type_name = appointment.get("typeName") or "Appointment"
        header = (
            f"New booking request in {business_name} — ACTION REQUIRED"
            if is_public else f"New booking received in {business_name}"
        )
        plain = (
            f"{header}\n\nType: {type_name}\nClient: {appointment['clientName']}\n"
            f"When: {when}\nSource: {appointment['source']}"
        )
        if is_public:
            plain += "\n\nLog in to your dashboard to confirm or decline this booking."
        details = [
            ("Service", type_name),
            ("Client", appointment["clientName"]),
            ("When", when),
            ("Source", appointment["source"]),
        ]
        if is_public:
            details.append(("Status", "Pending Your Approval"))
        html_body = build_branded_html(
            business_name,
            "New Booking Request — Action Required" if is_public else "New Booking Alert",
            "A new booking request needs your approval. Log in to confirm or decline."
            if is_public else "A new booking has been created.",
            details,
            subtitle="Owner Notification",
        )
        return await self.send_email(to, f"[Owner Alert] New booking - {business_name}", html_body, plain)

    async def send_cancellation(
        self, to: str, business_name: str, appointment: dict, reason: Optional[str] = None
    ) -> EmailResult:
        when = fmt_time(appointment["time"])
        plain = (
            f"Hi {appointment['clientName']},\n\n"
            f"Your appointment on {appointment['date']} at {when} has been cancelled."
        )
        reason = (reason or "").strip()
        if reason:
            plain += f"\n\nReason: {reason}"
        plain += f"\n\n{business_name}"
        details = [
            ("Service", appointment.get("typeName") or "Appointment"),
            ("Date", appointment["date"]),
            ("Time", when),
            ("Location", appointment["location"]),
        ]
        if reason:
            details.append(("Reason", reason))
        html_body = build_branded_html(
            business_name,
            "Appointment Cancelled",
            f"Hi {appointment['clientName']},\n\nYour appointment has been cancelled.",
            details,
        )
        return await self.send_email(to, f"{business_name}: Appointment cancelled", html_body, plain)

    async def send_status_change(self, to: str, business_name: str, appointment: dict) -> EmailResult:
        status = appointment["status"]
        plain = (
            f"Hi {appointment['clientName']}, your appointment on {appointment['date']} "
            f"at {fmt_time(appointment['time'])} is now {status}."
        )
        html_body = build_branded_html(
            business_name,
            "Appointment Update",
            plain,
            [("Date", appointment["date"]), ("Time", fmt_time(appointment["time"])), ("Status", status)],
        )
        return await self.send_email(to, f"{business_name}: Appointment {status}", html_body, plain)


# Global email service instance
email_service = EmailService()
