# ===== app/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, List, Optional
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)

# kind -> (subject, heading, intro)
BOOKING_EMAIL_COPY = {
    "created": (
        "Your booking at {salon} is received",
        "Booking received!",
        "We have received your booking. These are the details:",
    ),
    "rescheduled": (
        "Your booking at {salon} has been rescheduled",
        "Booking rescheduled",
        "Your appointment has a new date and time:",
    ),
    "confirmed": (
        "Your booking at {salon} is confirmed",
        "Booking confirmed!",
        "Your appointment is confirmed. See you soon:",
    ),
    "cancelled": (
        "Your booking at {salon} has been cancelled",
        "Booking cancelled",
        "The following appointment has been cancelled:",
    ),
    "reminder": (
        "Reminder: your appointment at {salon}",
        "See you soon!",
        "This is a reminder of your upcoming appointment:",
    ),
    "review_request": (
        "How was your visit to {salon}?",
        "Thank you for visiting us!",
        "We hope you loved the result. We would appreciate a review of this visit:",
    ),
}


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.EMAIL_HOST)

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None,
            bcc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses
            bcc: List of BCC email addresses

        Returns:
            bool: True if email sent successfully

        Raises:
            Exception: whatever the SMTP layer raised, so the calling task can retry
        """
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
            msg['To'] = to_email

            if cc:
                msg['Cc'] = ', '.join(cc)

            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            recipients = [to_email]
            if cc:
                recipients.extend(cc)
            if bcc:
                recipients.extend(bcc)

            server = EmailService._get_smtp_connection()
            server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

    @staticmethod
    def render_booking_email(booking: Dict[str, Any], kind: str, manage_url: Optional[str] = None):
        """Build (subject, html, plain_text) for a booking notification"""
        if kind not in BOOKING_EMAIL_COPY:
            raise ValueError(f"Unknown booking email kind: {kind}")

        salon = settings.EMAIL_FROM_NAME
        subject, heading, intro = BOOKING_EMAIL_COPY[kind]
        subject = subject.format(salon=salon)
        services = ", ".join(booking["service_names"])

        details = [
            ("Date", booking["date"]),
            ("Time", booking["time"]),
            ("Services", services),
            ("Professional", booking.get("staff_name") or booking["staff_id"]),
            ("Duration", f"{booking['duration_minutes']} minutes"),
            ("Total", f"${booking['total_price']:.2f}"),
        ]
        rows = "".join(f"<p><strong>{label}:</strong> {value}</p>" for label, value in details)

        manage_block = ""
        if manage_url and kind in ("created", "rescheduled", "confirmed", "reminder"):
            manage_block = (
                f'<p style="font-size: 14px; color: #6b7280;">Need to cancel or reschedule? '
                f'<a href="{manage_url}">Manage your booking</a></p>'
            )

        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1 style="color: #ec4899; text-align: center;">{heading}</h1>
            <p>Hi {booking['client_name']},</p>
            <p>{intro}</p>
            <div style="background-color: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0;">
                {rows}
            </div>
            {manage_block}
            <p style="text-align: center; margin-top: 30px; color: #ec4899; font-weight: bold;">{salon}</p>
        </div>
        """

        plain_text = "\n".join(
            [f"Hi {booking['client_name']},", "", intro, ""]
            + [f"{label}: {value}" for label, value in details]
            + (["", f"Manage your booking: {manage_url}"] if manage_block else [])
        )
        return subject, html_content, plain_text

    @staticmethod
    def send_booking_email(booking: Dict[str, Any], kind: str, manage_url: Optional[str] = None) -> bool:
        subject, html_content, plain_text = EmailService.render_booking_email(booking, kind, manage_url)
        bcc = [settings.SALON_NOTIFY_EMAIL] if settings.SALON_NOTIFY_EMAIL and kind == "created" else None
        return EmailService.send_email(
            to_email=booking["client_email"],
            subject=subject,
            html_content=html_content,
            plain_text=plain_text,
            bcc=bcc,
        )
