import logging
import smtplib
from email.message import EmailMessage
from html import escape

from app.config import settings

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html: str) -> bool:
    """
    Deliver one HTML e-mail.

    Without SMTP_HOST the message is only logged (development mode).
    Delivery errors are logged and reported as False; they never reach the caller's
    request lifecycle, since this runs as a FastAPI background task.
    """
    if not settings.SMTP_HOST:
        logger.info(f"[EMAIL] To={to_email} | Subject={subject}")
        return True

    msg = EmailMessage()
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"[EMAIL] Delivery to {to_email} failed: {e}")
        return False

    logger.info(f"[EMAIL] Sent to={to_email} | Subject={subject}")
    return True


def _request_link(request_id: int) -> str:
    return f"{settings.APP_BASE_URL}/requests/{request_id}"


def send_assignment_email(
    to_email: str,
    request_id: int,
    title: str,
    description: str,
    type_: str,
    priority: str,
    location: str | None,
) -> bool:
    """Tell a technician a request has been assigned to them."""
    html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #2c3e50;">New maintenance request</h2>
            <div style="background: #f8f9fa; padding: 20px; border-radius: 8px;">
                <p><strong>Title:</strong> {escape(title)}</p>
                <p><strong>Description:</strong> {escape(description)}</p>
                <p><strong>Type:</strong> {escape(type_)}</p>
                <p><strong>Priority:</strong> {escape(priority)}</p>
                <p><strong>Location:</strong> {escape(location or "Unspecified")}</p>
                <p><strong>Request #:</strong> {request_id}</p>
            </div>
            <p><a href="{_request_link(request_id)}">View request</a></p>
        </div>
    """
    return send_email(to_email, f"New maintenance request - {title}", html)


def send_status_update_email(
    to_email: str,
    request_id: int,
    title: str,
    old_status: str,
    new_status: str,
) -> bool:
    """Tell the request creator its status changed."""
    html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #2c3e50;">Maintenance request status updated</h2>
            <div style="background: #f8f9fa; padding: 20px; border-radius: 8px;">
                <p><strong>Request:</strong> {escape(title)}</p>
                <p><strong>Previous status:</strong> {escape(old_status)}</p>
                <p><strong>New status:</strong> {escape(new_status)}</p>
            </div>
            <p><a href="{_request_link(request_id)}">View details</a></p>
        </div>
    """
    return send_email(to_email, f"Maintenance request status update - {title}", html)
