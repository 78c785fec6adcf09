"""
Email Service using custom SMTP (primary) or Resend (fallback)
Every send is recorded in the email_logs table
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import resend
from mjml import mjml_to_html
from sqlalchemy.orm import Session

from .config import (
    EMAIL_FROM_ADDRESS,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USER,
)
from .models import EmailLog

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when no transport could deliver a message"""

    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


def send_via_smtp(to: str, subject: str, html_content: str, from_address: str) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = to
    msg.attach(MIMEText(html_content, "html"))

    if SMTP_PORT == 465:
        context = ssl.create_default_context()
        server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        server.starttls(context=ssl.create_default_context())

    try:
        if SMTP_USER:
            server.login(SMTP_USER, SMTP_PASSWORD or "")
        server.sendmail(from_address.split("<")[-1].rstrip(">"), [to], msg.as_string())
    finally:
        server.quit()

    logger.info(f"✅ SMTP email sent via {SMTP_HOST}")
    return {"id": f"smtp-{datetime.utcnow().timestamp()}", "success": True}


def deliver_email(to: str, subject: str, html_content: str) -> dict:
    """Hand a compiled message to SMTP when configured, otherwise to Resend"""
    if SMTP_HOST:
        try:
            return send_via_smtp(to, subject, html_content, EMAIL_FROM_ADDRESS)
        except Exception as e:
            if not RESEND_API_KEY:
                raise EmailDeliveryError(f"SMTP failed: {str(e)}") from e
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        raise EmailDeliveryError("Email service not configured")

    logger.info(f"📧 Sending email via Resend to: {to}")
    return resend.Emails.send(
        {"from": EMAIL_FROM_ADDRESS, "to": [to], "subject": subject, "html": html_content}
    )


async def send_email(
    db: Session,
    to: str,
    subject: str,
    mjml_content: str,
    email_type: str,
    user_id: Optional[int] = None,
) -> bool:
    """
    Send an email and log the attempt.

    The log row starts as pending and ends as sent or failed. Delivery errors
    are recorded on the log and reported through the return value, so a
    broken mail server never fails the request that triggered the email.

    Returns:
        True when the message was handed to a transport
    """
    log = EmailLog(
        user_id=user_id,
        email_type=email_type,
        recipient=to,
        subject=subject,
        status="pending",
    )
    db.add(log)
    db.commit()

    try:
        html_content = compile_mjml_to_html(mjml_content)
        deliver_email(to, subject, html_content)
        log.status = "sent"
        log.sent_at = datetime.utcnow()
        db.commit()
        logger.info(f"✅ Email sent successfully to {to}: {subject}")
        return True
    except Exception as e:
        log.status = "failed"
        log.error_message = str(e)
        db.commit()
        logger.error(f"❌ Failed to send email to {to}: {e}")
        return False
