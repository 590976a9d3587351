"""
Email Service for DROMIC-IS
Sends transactional emails via SMTP (password reset)
"""

import html
import smtplib
import os
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Email configuration - load from environment variables
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@dromic.dswd.gov.ph")
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000")


def _send_email(
    to_email: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None,
    from_name: str = "DROMIC-IS"
) -> bool:
    """
    Send an email via SMTP

    Returns:
        True if sent successfully, False otherwise
    """
    if not SMTP_PASSWORD:
        logger.error("SMTP_PASSWORD not configured - cannot send email")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{from_name} <{FROM_EMAIL}>"
        msg["To"] = to_email

        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT) as server:
            server.starttls()
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
            server.sendmail(FROM_EMAIL, to_email, msg.as_string())

        logger.info(f"Email sent successfully to {to_email}: {subject}")
        return True

    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {e}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def send_password_reset(to_email: str, reset_token: str, user_name: str = "User") -> bool:
    """
    Send password reset email

    Args:
        to_email: Account e-mail address
        reset_token: Raw reset token (only its digest is stored)
        user_name: Name for personalization
    """
    reset_link = f"{APP_BASE_URL}/reset-password?token={reset_token}"
    subject = "Reset Your DROMIC-IS Password"

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #1e3a8a;">DROMIC-IS</h2>
            <p>Hi {html.escape(user_name)},</p>
            <p>We received a request to reset your password. Use the link below to choose a new one:</p>
            <p><a href="{reset_link}">Reset Password</a></p>
            <p>This link will expire in 1 hour.</p>
            <p>If you didn't request a password reset, you can safely ignore this email.</p>
        </div>
    </body>
    </html>
    """

    text_body = f"""
Hi {user_name},

We received a request to reset your password.
Open the link below to choose a new one:

{reset_link}

This link will expire in 1 hour.

If you didn't request a password reset, you can safely ignore this email.

--
DROMIC-IS
    """

    return _send_email(to_email, subject, html_body, text_body)
