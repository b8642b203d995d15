"""
Outbound email over SMTP.

smtplib is blocking, so sends run in a worker thread. Without SMTP_HOST the
message is only logged, which keeps development and tests offline.
"""
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText

from app.config import settings

logger = logging.getLogger("uvicorn.error")


def _send_sync(to_email: str, subject: str, body: str, subtype: str) -> None:
    msg = MIMEText(body, subtype, "utf-8")
    msg["Subject"] = subject
    msg["From"] = settings.mail_from
    msg["To"] = to_email

    with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port) as smtp:
        if settings.smtp_user:
            smtp.login(settings.smtp_user, settings.smtp_password or "")
        smtp.sendmail(settings.mail_from, [to_email], msg.as_string())


async def send_email(to_email: str, subject: str, body: str, subtype: str = "plain") -> bool:
    """
    Send one email. Returns False when SMTP is not configured.

    Raises:
        smtplib.SMTPException / OSError: delivery failures are left to the caller
    """
    if not settings.smtp_host:
        logger.info("[mail] SMTP not configured; skipping '%s' to %s", subject, to_email)
        return False
    await asyncio.to_thread(_send_sync, to_email, subject, body, subtype)
    logger.info("[mail] sent '%s' to %s", subject, to_email)
    return True
