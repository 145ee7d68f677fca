import smtplib
from html import escape
from email.message import EmailMessage
from typing import Optional

from ..config import settings
from ..logging import get_logger


log = get_logger("ermakplan.mail")


class MailDeliveryError(Exception):
    pass


def send_email(to: str, subject: str, html: Optional[str] = None, text: Optional[str] = None) -> None:
    """Deliver one message over SMTP. Raises MailDeliveryError on any failure."""
    if not settings.smtp_host or not settings.mail_from:
        raise MailDeliveryError("SMTP is not configured")
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{settings.app_name} <{settings.mail_from}>"
    msg["To"] = to
    msg.set_content(text or "")
    if html:
        msg.add_alternative(html, subtype="html")
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as s:
            if settings.smtp_tls:
                s.starttls()
            if settings.smtp_username and settings.smtp_password:
                s.login(settings.smtp_username, settings.smtp_password)
            s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise MailDeliveryError(str(e)) from e
    log.info("email_sent", to=to, subject=subject)


def render_report_email(report) -> tuple:
    subject = f"Report: {report.title}"
    parts = [f"<h2>{escape(report.title)}</h2>"]
    if report.location:
        parts.append(f"<p><strong>Location:</strong> {escape(report.location)}</p>")
    if report.report_type:
        parts.append(f"<p><strong>Type:</strong> {escape(report.report_type)}</p>")
    parts.append(report.description or "")
    for url in report.attachments or []:
        parts.append(f'<p><a href="{escape(url)}">{escape(url)}</a></p>')
    text = f"{report.title}\n\n{report.location or ''}"
    return subject, "\n".join(parts), text
