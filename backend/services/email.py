import logging
from html import escape
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import settings
from models.account import Account

logger = logging.getLogger("soundalchemy.email")


def _smtp_configured() -> bool:
    return bool(
        settings.SMTP_HOST and settings.SMTP_USERNAME and settings.SMTP_PASSWORD
    )


def _send_email(subject: str, html: str, text: str, to_email: str) -> bool:
    if settings.TESTING_MODE or not _smtp_configured():
        logger.info(
            f"[Email skipped] To={to_email} Subject={subject} TESTING_MODE={settings.TESTING_MODE} SMTP_CONFIGURED={_smtp_configured()}"
        )
        return False

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM_EMAIL))
    msg["To"] = to_email
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=20) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:  # pragma: no cover
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False
    logger.info(f"Email sent to {to_email}: {subject}")
    return True


def _render(inner_html: str) -> str:
    return f"""
<!doctype html>
<html>
  <head>
    <meta name="viewport" content="width=device-width,initial-scale=1" />
    <title>SoundAlchemy</title>
  </head>
  <body style="margin:0;padding:24px;background:#0b0b12;color:#ececf1;font-family:system-ui,sans-serif">
    <div style="max-width:560px;margin:0 auto;line-height:1.6">{inner_html}</div>
  </body>
</html>
"""


def _display_name(account: Account) -> str:
    return (account.name or account.username or account.email or "A musician").strip()


def send_friend_request_email(*, requester: Account, recipient: Account) -> bool:
    """Tell the recipient someone wants to connect."""
    if not recipient.email:
        return False

    requester_name = _display_name(requester)
    subject = f"{requester_name} wants to connect on SoundAlchemy"
    dashboard_url = f"{settings.BASE_URL}/dashboard"

    html = _render(
        f"<p>Hey {escape(_display_name(recipient))},</p>"
        f"<p><strong>{escape(requester_name)}</strong> sent you a friend request.</p>"
        f'<p><a href="{dashboard_url}">Review the request</a></p>'
    )
    text = (
        f"Hey {_display_name(recipient)},\n\n"
        f"{requester_name} sent you a friend request on SoundAlchemy.\n"
        f"Review it here: {dashboard_url}\n"
    )
    return _send_email(subject, html, text, recipient.email)


def send_friend_accepted_email(*, acceptor: Account, original_requester: Account) -> bool:
    """Tell the original requester their request was accepted."""
    if not original_requester.email:
        return False

    acceptor_name = _display_name(acceptor)
    subject = f"{acceptor_name} accepted your friend request on SoundAlchemy"
    channel_url = (
        f"{settings.BASE_URL}/musician/{acceptor.username or acceptor.id}"
    )

    html = _render(
        f"<p>Good news, {escape(_display_name(original_requester))}!</p>"
        f"<p><strong>{escape(acceptor_name)}</strong> accepted your friend request.</p>"
        f'<p><a href="{escape(channel_url)}">Visit their channel</a></p>'
    )
    text = (
        f"Good news, {_display_name(original_requester)}!\n\n"
        f"{acceptor_name} accepted your friend request on SoundAlchemy.\n"
        f"Visit their channel: {channel_url}\n"
    )
    return _send_email(subject, html, text, original_requester.email)
