import smtplib
from email.message import EmailMessage

from barbershop.settings import Settings


def _send_email(settings: Settings, to_email: str, subject: str, lines: list[str]) -> None:
    if not settings.smtp_enabled:
        return
    if not settings.smtp_host or not settings.smtp_sender_email:
        raise RuntimeError("SMTP is enabled but SMTP_HOST/SMTP_SENDER_EMAIL are not configured.")

    message = EmailMessage()
    sender_display = f"{settings.smtp_sender_name} <{settings.smtp_sender_email}>"
    message["Subject"] = subject
    message["From"] = sender_display
    message["To"] = to_email
    message.set_content("\n".join(lines))

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(message)


def send_password_reset_email(settings: Settings, to_email: str, reset_token: str) -> None:
    lines = [
        f"A password reset was requested for your {settings.smtp_sender_name} account.",
        "",
        "Use this code in the app to choose a new password:",
        "",
        reset_token,
        "",
        f"The code expires in {settings.reset_token_ttl_minutes} minutes and can be used once.",
        "If you did not request this, please ignore this email.",
    ]
    _send_email(settings, to_email, "Password reset instructions", lines)
