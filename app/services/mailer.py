from __future__ import annotations

import smtplib
from email.message import EmailMessage

import structlog

from app.config import Settings
from app.errors import UpstreamServiceError

log = structlog.get_logger()

class Mailer:
    """Outbound email. backend "console" logs instead of sending."""

    def __init__(
        self,
        backend: str,
        sender: str,
        frontend_url: str,
        smtp_host: str = "localhost",
        smtp_port: int = 587,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        smtp_use_tls: bool = True,
        timeout: float = 10.0,
    ):
        if backend not in {"console", "smtp"}:
            raise RuntimeError(f"unknown email backend: {backend}")
        self.backend = backend
        self.sender = sender
        self.frontend_url = frontend_url.rstrip("/")
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, s: Settings) -> Mailer:
        return cls(
            backend=s.email_backend,
            sender=s.email_from,
            frontend_url=s.frontend_url,
            smtp_host=s.smtp_host,
            smtp_port=s.smtp_port,
            smtp_username=s.smtp_username,
            smtp_password=s.smtp_password,
            smtp_use_tls=s.smtp_use_tls,
            timeout=s.smtp_timeout_seconds,
        )

    def send(self, to: str, subject: str, body: str) -> None:
        if self.backend == "console":
            log.info("email_console", to=to, subject=subject, body=body)
            return

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
                if self.smtp_use_tls:
                    smtp.starttls()
                if self.smtp_username:
                    smtp.login(self.smtp_username, self.smtp_password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise UpstreamServiceError(f"email to {to} failed: {e.__class__.__name__}") from e

        log.info("email_sent", to=to, subject=subject)

    def send_task_assignment(self, to: str, assignee_name: str, task_title: str, task_id: str) -> None:
        link = f"{self.frontend_url}/tasks?id={task_id}"
        body = (
            f"Hi {assignee_name},\n\n"
            f'You have been assigned a new task: "{task_title}".\n\n'
            f"Open it here: {link}\n"
        )
        self.send(to, f"New task assigned: {task_title}", body)
