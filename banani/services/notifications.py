"""
Outbound email notifications.

notify() is fire-and-forget: routes schedule it with BackgroundTasks after
the primary write succeeded, and every failure (bad payload, SMTP not
configured, server unreachable) is logged and reported as False. Nothing
here may turn a successful save into an error response.
"""
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Mapping, Optional

from banani.core.config import Settings, settings as default_settings
from banani.core.errors import BananiError, CollaboratorUnavailable
from banani.core.logging_config import get_logger
from banani.services.email_templates import EmailTemplate, NotificationKind, render

logger = get_logger(__name__)


class EmailNotifier:
    """Sends rendered templates over SMTP."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def is_configured(self) -> bool:
        return bool(self.config.SMTP_HOST and self.config.SMTP_USER and self.config.SMTP_PASSWORD)

    def _require_config(self) -> None:
        if self.is_configured():
            return
        missing = [
            name for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD")
            if not getattr(self.config, name)
        ]
        raise CollaboratorUnavailable(
            "mail",
            f"SMTP is not fully configured. Missing settings: {', '.join(missing)}"
        )

    @property
    def uses_implicit_tls(self) -> bool:
        if self.config.SMTP_SECURE is not None:
            return self.config.SMTP_SECURE
        return self.config.SMTP_PORT == 465

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if self.config.SMTP_IGNORE_TLS_ERRORS:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def build_message(self, to: str, template: EmailTemplate) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = template.subject
        message["From"] = formataddr(
            (self.config.EMAIL_SENDER_NAME, self.config.SMTP_FROM or self.config.SMTP_USER)
        )
        message["To"] = to
        message.set_content(template.text)
        message.add_alternative(template.html, subtype="html")
        return message

    def send(self, to: str, template: EmailTemplate) -> None:
        """Deliver one message. Raises CollaboratorUnavailable on any transport problem."""
        self._require_config()
        message = self.build_message(to, template)
        context = self._ssl_context()
        try:
            if self.uses_implicit_tls:
                smtp = smtplib.SMTP_SSL(
                    self.config.SMTP_HOST,
                    self.config.SMTP_PORT,
                    timeout=self.config.SMTP_TIMEOUT_SECONDS,
                    context=context
                )
            else:
                smtp = smtplib.SMTP(
                    self.config.SMTP_HOST,
                    self.config.SMTP_PORT,
                    timeout=self.config.SMTP_TIMEOUT_SECONDS
                )
            with smtp:
                if not self.uses_implicit_tls:
                    smtp.starttls(context=context)
                smtp.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise CollaboratorUnavailable("mail", f"Unable to send email: {exc}") from exc

    def notify(
        self,
        kind: NotificationKind,
        to: str,
        display_name: str,
        payload: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """Render and send a notification. Delivery problems are logged, not raised."""
        kind = NotificationKind(kind)
        try:
            template = render(kind, display_name, payload or {})
            self.send(to, template)
        except BananiError as exc:
            logger.warning("Notification %s to %s not sent: %s", kind.value, to, exc.message)
            return False
        logger.info("Notification %s sent to %s", kind.value, to)
        return True


notifier = EmailNotifier()


def get_notifier() -> EmailNotifier:
    """FastAPI dependency; tests override it."""
    return notifier
