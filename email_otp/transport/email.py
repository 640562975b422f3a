import logging
import smtplib
from email.message import EmailMessage

import requests

from shared.logging_utils import mask_email

from ..core.errors import DeliveryError
from ..runtime_config import SmtpSettings, email_gateway_url

logger = logging.getLogger(__name__)


class SmtpNotifier:
    def __init__(self, settings: SmtpSettings):
        if not settings.host or not settings.sender:
            raise RuntimeError("SMTP_HOST and SMTP_FROM are required for the smtp notifier")
        self.settings = settings

    def _build_message(self, address: str, subject: str, body_html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.settings.sender
        msg["To"] = address
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(body_html, subtype="html")
        return msg

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.use_ssl:
            return smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout_seconds)
        server = smtplib.SMTP(s.host, s.port, timeout=s.timeout_seconds)
        try:
            server.starttls()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def send(self, address: str, subject: str, body_html: str) -> None:
        msg = self._build_message(address, subject, body_html)
        try:
            with self._connect() as server:
                if self.settings.username and self.settings.password:
                    server.login(self.settings.username, self.settings.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery failed: {exc}") from exc
        logger.info("Sent %r to %s via SMTP", subject, mask_email(address))


class GatewayNotifier:
    def __init__(self, base_url: str | None = None, timeout_seconds: int = 5):
        self.base_url = base_url or email_gateway_url()
        self.timeout = timeout_seconds

    def send(self, address: str, subject: str, body_html: str) -> None:
        payload = {
            "to": address,
            "subject": subject,
            "html": body_html,
        }

        try:
            resp = requests.post(
                f"{self.base_url}/send",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DeliveryError(
                f"Failed to reach email gateway: {e}"
            ) from e

        if resp.status_code not in (200, 201, 202):
            raise DeliveryError(
                f"Gateway error {resp.status_code}: {resp.text}"
            )
        logger.info("Sent %r to %s via gateway", subject, mask_email(address))


class ConsoleNotifier:
    """Development notifier: writes the message to the log instead of sending it."""

    def send(self, address: str, subject: str, body_html: str) -> None:
        logger.warning("[Email][Console] To: %s", address)
        logger.warning("[Email][Console] Subject: %s", subject)
        logger.warning("[Email][Console] Body: %s", body_html)
