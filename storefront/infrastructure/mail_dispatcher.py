import asyncio
import logging
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from storefront.core.config import MailTransportConfig, Settings
from storefront.core.exceptions import ConfigurationError, DispatchError
from storefront.domain.schemas import OrderNotification
from storefront.interfaces.IMailDispatcher import IMailDispatcher

logger = logging.getLogger(__name__)

XLSX_MAINTYPE = "application"
XLSX_SUBTYPE = "vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class SmtpMailDispatcher(IMailDispatcher):
    def __init__(self, settings: Settings):
        self.config: Optional[MailTransportConfig] = None
        self.config_error: Optional[ConfigurationError] = None
        self.enabled = False

        # Validate eagerly; a broken config is reported on every send
        try:
            self.config = MailTransportConfig.from_settings(settings)
            self.enabled = True
            logger.info(f"✅ MailDispatcher: SMTP transport {self.config.host}:{self.config.port} configured")
        except ConfigurationError as e:
            self.config_error = e
            logger.warning(f"⚠️ MailDispatcher: {e.message}. Order e-mails disabled.")

    def build_message(self, notification: OrderNotification) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender
        message["To"] = self.config.recipient
        message["Subject"] = notification.subject
        message.set_content(notification.text)
        message.add_alternative(notification.html, subtype="html")
        if notification.attachment:
            message.add_attachment(
                notification.attachment,
                maintype=XLSX_MAINTYPE,
                subtype=XLSX_SUBTYPE,
                filename=notification.attachment_filename or "order.xlsx",
            )
        return message

    async def send(self, notification: OrderNotification) -> None:
        """Sends one message to the operator mailbox. No retries."""
        if not self.enabled:
            # never re-raise the stored instance, its traceback would grow with every send
            raise ConfigurationError(self.config_error.message)

        cfg = self.config
        message = self.build_message(notification)
        smtp = aiosmtplib.SMTP(
            hostname=cfg.host,
            port=cfg.port,
            use_tls=cfg.use_tls,
            timeout=cfg.socket_timeout,
        )

        try:
            # connect covers the TCP handshake and the server banner (connection timeout);
            # the greeting timeout bounds the EHLO exchange
            await smtp.connect(timeout=cfg.connection_timeout)
            await smtp.ehlo(timeout=cfg.greeting_timeout)
            await smtp.login(cfg.username, cfg.password, timeout=cfg.socket_timeout)
            await smtp.send_message(message, timeout=cfg.socket_timeout)
            logger.info(f"✅ Mail '{notification.subject}' sent to {cfg.recipient}")
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.error(f"❌ Mail '{notification.subject}' not sent: {e}")
            raise DispatchError(f"Mail transport failed: {e}") from e
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit(timeout=cfg.socket_timeout)
                except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
                    logger.warning(f"⚠️ SMTP quit failed: {e}")
                    smtp.close()
