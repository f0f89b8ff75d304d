import logging
import mimetypes
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage

from utils.app_config import SmtpSettings

logger = logging.getLogger(__name__)


@dataclass
class Attachment:
    filename: str
    content: bytes


@dataclass
class MailMessage:
    sender: str
    to: str
    subject: str
    text: str
    attachments: list[Attachment] = field(default_factory=list)


class SmtpMailer:
    """Delivers MailMessages over SMTP; implicit TLS on port 465, STARTTLS when offered."""

    def __init__(self, settings: SmtpSettings, timeout: float = 30.0):
        self._settings = settings
        self._timeout = timeout

    @property
    def sender(self) -> str:
        return self._settings.sender

    def send(self, message: MailMessage):
        email = self._build(message)
        s = self._settings
        if s.use_ssl:
            smtp = smtplib.SMTP_SSL(s.host, s.port, timeout=self._timeout)
        else:
            smtp = smtplib.SMTP(s.host, s.port, timeout=self._timeout)
        with smtp:
            if not s.use_ssl:
                smtp.ehlo()
                # Plain relays and local catchers may not offer an upgrade.
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            smtp.login(s.user, s.password)
            smtp.send_message(email)
        logger.info("Sent %r to %s", message.subject, message.to)

    @staticmethod
    def _build(message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = message.sender
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.text)
        for att in message.attachments:
            mime, _ = mimetypes.guess_type(att.filename)
            maintype, subtype = (mime or "application/octet-stream").split("/", 1)
            email.add_attachment(att.content, maintype=maintype, subtype=subtype, filename=att.filename)
        return email
