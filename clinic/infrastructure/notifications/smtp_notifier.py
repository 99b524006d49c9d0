import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from ...application.ports.notifier import Notifier
from ...exceptions import NotifierFailure

logger = logging.getLogger(__name__)


class SmtpNotifier(Notifier):
    def __init__(self, host: str, port: int, from_address: str, username: Optional[str] = None,
                 password: Optional[str] = None, use_tls: bool = True, timeout: int = 30) -> None:
        self.host = host
        self.port = port
        self.from_address = from_address
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, email: str, subject: str, message: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = email
        msg.attach(MIMEText(message, "plain"))
        return msg

    def send(self, email: str, subject: str, message: str) -> bool:
        msg = self._build_message(email, subject, message)
        try:
            # Port 465 uses implicit SSL, anything else upgrades with STARTTLS when enabled
            if self.port == 465:
                context = ssl.create_default_context()
                server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            try:
                if self.port != 465 and self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username:
                    server.login(self.username, self.password or "")
                server.sendmail(self.from_address.split("<")[-1].rstrip(">"), [email], msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            raise NotifierFailure(str(e), recipient=email) from e

        logger.info(f"Email '{subject}' sent to {email} via {self.host}")
        return True
