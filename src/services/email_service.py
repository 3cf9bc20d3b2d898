import smtplib
import logging
import threading
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formatdate, make_msgid
from datetime import datetime
from html import escape
from typing import Callable, Optional

import pytz

from models.search import SearchRecord, EmailContent, DeliveryReceipt
from services.secret_service import SecretCache

logger = logging.getLogger(__name__)


def _display_timestamp(timestamp_ms: int, timezone_name: str) -> str:
    """Human readable local time, e.g. '19 Oct 2026, 02:15:07 PM AEDT'"""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=pytz.UTC)
    local = moment.astimezone(pytz.timezone(timezone_name))
    return local.strftime('%d %b %Y, %I:%M:%S %p %Z')


def _iso_timestamp(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=pytz.UTC)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def render_email(record: SearchRecord, timezone_name: str = 'Australia/Sydney') -> EmailContent:
    """Build the notification for a search record"""
    logger.info(f"Generating email content for search {record.searchId}...")

    if record.queriedPrice is not None:
        price_display = f"{record.queriedPrice} {record.queriedCurrency.upper()}"
    else:
        price_display = f"Could not be fetched ({record.fetchStatus})"

    display_timestamp = _display_timestamp(record.timestamp, timezone_name)

    subject = f"Crypto Price Search: {record.cryptocurrencyId}"
    html = f"""
<h1>Cryptocurrency Price Information</h1>
<p>You requested the price for:</p>
<ul>
    <li>Cryptocurrency: <strong>{escape(record.cryptocurrencyId)}</strong></li>
    <li>Current Price: <strong>{escape(price_display)}</strong></li>
    <li>Timestamp: {escape(display_timestamp)}</li>
    <li>Search ID: {escape(record.searchId)}</li>
    <li>Fetch Status: {escape(record.fetchStatus)}</li>
</ul>
"""
    text = (
        "Cryptocurrency Price Information:\n"
        f"Cryptocurrency: {record.cryptocurrencyId}\n"
        f"Current Price: {price_display}\n"
        f"Timestamp: {_iso_timestamp(record.timestamp)}\n"
        f"Search ID: {record.searchId}\n"
        f"Fetch Status: {record.fetchStatus}"
    )

    return EmailContent(subject=subject, html=html, text=text)


def is_valid_recipient(recipient_email) -> bool:
    return isinstance(recipient_email, str) and bool(recipient_email) and '@' in recipient_email


class SmtpTransport:
    """Authenticated SMTP relay using STARTTLS"""

    def __init__(self, host: str, port: int, username: str, password: str):
        self.host = host
        self.port = port
        self.username = username
        self.password = password

    def send_message(self, message: MIMEMultipart) -> dict:
        """Send one message, returning the recipients the relay refused"""
        with smtplib.SMTP(self.host, self.port) as server:
            server.starttls()
            server.login(self.username, self.password)
            return server.send_message(message)


class EmailService:
    """Sends search notifications through the mail relay"""

    def __init__(
        self,
        token_cache: SecretCache,
        smtp_user: str,
        from_email: str,
        smtp_host: str = 'live.smtp.mailtrap.io',
        smtp_port: int = 587,
        transport_factory: Callable[..., SmtpTransport] = SmtpTransport
    ):
        self.token_cache = token_cache
        self.smtp_user = smtp_user
        self.email_from = from_email
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.transport_factory = transport_factory
        self._transport: Optional[SmtpTransport] = None
        self._lock = threading.Lock()

    def _ensure_transport(self) -> SmtpTransport:
        if self._transport is not None:
            return self._transport

        with self._lock:
            if self._transport is None:
                token = self.token_cache.get_secret()
                logger.info("Initializing SMTP transport...")
                self._transport = self.transport_factory(
                    host=self.smtp_host,
                    port=self.smtp_port,
                    username=self.smtp_user,
                    password=token
                )
                logger.info("SMTP transport initialized.")
        return self._transport

    def _sender_domain(self) -> str:
        # 'Name <user@example.com>' -> 'example.com'
        return self.email_from.rsplit('@', 1)[-1].rstrip('>').strip() or 'localhost'

    def _build_message(self, content: EmailContent, recipient_email: str, message_id: str) -> MIMEMultipart:
        message = MIMEMultipart('alternative')
        message['From'] = self.email_from
        message['To'] = recipient_email
        message['Subject'] = content.subject
        message['Date'] = formatdate(usegmt=True)
        message['Message-ID'] = message_id

        # Last part is the preferred alternative
        message.attach(MIMEText(content.text, 'plain'))
        message.attach(MIMEText(content.html, 'html'))
        return message

    def send_notification(
        self,
        search_id: str,
        content: EmailContent,
        recipient_email: str
    ) -> Optional[DeliveryReceipt]:
        """
        Email a rendered notification

        Never raises: an invalid recipient is skipped and transport failures are
        logged, since the search record is already stored.

        Returns:
            A delivery receipt, or None when nothing was sent
        """
        if not is_valid_recipient(recipient_email):
            logger.error(f"Invalid or missing recipient email address provided for search {search_id}: {recipient_email}")
            return None

        try:
            transport = self._ensure_transport()
            logger.info(f"Attempting to send email notification for search {search_id} to {recipient_email}...")
            message_id = make_msgid(idstring=search_id, domain=self._sender_domain())
            refused = transport.send_message(self._build_message(content, recipient_email, message_id))
        except Exception as e:
            logger.error(f"Email Sending Error for search {search_id} to {recipient_email}: {str(e)}")
            return None

        receipt = DeliveryReceipt(
            message_id=message_id,
            recipient=recipient_email,
            refused=sorted(refused or {})
        )
        logger.info(f"Email sent successfully for {search_id} to {recipient_email}. Message ID: {receipt.message_id}")
        return receipt
