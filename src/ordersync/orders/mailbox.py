#!/usr/bin/env python3
"""
Mailbox Client Module

IMAP access for order emails: fetching headers and full messages by sequence
number, and noticing newly arrived mail.
"""

import email
import email.header
import email.message
import email.utils
import imaplib
import logging
from dataclasses import dataclass
from datetime import datetime

from ..core.config import Config
from ..core.errors import MailboxError
from .models import OrderEmail

logger = logging.getLogger(__name__)


@dataclass
class MailboxConfig:
    """Connection settings for the mailbox."""

    imap_server: str
    imap_port: int
    username: str
    password: str
    use_tls: bool = True
    mailbox: str = "INBOX"


def decode_header(header: str | None) -> str:
    """Decode email header with proper encoding handling."""
    if not header:
        return ""

    try:
        decoded_parts = []
        for part, encoding in email.header.decode_header(header):
            if isinstance(part, bytes):
                decoded_parts.append(part.decode(encoding or "utf-8", errors="ignore"))
            else:
                decoded_parts.append(str(part))
        return "".join(decoded_parts)
    except (LookupError, ValueError) as e:
        logger.warning(f"Error decoding header {header}: {e}")
        return header


def extract_email_content(msg: email.message.Message) -> tuple[str | None, str | None]:
    """
    Extract HTML and text content from an email message.

    Transfer encodings (quoted-printable, base64) are undone by the email
    package.
    """
    html_content = None
    text_content = None

    parts = msg.walk() if msg.is_multipart() else [msg]
    for part in parts:
        if "attachment" in str(part.get("Content-Disposition", "")):
            continue

        content_type = part.get_content_type()
        if content_type not in ("text/html", "text/plain"):
            continue

        payload = part.get_payload(decode=True)
        if not payload or not isinstance(payload, bytes):
            continue
        charset = part.get_content_charset() or "utf-8"
        try:
            content = payload.decode(charset, errors="ignore")
        except LookupError:
            content = payload.decode("utf-8", errors="ignore")

        if content_type == "text/html" and html_content is None:
            html_content = content
        elif content_type == "text/plain" and text_content is None:
            text_content = content

    return html_content, text_content


def parse_raw_email(raw_email: bytes, fallback_id: str, folder: str = "INBOX") -> OrderEmail:
    """Build an OrderEmail from raw RFC 822 bytes."""
    msg = email.message_from_bytes(raw_email)

    date_str = msg.get("Date", "")
    try:
        email_date = email.utils.parsedate_to_datetime(date_str)
    except (TypeError, ValueError):
        email_date = datetime.now()

    html_content, text_content = extract_email_content(msg)

    return OrderEmail(
        message_id=msg.get("Message-ID", fallback_id),
        subject=decode_header(msg.get("Subject", "")),
        sender=decode_header(msg.get("From", "")),
        date=email_date,
        html_content=html_content,
        text_content=text_content,
        folder=folder,
        metadata={"size": len(raw_email)},
    )


class MailboxClient:
    """
    IMAP client for one mailbox.

    Message positions are IMAP sequence numbers (1 = oldest). The client
    remembers the message count so that check_new_mail() can report how many
    messages arrived since the last look.
    """

    def __init__(self, config: MailboxConfig):
        self.config = config
        self.connection: imaplib.IMAP4 | None = None
        self.message_count = 0

    @classmethod
    def from_config(cls, config: Config) -> "MailboxClient":
        return cls(
            MailboxConfig(
                imap_server=config.email.imap_server,
                imap_port=config.email.imap_port,
                username=config.email.username or "",
                password=config.email.password or "",
                use_tls=config.email.use_tls,
                mailbox=config.email.mailbox,
            )
        )

    def connect(self) -> None:
        """
        Connect, log in and open the configured mailbox read-only.

        Raises:
            MailboxError: If the server cannot be reached or rejects the login
        """
        logger.info(f"🔌 Connecting to mail server {self.config.imap_server}:{self.config.imap_port}...")
        try:
            if self.config.use_tls:
                self.connection = imaplib.IMAP4_SSL(self.config.imap_server, self.config.imap_port)
            else:
                self.connection = imaplib.IMAP4(self.config.imap_server, self.config.imap_port)
            self.connection.login(self.config.username, self.config.password)
        except (imaplib.IMAP4.error, OSError) as e:
            self.connection = None
            raise MailboxError(f"Failed to connect to IMAP server: {e}") from e

        logger.info("✅ Connected to mail server. Opening mailbox...")
        self.select(self.config.mailbox)

    def disconnect(self) -> None:
        """Close the mailbox and log out."""
        if not self.connection:
            return
        try:
            self.connection.close()
            self.connection.logout()
            logger.info("Disconnected from IMAP server")
        except (imaplib.IMAP4.error, OSError) as e:
            logger.warning(f"Error during disconnect: {e}")
        finally:
            self.connection = None

    def _require_connection(self) -> imaplib.IMAP4:
        if self.connection is None:
            raise MailboxError("Not connected to IMAP server")
        return self.connection

    def _command(self, name: str, *args, **kwargs):
        """Run an IMAP command, turning protocol and socket errors into MailboxError."""
        connection = self._require_connection()
        try:
            return getattr(connection, name)(*args, **kwargs)
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"IMAP {name.upper()} failed: {e}") from e

    def select(self, mailbox: str) -> int:
        """Open a mailbox read-only and return its message count."""
        result, data = self._command("select", mailbox, readonly=True)
        if result != "OK":
            raise MailboxError(f"Cannot select mailbox {mailbox!r}: {data}")
        self.message_count = int(data[0] or 0)
        logger.info(f"📬 Mailbox {mailbox} has {self.message_count} messages")
        return self.message_count

    def search(self, criteria: str) -> list[int]:
        """Sequence numbers of messages matching an IMAP search."""
        result, data = self._command("search", None, criteria)
        if result != "OK":
            raise MailboxError(f"Search {criteria!r} failed: {data}")
        if not data or not data[0]:
            return []
        return [int(num) for num in data[0].split()]

    def fetch_headers(self, start: int, end: int) -> list[tuple[int, str, str]]:
        """
        Subject and sender of every message in a sequence range.

        Returns:
            (sequence number, subject, sender) per message
        """
        result, data = self._command("fetch", f"{start}:{end}", "(BODY.PEEK[HEADER.FIELDS (FROM SUBJECT)])")
        if result != "OK":
            raise MailboxError(f"Fetching headers {start}:{end} failed: {data}")

        headers = []
        for item in data:
            if not isinstance(item, tuple) or len(item) < 2:
                continue
            try:
                seq = int(item[0].split()[0])
            except (ValueError, IndexError):
                logger.warning(f"⚠️ Unexpected fetch response: {item[0]!r}")
                continue
            msg = email.message_from_bytes(item[1])
            headers.append((seq, decode_header(msg.get("Subject")), decode_header(msg.get("From"))))
        return headers

    def fetch_messages(self, start: int, end: int) -> list[OrderEmail]:
        """Full messages in a sequence range, oldest first."""
        result, data = self._command("fetch", f"{start}:{end}", "(BODY.PEEK[])")
        if result != "OK":
            raise MailboxError(f"Fetching messages {start}:{end} failed: {data}")

        emails = []
        for item in data:
            if not isinstance(item, tuple) or len(item) < 2 or not isinstance(item[1], bytes):
                continue
            seq = item[0].split()[0].decode()
            try:
                emails.append(parse_raw_email(item[1], f"{self.config.mailbox}_{seq}", self.config.mailbox))
            except (ValueError, LookupError) as e:
                logger.error(f"❌ Error processing email {seq}: {e}")
        return emails

    def check_new_mail(self) -> int:
        """
        Number of messages that arrived since the last check.

        Sends NOOP and reads the untagged EXISTS count the server reports.

        Raises:
            MailboxError: If the connection has dropped
        """
        self._command("noop")
        _, data = self._command("response", "EXISTS")
        counts = [int(d) for d in (data or []) if d]
        if not counts:
            return 0

        total = counts[-1]
        new_count = max(0, total - self.message_count)
        self.message_count = total
        return new_count
