"""
In-memory stand-ins for the mailbox and the YNAB API.

They implement the same methods the service calls on MailboxClient and
YnabClient, and record every call for assertions.
"""

from dataclasses import replace
from datetime import datetime

from ordersync.core.errors import MailboxError
from ordersync.orders.models import OrderEmail
from ordersync.ynab.models import TransactionDelta, YnabBudget, YnabTransaction


class FakeLedger:
    """YNAB double: serves queued deltas and records updates."""

    def __init__(self, transactions=None, budgets=None):
        self.budgets = budgets if budgets is not None else [YnabBudget(id="test-budget", name="Household")]
        self.pending_deltas: list[list[YnabTransaction]] = [list(transactions or [])]
        self.server_knowledge = 100
        self.get_calls: list[tuple] = []
        self.update_calls: list[tuple] = []
        self.fail_get: Exception | None = None
        self.fail_update: Exception | None = None

    def queue_delta(self, transactions):
        self.pending_deltas.append(list(transactions))

    def get_budgets(self):
        if self.fail_get:
            raise self.fail_get
        return list(self.budgets)

    def get_transactions(self, budget_id, since_date=None, last_knowledge_of_server=None):
        self.get_calls.append((budget_id, since_date, last_knowledge_of_server))
        if self.fail_get:
            raise self.fail_get

        changed = self.pending_deltas.pop(0) if self.pending_deltas else []
        self.server_knowledge += 1
        # Copies, so local memo edits never leak back into the "server"
        return TransactionDelta(
            transactions=[replace(t) for t in changed],
            server_knowledge=self.server_knowledge,
        )

    def update_transactions(self, budget_id, updates):
        if self.fail_update:
            raise self.fail_update
        self.update_calls.append((budget_id, list(updates)))
        return [u.id for u in updates]


class FakeMailbox:
    """Mailbox double backed by a list of OrderEmail, oldest first."""

    def __init__(self, emails=None):
        self.emails: list[OrderEmail] = list(emails or [])
        self.message_count = 0
        self.connected = False
        self.fail_connect: Exception | None = None
        self.fetch_message_calls: list[tuple[int, int]] = []
        self.fail_fetch_seqs: set[int] = set()
        self.fail_check: Exception | None = None

    def connect(self):
        if self.fail_connect:
            raise self.fail_connect
        self.connected = True
        self.message_count = len(self.emails)

    def disconnect(self):
        self.connected = False

    def _range(self, start, end):
        if not self.connected:
            raise MailboxError("Not connected to IMAP server")
        return range(start, end + 1)

    def fetch_headers(self, start, end):
        return [(seq, self.emails[seq - 1].subject, self.emails[seq - 1].sender) for seq in self._range(start, end)]

    def fetch_messages(self, start, end):
        self.fetch_message_calls.append((start, end))
        failed = self.fail_fetch_seqs.intersection(self._range(start, end))
        if failed:
            raise MailboxError(f"FETCH failed for message {min(failed)}")
        return [self.emails[seq - 1] for seq in self._range(start, end)]

    def deliver(self, email: OrderEmail):
        self.emails.append(email)

    def check_new_mail(self):
        if self.fail_check:
            raise self.fail_check
        new_count = len(self.emails) - self.message_count
        self.message_count = len(self.emails)
        return new_count


def make_order_email(
    html: str,
    subject: str = "Your Amazon.com order #112-5551234-7654321",
    received: datetime | None = None,
    message_id: str = "<order-1@amazon.com>",
    sender: str = "auto-confirm@amazon.com",
) -> OrderEmail:
    return OrderEmail(
        message_id=message_id,
        subject=subject,
        sender=sender,
        date=received or datetime(2024, 3, 1, 12, 0, 0),
        html_content=html,
    )
