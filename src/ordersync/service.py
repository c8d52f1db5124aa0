#!/usr/bin/env python3
"""
Reconciliation Service

Drives the pipeline: mailbox → extractor → order history → (cache refresh)
→ matcher → annotator. Three drivers feed it (the startup backfill, new
mail, and a periodic resync) and they run one at a time from a single loop,
so the history and cache need no locking.
"""

import logging
import threading
import time
from typing import Any

from .core.config import Config
from .core.dates import FinancialDate
from .core.errors import MailboxError, StartupError, YnabApiError
from .orders.history import OrderHistory
from .orders.mailbox import MailboxClient
from .orders.matcher import OrderMatcher
from .orders.models import Order
from .orders.parser import OrderEmailParser
from .ynab.annotator import TransactionAnnotator
from .ynab.cache import TransactionCache
from .ynab.client import YnabClient

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Owns the pipeline state and runs its steps."""

    def __init__(
        self,
        config: Config,
        mailbox: MailboxClient,
        client: YnabClient,
        parser: OrderEmailParser | None = None,
        history: OrderHistory | None = None,
        cache: TransactionCache | None = None,
        matcher: OrderMatcher | None = None,
        annotator: TransactionAnnotator | None = None,
    ):
        self.config = config
        self.mailbox = mailbox
        self.client = client
        self.budget_id = config.ynab.budget_id or ""

        self.parser = parser or OrderEmailParser.from_config(config)
        self.history = history or OrderHistory(config.matching.max_orders)
        self.cache = cache or TransactionCache(
            client,
            self.budget_id,
            merchant_name=config.merchant.name,
            placeholder_memos=config.ynab.placeholder_memos,
        )
        self.matcher = matcher or OrderMatcher.from_config(config)
        self.annotator = annotator or TransactionAnnotator.from_config(client, config)

        self._stop_event = threading.Event()

    @classmethod
    def from_config(cls, config: Config) -> "ReconciliationService":
        return cls(config, MailboxClient.from_config(config), YnabClient.from_config(config))

    def startup(self) -> None:
        """
        Check both collaborators before doing any work.

        Raises:
            StartupError: If the budget is unknown, YNAB is unreachable or
                the mailbox cannot be opened
        """
        if not self.budget_id:
            raise StartupError("YNAB_BUDGET_ID is not configured")

        logger.info("🔑 Checking YNAB access...")
        try:
            budgets = self.client.get_budgets()
        except YnabApiError as e:
            raise StartupError(f"Cannot reach YNAB: {e}") from e

        budget = next((b for b in budgets if b.id == self.budget_id), None)
        if budget is None:
            raise StartupError(f"Budget {self.budget_id} not found among {len(budgets)} accessible budget(s)")
        logger.info(f"✅ Using budget {budget.name}")

        try:
            self.mailbox.connect()
        except MailboxError as e:
            raise StartupError(str(e)) from e

    def shutdown(self) -> None:
        self.mailbox.disconnect()

    def _since_date(self) -> FinancialDate | None:
        """Oldest order date in history, bounding the first full sync."""
        if not self.history:
            return None
        return min(order.date for order in self.history)

    def _add_orders(self, orders: list[Order]) -> int:
        added = self.history.extend(orders)
        for order in orders:
            logger.info(f"🛒 Cached order: {order}")
        return added

    def backfill(self, num_emails: int | None = None) -> int:
        """
        Extract orders from the most recent emails, then match them.

        Headers are scanned first so only order emails are downloaded. A
        message that fails to download is skipped. A ledger failure aborts
        the matching step but not the backfill.

        Returns:
            Number of orders added to history
        """
        if num_emails is None:
            num_emails = self.config.matching.backfill_num_emails

        total = self.mailbox.message_count
        if total == 0 or num_emails <= 0:
            logger.info("📭 Nothing to backfill")
            return 0

        start = max(1, total - num_emails + 1)
        logger.info(f"⏮️ Backfilling messages {start}:{total}")

        headers = self.mailbox.fetch_headers(start, total)
        order_seqs = [seq for seq, subject, sender in headers if self.parser.is_order_email(subject, sender)]
        logger.info(f"Found {len(order_seqs)} order email(s) in {len(headers)} message(s)")

        orders: list[Order] = []
        for seq in order_seqs:
            try:
                order_emails = self.mailbox.fetch_messages(seq, seq)
            except MailboxError as e:
                logger.error(f"❌ Error fetching message {seq}: {e}")
                continue
            for order_email in order_emails:
                order = self.parser.extract(order_email)
                if order is not None:
                    orders.append(order)

        added = self._add_orders(orders)

        if self.history:
            try:
                self.cache.refresh(since_date=self._since_date())
                self.match_and_update()
            except YnabApiError as e:
                logger.error(f"❌ Backfill matching aborted: {e}")

        return added

    def handle_new_mail(self, count: int) -> int:
        """
        Process the `count` newest messages.

        Returns:
            Number of new orders
        """
        if count <= 0:
            return 0

        total = self.mailbox.message_count
        start = max(1, total - count + 1)
        logger.info(f"📨 {count} new message(s)")

        emails = self.mailbox.fetch_messages(start, total)
        orders = self.parser.extract_many(emails)
        if not orders:
            return 0

        self._add_orders(orders)
        try:
            self.cache.refresh(since_date=self._since_date())
            self.match_and_update()
        except YnabApiError as e:
            logger.error(f"❌ Error handling new mail: {e}")

        return len(orders)

    def periodic_sync(self) -> int:
        """Refresh the cache and re-run matching; skips the cycle on ledger errors."""
        if not self.history:
            logger.debug("No orders cached, skipping sync")
            return 0

        try:
            self.cache.refresh(since_date=self._since_date())
            return self.match_and_update()
        except YnabApiError as e:
            logger.error(f"❌ Periodic sync failed, skipping: {e}")
            return 0

    def match_and_update(self) -> int:
        """Match history against the cache and annotate the results."""
        orders = self.history.orders()
        matches = self.matcher.match(orders, self.cache)
        updated = self.annotator.apply(matches, orders, self.cache)
        logger.info(self.status_line())
        return updated

    def status(self) -> dict[str, Any]:
        return {
            "transactions_cached": self.cache.count(),
            "orders_cached": len(self.history),
            "server_knowledge": self.cache.cursor,
        }

    def status_line(self) -> str:
        return f"{self.cache.count()} transactions cached, {len(self.history)} order(s) cached"

    def request_stop(self) -> None:
        """Ask run_forever() to exit after the step in progress."""
        logger.info("🛑 Stop requested")
        self._stop_event.set()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def run_forever(self) -> None:
        """
        Poll for new mail and resync on a timer until request_stop().

        Waits are cut into slices no longer than the shutdown grace period,
        so a stop request is honored within that bound once the current step
        finishes.

        Raises:
            MailboxError: If the mailbox connection fails
        """
        poll_interval = self.config.service.mail_poll_interval_seconds
        sync_interval = self.config.service.sync_interval_seconds
        grace = max(1, self.config.service.shutdown_grace_seconds)

        next_poll = time.monotonic() + poll_interval
        next_sync = time.monotonic() + sync_interval
        logger.info(f"👀 Watching mailbox (poll every {poll_interval}s, sync every {sync_interval}s)")

        while not self.stopping:
            now = time.monotonic()

            if now >= next_poll:
                try:
                    self.handle_new_mail(self.mailbox.check_new_mail())
                except MailboxError as e:
                    logger.error(f"❌ Mailbox connection lost: {e}")
                    raise
                next_poll = time.monotonic() + poll_interval

            if self.stopping:
                break

            if now >= next_sync:
                self.periodic_sync()
                next_sync = time.monotonic() + sync_interval

            wait = min(next_poll, next_sync) - time.monotonic()
            if wait > 0:
                self._stop_event.wait(min(wait, grace))

        logger.info("👋 Stopped")
