"""Exception types shared across ordersync."""


class OrderSyncError(Exception):
    """Base class for ordersync errors."""


class StartupError(OrderSyncError):
    """A collaborator could not be reached or configured at startup."""


class MailboxError(OrderSyncError):
    """The IMAP server rejected a command."""


class YnabApiError(OrderSyncError):
    """YNAB API returned an error response."""

    def __init__(self, status_code: int | None, detail: str):
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            super().__init__(detail)
        else:
            super().__init__(f"YNAB API error {status_code}: {detail}")
