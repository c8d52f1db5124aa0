#!/usr/bin/env python3
"""
YNAB API Client

Thin requests-based client for the three YNAB endpoints ordersync needs:
listing budgets, delta-syncing transactions and batch-updating memos.
"""

import logging
from collections.abc import Sequence
from typing import Any

import requests

from ..core.config import Config
from ..core.dates import FinancialDate
from ..core.errors import YnabApiError
from .models import TransactionDelta, TransactionUpdate, YnabBudget, YnabTransaction

logger = logging.getLogger(__name__)


def extract_ynab_error(response: requests.Response) -> str:
    """Extract error detail from YNAB API response."""
    try:
        return response.json().get("error", {}).get("detail", response.text)
    except ValueError:
        return response.text


class YnabClient:
    """
    YNAB API client.

    Every failure (HTTP error status or transport error) surfaces as
    YnabApiError so callers have a single exception type to handle.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.ynab.com/v1",
        timeout: int = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_token}",
                "Accept": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: Config) -> "YnabClient":
        return cls(
            api_token=config.ynab.api_token or "",
            base_url=config.ynab.base_url,
            timeout=config.ynab.timeout,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise YnabApiError(None, f"{method} {path} failed: {e}") from e

        if not response.ok:
            detail = extract_ynab_error(response)
            logger.debug(f"YNAB {method} {path} returned {response.status_code}: {detail}")
            raise YnabApiError(response.status_code, detail)

        try:
            payload = response.json()
        except ValueError as e:
            raise YnabApiError(response.status_code, f"Invalid JSON from {path}") from e
        return payload.get("data", {})

    def get_budgets(self) -> list[YnabBudget]:
        """List the budgets the token can access."""
        data = self._request("GET", "/budgets")
        return [YnabBudget.from_dict(b) for b in data.get("budgets", [])]

    def get_transactions(
        self,
        budget_id: str,
        since_date: FinancialDate | None = None,
        last_knowledge_of_server: int | None = None,
    ) -> TransactionDelta:
        """
        Fetch transactions, optionally only those changed since a cursor.

        Args:
            budget_id: Budget to read
            since_date: Only transactions on or after this date
            last_knowledge_of_server: Cursor from a previous call; None for a full sync

        Returns:
            TransactionDelta with the transactions and the new cursor
        """
        params: dict[str, Any] = {}
        if since_date is not None:
            params["since_date"] = since_date.to_ynab_format()
        if last_knowledge_of_server is not None:
            params["last_knowledge_of_server"] = last_knowledge_of_server

        data = self._request("GET", f"/budgets/{budget_id}/transactions", params=params)
        return TransactionDelta(
            transactions=[YnabTransaction.from_dict(t) for t in data.get("transactions", [])],
            server_knowledge=data.get("server_knowledge"),
        )

    def update_transactions(self, budget_id: str, updates: Sequence[TransactionUpdate]) -> list[str]:
        """
        Update several transactions in one request.

        Returns:
            Ids of the transactions YNAB reports as updated
        """
        body = {"transactions": [u.to_dict() for u in updates]}
        data = self._request("PATCH", f"/budgets/{budget_id}/transactions", json=body)
        return list(data.get("transaction_ids", []))
