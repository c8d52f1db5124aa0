#!/usr/bin/env python3
"""
Order Email Parser Module

Turns merchant order-confirmation emails into normalized Order records.

Merchant emails change layout often and arrive mangled by forwarding clients,
so both the order total and the item list are found with ordered fallback
strategies. Each strategy is a plain function of the parsed document; the
first one that produces a usable value wins.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from bs4 import BeautifulSoup, Tag

from ..core.config import Config
from ..core.currency import (
    find_currency_amounts,
    format_milliunits,
    parse_first_currency_amount,
)
from ..core.dates import FinancialDate
from ..core.text import ELLIPSIS, truncate_with_ellipsis
from .models import Order, OrderEmail

logger = logging.getLogger(__name__)

# Plausible product title lengths for image alt text and link text.
# Shorter strings are buttons ("Buy"), longer ones are whole paragraphs.
MIN_TITLE_LENGTH = 5
MAX_TITLE_LENGTH = 200

# Longest text an element may have and still count as a "Total" label
LABEL_MAX_CHARS = 80

# Two titles are similar when their first 5 tokens share at least 3
SIMILARITY_TOKEN_COUNT = 5
SIMILARITY_MIN_SHARED_TOKENS = 3

# The structured item table truncates long titles and marks them like this
TRUNCATED_TITLE_MARKER = ".."

MAX_FALLBACK_ITEMS = 10

PRODUCT_LINK_PATTERN = re.compile(r"/dp/|/gp/product/|/gp/r\.html")
PRODUCT_IMAGE_PATTERN = re.compile(r"/images/I/")
QUANTITY_PATTERN = re.compile(r"^\s*(?:Qty|Quantity)\s*:?\s*\d+\s*$", re.IGNORECASE)
NON_ITEM_PATTERN = re.compile(r"\$|shipping|total", re.IGNORECASE)

GENERIC_IMAGE_TERMS = (
    "amazon",
    "logo",
    "prime",
    "icon",
    "spacer",
    "banner",
    "facebook",
    "twitter",
    "instagram",
    "pinterest",
    "app store",
    "google play",
)

GENERIC_LINK_PHRASES = (
    "view or edit order",
    "view order",
    "order details",
    "your orders",
    "your account",
    "buy again",
    "track package",
    "manage order",
    "customer service",
    "return or replace items",
    "write a product review",
    "unsubscribe",
    "privacy notice",
    "conditions of use",
    "shop now",
)

AmountStrategy = Callable[[BeautifulSoup], int | None]
ItemStrategy = Callable[[BeautifulSoup], list[str]]


# ---------------------------------------------------------------------------
# Amount strategies: return the order total in (positive) milliunits or None
# ---------------------------------------------------------------------------


def structured_total(soup: BeautifulSoup) -> int | None:
    """Total from the cost breakdown table of the standard order template."""
    cells = soup.select('table[id$="costBreakdownRight"] td')
    if not cells:
        return None
    text = " ".join(cell.get_text(strip=True) for cell in cells)
    logger.debug(f"costBreakdownRight text: {text!r}")
    return parse_first_currency_amount(text)


def labeled_total(soup: BeautifulSoup) -> int | None:
    """
    Total from the element right after an "Order Total" / "Total:" label.

    Every label is visited and the last one wins, so "Shipping Total:" rows
    above the order total are overridden.
    """
    total = None
    for elem in soup.find_all(["td", "span", "div"]):
        text = elem.get_text(strip=True)
        if len(text) > LABEL_MAX_CHARS:
            continue
        if "Order Total" not in text and "Total:" not in text:
            continue
        # A wrapper holding both the label and the amount is not the label
        if parse_first_currency_amount(text) is not None:
            continue

        sibling = elem.find_next_sibling()
        if sibling is None:
            continue

        amount = parse_first_currency_amount(sibling.get_text(strip=True))
        if amount:
            logger.debug(f"Found total label {text!r} followed by {format_milliunits(amount)}")
            total = amount

    return total


def document_total(soup: BeautifulSoup) -> int | None:
    """Last currency amount in the document; totals usually come last."""
    amounts = find_currency_amounts(soup.get_text(" "))
    if not amounts:
        return None
    return amounts[-1]


AMOUNT_STRATEGIES: tuple[AmountStrategy, ...] = (structured_total, labeled_total, document_total)


# ---------------------------------------------------------------------------
# Item strategies: return candidate titles in document order
# ---------------------------------------------------------------------------


def _is_plausible_title(text: str) -> bool:
    return MIN_TITLE_LENGTH <= len(text) <= MAX_TITLE_LENGTH


def _collapse_truncated_title(title: str) -> str:
    """
    "Anker USB-C Cable, 6ft Nylon Brai..." -> "Anker USB-C Cable, 6ft Nylon.."

    The half-word before the ellipsis is dropped, then the two-dot marker added.
    """
    if not title.endswith(ELLIPSIS):
        return title
    title = " ".join(title.split(" ")[:-1])
    if title.endswith(","):
        title = title[:-1]
    return title + TRUNCATED_TITLE_MARKER


def structured_items(soup: BeautifulSoup) -> list[str]:
    """Titles from the item details table of the standard order template."""
    titles = []
    for row in soup.select('table[id$="itemDetails"] tr'):
        title = "".join(font.get_text() for font in row.find_all("font")).strip()
        title = _collapse_truncated_title(title)
        if title:
            titles.append(title)
    return titles


def _inside_product_link(elem: Tag) -> bool:
    link = elem.find_parent("a")
    return link is not None and bool(PRODUCT_LINK_PATTERN.search(link.get("href", "")))


def image_items(soup: BeautifulSoup) -> list[str]:
    """Alt text of product images."""
    titles = []
    for img in soup.find_all("img", alt=True):
        alt = " ".join(img["alt"].split())
        if not _is_plausible_title(alt):
            continue
        if any(term in alt.lower() for term in GENERIC_IMAGE_TERMS):
            continue
        if PRODUCT_IMAGE_PATTERN.search(img.get("src", "")) or _inside_product_link(img):
            titles.append(alt)
    return titles


def link_items(soup: BeautifulSoup) -> list[str]:
    """Text of links that point at product pages."""
    titles = []
    for link in soup.find_all("a", href=PRODUCT_LINK_PATTERN):
        text = link.get_text(" ", strip=True)
        if not _is_plausible_title(text):
            continue
        if any(phrase in text.lower() for phrase in GENERIC_LINK_PHRASES):
            continue
        titles.append(text)
    return titles


def quantity_adjacent_items(soup: BeautifulSoup) -> list[str]:
    """Text immediately before a "Qty: N" indicator."""
    titles = []
    for node in soup.find_all(string=QUANTITY_PATTERN):
        elem = node.parent
        if not isinstance(elem, Tag):
            continue

        # Walk outward until some earlier sibling carries text
        candidate = None
        for scope in (elem, elem.parent):
            if scope is None:
                break
            for sibling in scope.find_previous_siblings():
                if sibling.get_text(strip=True):
                    candidate = sibling
                    break
            if candidate is not None:
                break

        if candidate is None:
            continue

        text = candidate.get_text(" ", strip=True)
        if _is_plausible_title(text) and not NON_ITEM_PATTERN.search(text):
            titles.append(text)
    return titles


def table_row_items(soup: BeautifulSoup) -> list[str]:
    """Longest cell of any table row that does not look like a header or total."""
    titles: list[str] = []
    for row in soup.select("table tr"):
        row_text = row.get_text(strip=True)
        lowered = row_text.lower()
        if (
            len(row_text) <= 10
            or "$" in row_text
            or "Total" in row_text
            or "Shipping" in row_text
            or "Tax" in row_text
            or "order" in lowered
            or "date" in lowered
        ):
            continue

        longest = ""
        for cell in row.find_all(["td", "th"]):
            cell_text = cell.get_text(" ", strip=True)
            if len(cell_text) > len(longest) and len(cell_text) > 10:
                longest = cell_text

        if longest:
            titles.append(longest)
        if len(titles) >= MAX_FALLBACK_ITEMS:
            break
    return titles


ITEM_STRATEGIES: tuple[ItemStrategy, ...] = (
    structured_items,
    image_items,
    link_items,
    quantity_adjacent_items,
    table_row_items,
)


def titles_similar(first: str, second: str) -> bool:
    """
    Check whether two item titles describe the same product.

    Equal titles (ignoring case) are similar; otherwise the first five
    whitespace tokens of each must share at least three.
    """
    if first.strip().lower() == second.strip().lower():
        return True
    first_tokens = set(first.lower().split()[:SIMILARITY_TOKEN_COUNT])
    second_tokens = set(second.lower().split()[:SIMILARITY_TOKEN_COUNT])
    return len(first_tokens & second_tokens) >= SIMILARITY_MIN_SHARED_TOKENS


def dedupe_titles(candidates: Iterable[str]) -> list[str]:
    """Keep candidates in order, dropping any similar to one already kept."""
    accepted: list[str] = []
    for candidate in candidates:
        if any(titles_similar(candidate, existing) for existing in accepted):
            logger.debug(f"Dropping similar item: {candidate!r}")
            continue
        accepted.append(candidate)
    return accepted


class OrderEmailParser:
    """
    Extracts Orders from merchant order-confirmation emails.

    Handles the merchant's structured template first and falls back to
    progressively looser heuristics for reformatted or forwarded emails.
    """

    def __init__(
        self,
        subject_patterns: Sequence[str] = ("Your Amazon.com order",),
        excluded_subjects: Sequence[str] = ("has shipped", "has been canceled"),
        sender_patterns: Sequence[str] = (),
        max_item_length: int = 45,
        amount_strategies: Sequence[AmountStrategy] = AMOUNT_STRATEGIES,
        item_strategies: Sequence[ItemStrategy] = ITEM_STRATEGIES,
    ):
        self.subject_patterns = list(subject_patterns)
        self.excluded_subjects = list(excluded_subjects)
        self.sender_patterns = [p.lower() for p in sender_patterns]
        self.max_item_length = max_item_length
        self.amount_strategies = list(amount_strategies)
        self.item_strategies = list(item_strategies)

    @classmethod
    def from_config(cls, config: Config) -> "OrderEmailParser":
        return cls(
            subject_patterns=config.merchant.subject_patterns,
            excluded_subjects=config.merchant.excluded_subjects,
            sender_patterns=config.merchant.sender_patterns,
            max_item_length=config.matching.max_item_length,
        )

    def is_order_email(self, subject: str, sender: str = "") -> bool:
        """
        Decide from the headers alone whether an email is an order confirmation.

        Shipment and cancellation notices share the order subject prefix and
        are excluded explicitly.
        """
        if not subject:
            return False
        if not any(pattern in subject for pattern in self.subject_patterns):
            return False
        if any(excluded in subject for excluded in self.excluded_subjects):
            return False
        if self.sender_patterns and not any(p in (sender or "").lower() for p in self.sender_patterns):
            return False
        return True

    def extract(self, email: OrderEmail) -> Order | None:
        """
        Extract an Order from an email.

        Never raises: anything that is not a parseable order confirmation
        yields None and a log message.
        """
        if not self.is_order_email(email.subject, email.sender):
            logger.debug(f"Ignoring non-order email: {email.subject!r}")
            return None

        try:
            return self.parse_body(email.body, email.date, email.message_id)
        except Exception as e:
            logger.error(f"❌ Failed to parse email {email.subject!r}: {e}")
            return None

    def extract_many(self, emails: Iterable[OrderEmail]) -> list[Order]:
        """Extract every order in a batch, skipping emails that yield none."""
        orders = []
        for email in emails:
            order = self.extract(email)
            if order is not None:
                orders.append(order)
        return orders

    def parse_body(self, body: str | None, received: datetime, source_ref: str) -> Order | None:
        """
        Build an Order from an email body without looking at the headers.

        Args:
            body: HTML (or plain text) body of the email
            received: When the email was received
            source_ref: Identifier of the email, kept on the Order

        Returns:
            The Order, or None when no total or no items can be found
        """
        if not body:
            logger.warning(f"⚠️ Email body is empty, skipping {source_ref}")
            return None

        # Outlook prefixes every id/class with "x_" when forwarding
        soup = BeautifulSoup(body.replace('"x_', '"'), "lxml")

        amount = self._first_amount(soup)
        if amount is None:
            logger.warning(f"⚠️ Could not parse valid amount from email {source_ref}")
            return None

        items = self._first_items(soup)
        if not items:
            logger.warning(f"⚠️ No items found in email {source_ref}")
            logger.debug(f"Email body preview: {body[:500]}...")
            return None

        order = Order(
            date=FinancialDate.from_datetime(received),
            amount=-amount,
            items=tuple(truncate_with_ellipsis(item, self.max_item_length) for item in items),
            source_ref=source_ref,
        )
        logger.info(f"📦 {order}")
        return order

    def _first_amount(self, soup: BeautifulSoup) -> int | None:
        for strategy in self.amount_strategies:
            amount = strategy(soup)
            if amount is not None and amount > 0:
                logger.debug(f"Amount {format_milliunits(amount)} found by {strategy.__name__}")
                return amount
        return None

    def _first_items(self, soup: BeautifulSoup) -> list[str]:
        for strategy in self.item_strategies:
            items = dedupe_titles(strategy(soup))
            if items:
                logger.debug(f"{len(items)} item(s) found by {strategy.__name__}")
                return items
        return []

