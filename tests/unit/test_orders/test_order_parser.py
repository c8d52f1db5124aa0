#!/usr/bin/env python3
"""Tests for order email classification and extraction."""

from datetime import datetime

import pytest
from bs4 import BeautifulSoup

from ordersync.core.dates import FinancialDate
from ordersync.orders.parser import (
    OrderEmailParser,
    dedupe_titles,
    document_total,
    image_items,
    labeled_total,
    link_items,
    structured_items,
    structured_total,
    table_row_items,
    titles_similar,
)
from tests.fixtures.fakes import make_order_email
from tests.fixtures.orders.email_samples import (
    ALL_SAMPLES,
    IMAGE_LAYOUT_HTML,
    LINK_LAYOUT_HTML,
    NO_AMOUNT_HTML,
    NO_ITEMS_HTML,
    STRUCTURED_HTML,
    TABLE_LAYOUT_HTML,
    TRUNCATED_TITLE_HTML,
)


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


@pytest.fixture
def parser():
    return OrderEmailParser()


@pytest.mark.orders
class TestOrderEmailClassification:
    """Test deciding from headers whether an email is an order."""

    @pytest.mark.parametrize(
        "subject,expected",
        [
            ('Your Amazon.com order #112-5551234-7654321 of "USB-C Cable"', True),
            ("Your Amazon.com order of USB-C Cable has shipped!", False),
            ("Your Amazon.com order #112-5551234-7654321 has been canceled", False),
            ("Your receipt from Apple.", False),
            ("", False),
        ],
    )
    def test_subject_rules(self, parser, subject, expected):
        assert parser.is_order_email(subject) is expected

    def test_sender_patterns(self):
        parser = OrderEmailParser(sender_patterns=["@amazon.com"])

        assert parser.is_order_email("Your Amazon.com order #1", "auto-confirm@amazon.com")
        assert not parser.is_order_email("Your Amazon.com order #1", "phish@example.com")


@pytest.mark.orders
class TestAmountStrategies:
    """Test each way of finding the order total."""

    def test_structured_total(self):
        assert structured_total(soup_of(STRUCTURED_HTML)) == 52300
        assert structured_total(soup_of(IMAGE_LAYOUT_HTML)) is None

    def test_labeled_total(self):
        assert labeled_total(soup_of(IMAGE_LAYOUT_HTML)) == 34570

    def test_labeled_total_last_label_wins(self):
        html = (
            "<table>"
            "<tr><td>Shipping Total:</td><td>$5.99</td></tr>"
            "<tr><td>Order Total:</td><td>$52.30</td></tr>"
            "</table>"
        )
        assert labeled_total(soup_of(html)) == 52300

    def test_labeled_total_ignores_wrapper_with_amount(self):
        html = "<div><span>Order Total: $10.00</span><span>Promo $2.00</span></div>"
        assert labeled_total(soup_of(html)) is None

    def test_document_total_takes_last_amount(self):
        assert document_total(soup_of(TABLE_LAYOUT_HTML)) == 43200
        assert document_total(soup_of(NO_AMOUNT_HTML)) is None


@pytest.mark.orders
class TestItemStrategies:
    """Test each way of finding item titles."""

    def test_structured_items_collapse_truncated_titles(self):
        assert structured_items(soup_of(TRUNCATED_TITLE_HTML)) == [
            "Anker PowerLine III USB-C to USB-C Cable..",
            "Wool Socks, 3 Pack",
        ]

    def test_image_items_skip_logos(self):
        assert image_items(soup_of(IMAGE_LAYOUT_HTML)) == [
            "Stainless Steel Water Bottle 32oz",
            "Organic Green Tea, 100 Count",
        ]

    def test_link_items_skip_navigation(self):
        assert link_items(soup_of(LINK_LAYOUT_HTML)) == ["Mechanical Keyboard with Brown Switches"]

    def test_table_row_items_are_capped(self):
        rows = "".join(f"<tr><td>Replacement Filter Model {i:02d}</td></tr>" for i in range(15))
        items = table_row_items(soup_of(f"<table>{rows}</table>"))
        assert len(items) == 10
        assert items[0] == "Replacement Filter Model 00"


@pytest.mark.orders
class TestTitleDeduplication:
    """Test dropping near-duplicate titles."""

    def test_identical_titles_similar(self):
        assert titles_similar("USB-C Cable", "usb-c cable")

    def test_shared_leading_tokens_similar(self):
        assert titles_similar("Anker USB-C Cable 6ft Black", "Anker USB-C Cable 3ft White")

    def test_different_titles_not_similar(self):
        assert not titles_similar("Anker USB-C Cable", "Wool Socks, 3 Pack")

    def test_dedupe_keeps_first(self):
        titles = ["Anker USB-C Cable 6ft Black", "Wool Socks", "Anker USB-C Cable 6ft Nylon"]
        assert dedupe_titles(titles) == ["Anker USB-C Cable 6ft Black", "Wool Socks"]


@pytest.mark.orders
class TestOrderExtraction:
    """Test building Orders from whole emails."""

    @pytest.mark.parametrize("sample", ALL_SAMPLES)
    def test_sample_layouts(self, parser, sample):
        order = parser.extract(make_order_email(sample["html"]))

        assert order is not None
        assert order.amount == -sample["expected"]["amount"]
        assert list(order.items) == sample["expected"]["items"]

    def test_order_fields(self, parser):
        order = parser.extract(make_order_email(STRUCTURED_HTML, received=datetime(2024, 3, 1, 9, 30)))

        assert order.date == FinancialDate.from_string("2024-03-01")
        assert order.amount == -52300
        assert order.items == ("USB-C Cable, 6ft",)
        assert order.source_ref == "<order-1@amazon.com>"

    def test_amount_is_negative(self, parser):
        for sample in ALL_SAMPLES:
            order = parser.extract(make_order_email(sample["html"]))
            assert order.amount < 0

    def test_items_truncated_to_max_length(self):
        parser = OrderEmailParser(max_item_length=20)
        order = parser.extract(make_order_email(TRUNCATED_TITLE_HTML))

        assert order.items[0] == "Anker PowerLine I..."
        assert all(len(item) <= 20 for item in order.items)

    def test_shipping_notice_ignored(self, parser):
        email = make_order_email(STRUCTURED_HTML, subject="Your Amazon.com order has shipped")
        assert parser.extract(email) is None

    def test_no_amount_yields_none(self, parser):
        assert parser.extract(make_order_email(NO_AMOUNT_HTML)) is None

    def test_no_items_yields_none(self, parser):
        assert parser.extract(make_order_email(NO_ITEMS_HTML)) is None

    def test_empty_body_yields_none(self, parser):
        assert parser.extract(make_order_email("")) is None

    def test_extract_many_skips_failures(self, parser):
        emails = [
            make_order_email(STRUCTURED_HTML),
            make_order_email(NO_AMOUNT_HTML),
            make_order_email(IMAGE_LAYOUT_HTML),
        ]
        orders = parser.extract_many(emails)
        assert [o.amount for o in orders] == [-52300, -34570]

    def test_parse_errors_are_contained(self):
        def broken_strategy(soup):
            raise RuntimeError("boom")

        parser = OrderEmailParser(amount_strategies=[broken_strategy])
        assert parser.extract(make_order_email(STRUCTURED_HTML)) is None
