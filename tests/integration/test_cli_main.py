#!/usr/bin/env python3
"""
Integration tests for CLI Main Entry Point

Tests CLI command execution with the service collaborators replaced by
in-memory doubles.
"""

import json
from datetime import datetime
from email.mime.text import MIMEText
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ordersync.cli.main import main
from ordersync.core.config import Config
from ordersync.core.errors import MailboxError
from ordersync.service import ReconciliationService
from tests.fixtures.fakes import FakeLedger, FakeMailbox, make_order_email
from tests.fixtures.orders.email_samples import NO_AMOUNT_HTML, STRUCTURED_HTML


@pytest.mark.integration
class TestCLIMainIntegration:
    """Test main CLI entry point with real command execution."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_help_command_lists_all_subcommands(self):
        result = self.runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ["run", "backfill", "parse", "config", "version"]:
            assert command in result.output

    def test_version_command_shows_version_info(self):
        result = self.runner.invoke(main, ["version"])

        assert result.exit_code == 0
        assert "ordersync v0.1.0" in result.output
        assert "Author:" in result.output

    def test_config_command_redacts_secrets(self):
        result = self.runner.invoke(main, ["config"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["environment"] == "test"
        assert data["ynab"]["api_token"] == "***REDACTED***"
        assert "test-token" not in result.output

    def test_verbose_shows_environment(self):
        result = self.runner.invoke(main, ["--verbose", "version"])

        assert result.exit_code == 0
        assert "Environment: test" in result.output

    def test_invalid_configuration_fails(self, monkeypatch):
        monkeypatch.setenv("MAX_ORDERS", "0")

        result = self.runner.invoke(main, ["version"])

        assert result.exit_code == 1
        assert "MAX_ORDERS must be positive" in result.output

    def test_invalid_command_shows_error(self):
        result = self.runner.invoke(main, ["reconcile-everything"])
        assert result.exit_code != 0


@pytest.mark.integration
class TestParseCommand:
    """Test offline extraction from saved emails."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_parse_html(self, tmp_path):
        path = tmp_path / "order.html"
        path.write_text(STRUCTURED_HTML)

        result = self.runner.invoke(main, ["parse", str(path)])

        assert result.exit_code == 0
        assert "Amount: -52.30" in result.output
        assert "  - USB-C Cable, 6ft" in result.output

    def test_parse_eml_as_json(self, tmp_path):
        msg = MIMEText(STRUCTURED_HTML, "html")
        msg["Subject"] = "Your Amazon.com order #112-5551234-7654321"
        msg["From"] = "auto-confirm@amazon.com"
        msg["Date"] = "Fri, 01 Mar 2024 09:00:00 +0000"
        msg["Message-ID"] = "<order-1@amazon.com>"
        path = tmp_path / "order.eml"
        path.write_bytes(msg.as_bytes())

        result = self.runner.invoke(main, ["parse", str(path), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["amount"] == -52300
        assert data["items"] == ["USB-C Cable, 6ft"]
        assert data["source_ref"] == "<order-1@amazon.com>"

    def test_parse_without_order_fails(self, tmp_path):
        path = tmp_path / "newsletter.html"
        path.write_text(NO_AMOUNT_HTML)

        result = self.runner.invoke(main, ["parse", str(path)])

        assert result.exit_code == 1
        assert "No order found" in result.output


@pytest.mark.integration
class TestServiceCommands:
    """Test commands that start the reconciliation service."""

    def setup_method(self):
        self.runner = CliRunner()

    def build_service(self, mailbox, ledger):
        return ReconciliationService(Config.from_environment(), mailbox, ledger)

    def test_backfill_reports_status(self, make_transaction):
        mailbox = FakeMailbox([make_order_email(STRUCTURED_HTML, received=datetime(2024, 3, 1, 10, 0))])
        ledger = FakeLedger([make_transaction(id="t1", date="2024-03-02", amount=-52300)])
        service = self.build_service(mailbox, ledger)

        with patch.object(ReconciliationService, "from_config", return_value=service):
            result = self.runner.invoke(main, ["backfill", "--num-emails", "10"])

        assert result.exit_code == 0
        assert "Backfill complete: 1 order(s) found" in result.output
        assert "1 transactions cached, 1 order(s) cached" in result.output
        assert ledger.update_calls[0][1][0].memo == "USB-C Cable, 6ft"
        assert not mailbox.connected

    def test_startup_failure_exits_with_status_1(self):
        ledger = FakeLedger(budgets=[])
        service = self.build_service(FakeMailbox(), ledger)

        with patch.object(ReconciliationService, "from_config", return_value=service):
            result = self.runner.invoke(main, ["run"])

        assert result.exit_code == 1
        assert "Startup failed" in result.output

    def test_run_exits_with_status_1_when_mailbox_drops(self):
        ledger = FakeLedger()
        mailbox = FakeMailbox()
        service = self.build_service(mailbox, ledger)
        service.config.service.mail_poll_interval_seconds = 0
        mailbox.fail_check = MailboxError("IMAP NOOP failed: socket error: EOF")

        with patch.object(ReconciliationService, "from_config", return_value=service), patch(
            "ordersync.cli.main.signal.signal"
        ):
            result = self.runner.invoke(main, ["run"])

        assert result.exit_code == 1
        assert "Mailbox error" in result.output
        assert not mailbox.connected
