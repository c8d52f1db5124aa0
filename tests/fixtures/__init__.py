"""
Test Fixtures and Utilities

This module provides:
- Sample order confirmation emails in each supported layout
- In-memory doubles for the mailbox and the YNAB API
"""
