"""
Test Suite for ordersync

Test Structure:
- fixtures/: Sample order emails and in-memory mailbox/YNAB doubles
- unit/: Unit tests mirroring src/ package structure
- integration/: Service pipeline and CLI tests

All order emails and transactions here are synthetic.
"""
