"""
Command Line Interface Package

Command Structure:
- ordersync run: Backfill, then watch the mailbox and sync until stopped
- ordersync backfill: One reconciliation pass over recent mail
- ordersync parse: Extract an order from a saved email, offline
- ordersync config / version: Utility commands
"""
