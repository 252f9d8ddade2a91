"""Core domain package for debitwatch.

Core contains debit detection, merchant resolution, and the expense pipeline
without any Telegram or storage-specific code, keeping the business logic
portable.
"""
