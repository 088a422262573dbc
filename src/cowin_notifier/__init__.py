"""Telegram notifier for newly opened CoWIN vaccination slots."""

__version__ = "0.1.0"
