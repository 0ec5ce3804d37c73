"""Hotkey-driven voice loop: record, transcribe, chat, speak."""

__version__ = "0.1.0"
