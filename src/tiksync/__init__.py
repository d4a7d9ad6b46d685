"""Replay TikTok Shop order exports as Shopware orders."""

__version__ = "0.1.0"
