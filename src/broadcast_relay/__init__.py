"""Telegram subscriber broadcast relay"""

__version__ = "0.1.0"
