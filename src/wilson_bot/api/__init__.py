"""
HTTP API module.

This module provides the aiohttp server exposing the message set and the
delivery operations.
"""

from wilson_bot.api.server import APIServer

__all__ = ["APIServer"]
