# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage backends and notification channels swappable and makes testing easier.
"""

from typing import Protocol


class KeyValueStorage(Protocol):
    """
    Local single-device key-value storage of serialized entries.

    Values are opaque strings (JSON in practice). A missing key returns None.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class Notifier(Protocol):
    """
    Best-effort user notification channel.

    Returns False when the channel is unavailable or the user declined it,
    so the caller can fall back to a blocking alert.
    """

    def notify(self, title: str, body: str) -> bool: ...

