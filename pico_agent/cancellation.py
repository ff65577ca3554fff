"""Cancellation token for in-flight backend calls.

Only the network call inside ``chat`` is cancellable; normalization and
response parsing are synchronous and finish once started.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any, TypeVar

__all__ = ["CancellationToken"]

T = TypeVar("T")


@dataclass
class CancellationToken:
    """Caller-owned switch that aborts a pending model call.

    Usage:
        token = CancellationToken()
        task = asyncio.create_task(api.chat(messages, cancel_token=token))

        token.cancel()  # from a UI callback, a timeout, ...

        try:
            await task
        except asyncio.CancelledError as e:
            print(e)  # "model call anthropic.claude-... cancelled by caller"

    A token stays cancelled until ``reset()``; a cancelled token refuses new
    calls without starting them.
    """

    _cancelled: asyncio.Event = field(default_factory=asyncio.Event)
    _pending: asyncio.Task[Any] | None = field(default=None, init=False)
    _label: str = field(default="", init=False)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def pending_call(self) -> str | None:
        """Label of the call currently wrapped, if any."""
        return self._label if self._pending is not None else None

    def cancel(self) -> None:
        """Mark the token cancelled and abort the pending call, if any."""
        self._cancelled.set()
        if self._pending is not None and not self._pending.done():
            self._pending.cancel(self._reason(self._label))

    def reset(self) -> None:
        self._cancelled.clear()
        self._pending = None
        self._label = ""

    async def run(self, call: Coroutine[Any, Any, T], label: str = "call") -> T:
        """Await ``call`` so that ``cancel()`` can abort it.

        Args:
            call: The coroutine to run (typically the HTTP POST)
            label: Names the call in the CancelledError message

        Raises:
            asyncio.CancelledError: If the token was cancelled before or
                while the call ran
        """
        if self.is_cancelled:
            # Never scheduled
            call.close()
            raise asyncio.CancelledError(self._reason(label))

        self._label = label
        self._pending = asyncio.ensure_future(call)
        try:
            return await self._pending
        finally:
            self._pending = None
            self._label = ""

    @staticmethod
    def _reason(label: str) -> str:
        return f"{label} cancelled by caller"
