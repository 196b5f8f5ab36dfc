"""Base agent class."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class BaseAgent(ABC):
    """Abstract base class for the board agents.

    Actions are dispatched to ``_handle_<action>`` methods, which may be
    plain functions or coroutines.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent identifier."""

    def process(self, action: str, payload: dict[str, Any]) -> Any:
        """Process a synchronous request and return its result.

        Raises:
            ValueError: If the action is not supported or is asynchronous.
        """
        handler = self._handler(action)
        if inspect.iscoroutinefunction(handler):
            raise ValueError(f"Action '{action}' of agent '{self.name}' must be awaited via aprocess")
        return handler(payload)

    async def aprocess(self, action: str, payload: dict[str, Any]) -> Any:
        """Process a request, awaiting the handler when it is a coroutine."""
        result = self._handler(action)(payload)
        if inspect.isawaitable(result):
            result = await result
        return result

    def supports(self, action: str) -> bool:
        return getattr(self, f"_handle_{action}", None) is not None

    def _handler(self, action: str) -> Callable[[dict[str, Any]], Any]:
        handler = getattr(self, f"_handle_{action}", None)
        if handler is None:
            raise ValueError(f"Agent '{self.name}' does not support action '{action}'")
        return handler
