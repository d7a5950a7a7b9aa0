"""Host-independent request context and handler contracts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass


@dataclass(slots=True)
class ResponseState:
    """Mutable response metadata shared by handlers and middleware."""

    status: int = 200
    committed: bool = False


class RequestContext(ABC):
    """A single in-flight request as seen by handlers and middleware.

    Handlers signal failure by raising. The host decides how a failure turns
    into a response through :meth:`error`.
    """

    response: ResponseState

    @property
    @abstractmethod
    def method(self) -> str:
        """HTTP method, e.g. ``GET``."""

    @property
    @abstractmethod
    def uri(self) -> str:
        """Request target as sent by the client: path plus query string."""

    @property
    @abstractmethod
    def remote_addr(self) -> str:
        """Peer address as ``host:port``, empty when unknown."""

    @property
    @abstractmethod
    def headers(self) -> Mapping[str, str]:
        """Case-insensitive request headers."""

    @abstractmethod
    async def read_body(self) -> bytes:
        """Return the full request body."""

    @abstractmethod
    async def error(self, exc: Exception) -> None:
        """Translate a handler failure into a response."""


Handler = Callable[[RequestContext], Awaitable[None]]
Middleware = Callable[[Handler], Handler]
