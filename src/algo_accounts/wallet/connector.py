"""
Pairing connector interface.

A connector speaks the pairing protocol to one remote wallet. The pairing
decision is delivered through a single-resolution future carrying either
``Connected`` or ``Rejected``; post-connection events (account updates, a
peer-initiated disconnect) go to optional callbacks.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union
import asyncio

from ..runtime.config import AppMetadata
from .types import StoredSession


@dataclass
class Connected:
    """The wallet approved the pairing."""
    accounts: List[str]
    chain_id: int
    peer_meta: Optional[AppMetadata] = None


@dataclass
class Rejected:
    """The wallet declined, or the relay dropped the pairing before approval."""
    reason: str = "Connection was rejected or closed"


ConnectOutcome = Union[Connected, Rejected]


class RequestError(Exception):
    """
    A wallet answered a request with an error.

    ``code`` is the JSON-RPC error code when the wallet sent one.
    """

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


SessionUpdateHandler = Callable[[List[str], int], Awaitable[None]]
DisconnectHandler = Callable[[], Awaitable[None]]


class PairingConnector(ABC):
    """Abstract pairing protocol connector."""

    def __init__(self):
        self.on_session_update: Optional[SessionUpdateHandler] = None
        self.on_disconnect: Optional[DisconnectHandler] = None
        self._outcome: Optional[asyncio.Future] = None

    def outcome(self) -> "asyncio.Future[ConnectOutcome]":
        """The pairing outcome; resolves at most once."""
        if self._outcome is None:
            self._outcome = asyncio.get_running_loop().create_future()
        return self._outcome

    def _resolve(self, result: ConnectOutcome) -> bool:
        future = self.outcome()
        if future.done():
            return False
        future.set_result(result)
        return True

    @property
    @abstractmethod
    def uri(self) -> Optional[str]:
        """Pairing URI, available after ``create_session``."""
        pass

    @property
    @abstractmethod
    def connected(self) -> bool:
        pass

    @property
    @abstractmethod
    def accounts(self) -> List[str]:
        pass

    @property
    @abstractmethod
    def chain_id(self) -> Optional[int]:
        pass

    @property
    @abstractmethod
    def peer_meta(self) -> Optional[AppMetadata]:
        pass

    @abstractmethod
    async def create_session(self, chain_id: int) -> str:
        """
        Start a new pairing.

        Returns:
            The pairing URI to show the user
        """
        pass

    @abstractmethod
    async def send_custom_request(self, method: str, params: List[Any]) -> Any:
        """
        Send a JSON-RPC request to the connected wallet.

        Raises:
            RequestError: If the wallet answers with an error
        """
        pass

    @abstractmethod
    async def kill_session(self) -> None:
        """End the session on both sides."""
        pass

    @abstractmethod
    def snapshot(self, wallet_id: str, ttl: float) -> StoredSession:
        """Capture the connected session for persistence."""
        pass

    async def open(self) -> None:
        """Attach to the transport so peer events are received."""
        pass

    async def close(self) -> None:
        """Release transport resources without ending the session."""
        pass


__all__ = [
    "Connected",
    "Rejected",
    "ConnectOutcome",
    "RequestError",
    "PairingConnector",
    "SessionUpdateHandler",
    "DisconnectHandler",
]
