"""Connection registry: player id -> live websocket.

Delivery is best effort. A channel that fails to send is left for its own
receive loop to clean up; the error never reaches room logic.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Protocol

from .log import get_logger

logger = get_logger(__name__)


class Channel(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionRegistry:
    def __init__(self) -> None:
        self.channels: Dict[str, Channel] = {}

    def register(self, player_id: str, channel: Channel) -> Optional[Channel]:
        """Bind *player_id* to *channel*; returns the channel it replaced."""
        previous = self.channels.get(player_id)
        self.channels[player_id] = channel
        return previous if previous is not channel else None

    def unregister(self, player_id: str, channel: Optional[Channel] = None) -> bool:
        current = self.channels.get(player_id)
        if current is None:
            return False
        # A newer connection for the same player keeps its entry
        if channel is not None and current is not channel:
            return False
        del self.channels[player_id]
        return True

    async def send(self, player_id: str, message: dict) -> None:
        channel = self.channels.get(player_id)
        if channel is None:
            return
        try:
            await channel.send_json(message)
        except Exception as exc:
            logger.debug("drop %s -> %s: %s", message.get("type"), player_id, exc)

    async def broadcast(self, player_ids: Iterable[str], message: dict) -> None:
        for pid in list(player_ids):
            await self.send(pid, message)


__all__ = ["Channel", "ConnectionRegistry"]
