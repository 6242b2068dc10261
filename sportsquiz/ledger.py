"""Score ledger: durable per-user point accumulation."""
from __future__ import annotations

import uuid
from typing import Protocol

from tortoise.expressions import F

from .log import get_logger
from .models import User

logger = get_logger(__name__)


class ScoreLedger(Protocol):
    async def apply_point_delta(self, user_id: str, delta: int) -> None: ...


class TortoiseScoreLedger:
    """Adds match points to ``User.total_points`` with a single UPDATE."""

    async def apply_point_delta(self, user_id: str, delta: int) -> None:
        try:
            uid = uuid.UUID(str(user_id))
        except ValueError:
            logger.warning("ledger skip: %r is not a user id", user_id)
            return
        updated = await User.filter(id=uid).update(total_points=F("total_points") + delta)
        if not updated:
            logger.warning("ledger skip: unknown user %s (delta=%d)", user_id, delta)
            return
        logger.info("ledger user=%s delta=%+d", user_id, delta)


__all__ = ["ScoreLedger", "TortoiseScoreLedger"]
