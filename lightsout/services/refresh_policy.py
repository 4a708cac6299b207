"""
Manual leaderboard refresh rate limiting.

The cooldown, daily cap and lockout arithmetic are plain functions of
``(state, now)``. RefreshPolicy wraps them with per-device persistence, a
single in-flight guard and a countdown task for UI affordances.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from lightsout.config import Config
from lightsout.constants import RefreshConstants
from lightsout.data_models.leaderboard import RecomputeSummary
from lightsout.database.models import RefreshPolicyRecord
from lightsout.services.base import BaseService
from lightsout.utils.leaderboard_exceptions import DatabaseError

logger = logging.getLogger(__name__)

# Refresh outcomes
REFRESHED = "refreshed"
BLOCKED = "blocked"
BUSY = "busy"
FAILED = "failed"


@dataclass(frozen=True)
class RefreshRules:
    cooldown_seconds: float = RefreshConstants.COOLDOWN_SECONDS
    max_daily_refreshes: int = RefreshConstants.MAX_DAILY_REFRESHES
    lockout_seconds: float = RefreshConstants.LOCKOUT_SECONDS
    window_seconds: float = RefreshConstants.WINDOW_SECONDS

    @classmethod
    def from_config(cls) -> "RefreshRules":
        return cls(
            cooldown_seconds=Config.REFRESH_COOLDOWN_SECONDS,
            max_daily_refreshes=Config.MAX_DAILY_REFRESHES,
            lockout_seconds=Config.REFRESH_LOCKOUT_SECONDS,
        )


@dataclass(frozen=True)
class RefreshPolicyState:
    """Per-device refresh bookkeeping; all times are epoch seconds, 0 means unset."""
    count: int = 0
    last_refresh_time: float = 0.0
    window_start_time: float = 0.0
    locked_until_time: float = 0.0


@dataclass(frozen=True)
class RefreshDecision:
    allowed: bool
    seconds_remaining: int
    daily_remaining: int

    @property
    def locked_out(self) -> bool:
        return self.seconds_remaining > RefreshConstants.LOCK_DISPLAY_THRESHOLD


@dataclass(frozen=True)
class RefreshResult:
    """What happened to one manual refresh request."""
    status: str
    decision: RefreshDecision
    summary: Optional[RecomputeSummary] = None


def normalize(state: RefreshPolicyState, now: float, rules: RefreshRules) -> RefreshPolicyState:
    """Expire a finished lockout or a stale daily window into a fresh state."""
    if state.locked_until_time:
        if now >= state.locked_until_time:
            return RefreshPolicyState()
        return state
    if state.count and now - state.window_start_time >= rules.window_seconds:
        return RefreshPolicyState(last_refresh_time=state.last_refresh_time)
    return state


def evaluate(state: RefreshPolicyState, now: float, rules: RefreshRules) -> RefreshDecision:
    """Whether a refresh may run at ``now`` and how long until it may."""
    state = normalize(state, now, rules)
    cooldown_until = state.last_refresh_time + rules.cooldown_seconds if state.last_refresh_time else 0.0
    blocked_until = max(state.locked_until_time, cooldown_until)
    seconds_remaining = max(0, math.ceil(blocked_until - now))
    return RefreshDecision(
        allowed=seconds_remaining == 0,
        seconds_remaining=seconds_remaining,
        daily_remaining=max(0, rules.max_daily_refreshes - state.count),
    )


def record_attempt(state: RefreshPolicyState, success: bool, now: float,
                   rules: RefreshRules) -> RefreshPolicyState:
    """
    State after a refresh attempt finishing at ``now``.

    Failed attempts change nothing, so they neither use quota nor start a
    cooldown. The success that reaches the daily cap starts the lockout.
    """
    state = normalize(state, now, rules)
    if not success:
        return state

    count = state.count + 1
    return RefreshPolicyState(
        count=count,
        last_refresh_time=now,
        window_start_time=state.window_start_time if state.count else now,
        locked_until_time=now + rules.lockout_seconds if count >= rules.max_daily_refreshes else 0.0,
    )


class RefreshStateStore(BaseService):
    """Loads and saves refresh state keyed by device (for the bot, a Discord user)."""

    async def load(self, device_id: str) -> RefreshPolicyState:
        async with self.get_session() as session:
            row = await session.get(RefreshPolicyRecord, device_id)
            if row is None:
                return RefreshPolicyState()
            return RefreshPolicyState(
                count=row.count or 0,
                last_refresh_time=row.last_refresh_time or 0.0,
                window_start_time=row.window_start_time or 0.0,
                locked_until_time=row.locked_until_time or 0.0,
            )

    async def save(self, device_id: str, state: RefreshPolicyState):
        async with self.get_session() as session:
            row = await session.get(RefreshPolicyRecord, device_id)
            if row is None:
                row = RefreshPolicyRecord(device_id=device_id)
                session.add(row)
            row.count = state.count
            row.last_refresh_time = state.last_refresh_time
            row.window_start_time = state.window_start_time
            row.locked_until_time = state.locked_until_time


class RefreshPolicy:
    """Gatekeeper for manual league recomputes."""

    def __init__(self, state_store: RefreshStateStore, rules: Optional[RefreshRules] = None,
                 clock: Callable[[], float] = time.time):
        self.state_store = state_store
        self.rules = rules or RefreshRules.from_config()
        self.clock = clock
        self._in_flight: Set[str] = set()
        self._countdowns: Dict[str, asyncio.Task] = {}

    def is_in_flight(self, device_id: str) -> bool:
        return device_id in self._in_flight

    async def can_refresh(self, device_id: str) -> RefreshDecision:
        state = await self.state_store.load(device_id)
        return evaluate(state, self.clock(), self.rules)

    async def refresh(self, device_id: str,
                      trigger: Callable[[], Awaitable[RecomputeSummary]]) -> RefreshResult:
        """
        Run ``trigger`` if the device may refresh now.

        A second call for the same device while one is pending returns BUSY
        without touching state. Only a successful trigger is recorded.
        """
        if device_id in self._in_flight:
            logger.debug(f"Refresh already in flight for {device_id}")
            return RefreshResult(BUSY, await self.can_refresh(device_id))

        self._in_flight.add(device_id)
        try:
            state = await self.state_store.load(device_id)
            decision = evaluate(state, self.clock(), self.rules)
            if not decision.allowed:
                logger.info(f"Refresh blocked for {device_id}: {decision.seconds_remaining}s remaining")
                return RefreshResult(BLOCKED, decision)

            try:
                summary = await trigger()
            except (DatabaseError, SQLAlchemyError) as e:
                logger.error(f"Refresh trigger failed for {device_id}: {e}")
                summary = None

            if summary is None or not summary.success:
                return RefreshResult(FAILED, evaluate(state, self.clock(), self.rules), summary)

            state = record_attempt(state, True, self.clock(), self.rules)
            await self.state_store.save(device_id, state)
            logger.info(
                f"Refresh by {device_id} processed {summary.participants_processed} participants "
                f"({state.count}/{self.rules.max_daily_refreshes} today)"
            )
            return RefreshResult(REFRESHED, evaluate(state, self.clock(), self.rules), summary)
        finally:
            self._in_flight.discard(device_id)

    def start_countdown(self, device_id: str,
                        on_tick: Callable[[RefreshDecision], Awaitable[None]],
                        tick_seconds: float = RefreshConstants.TICK_SECONDS) -> asyncio.Task:
        """
        Call ``on_tick`` every tick until the device may refresh again.

        Starting a countdown replaces any running one for the same device.
        An error from a tick is logged and ends the countdown.
        """
        previous = self._countdowns.pop(device_id, None)
        if previous is not None and not previous.done():
            previous.cancel()

        async def _run():
            while True:
                try:
                    decision = await self.can_refresh(device_id)
                    await on_tick(decision)
                except Exception as e:
                    logger.error(f"Refresh countdown for {device_id} stopped: {e}", exc_info=True)
                    return
                if decision.allowed:
                    return
                await asyncio.sleep(tick_seconds)

        task = asyncio.create_task(_run())
        self._countdowns[device_id] = task
        task.add_done_callback(lambda t: self._forget_countdown(device_id, t))
        return task

    def _forget_countdown(self, device_id: str, task: asyncio.Task):
        if self._countdowns.get(device_id) is task:
            del self._countdowns[device_id]

    async def close(self):
        """Cancel every running countdown."""
        tasks = [task for task in self._countdowns.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._countdowns.clear()
        logger.info("Refresh countdowns cancelled.")
