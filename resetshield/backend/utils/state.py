"""In-memory per-device throttling state."""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

from ..config import Settings, get_settings
from ..logging_config import logger
from ..services.throttle import PolicyState, ThrottleEngine, Verdict

SWEEP_INTERVAL_SECONDS = 60.0


class DeviceState:
    def __init__(
        self,
        request_capacity: Optional[int] = None,
        resend_capacity: Optional[int] = None,
        created_at: float = 0.0,
    ) -> None:
        self.request = PolicyState(request_capacity)
        self.resend = PolicyState(resend_capacity)
        self.created_at = created_at

    @property
    def request_timestamps(self) -> List[float]:
        return list(self.request.history)

    @property
    def cooldown_expiry(self) -> Optional[float]:
        return self.request.cooldown_expiry

    @property
    def resend_timestamps(self) -> List[float]:
        return list(self.resend.history)

    @property
    def resend_cooldown_expiry(self) -> Optional[float]:
        return self.resend.cooldown_expiry

    def last_activity(self) -> float:
        seen = [self.created_at]
        for policy in (self.request, self.resend):
            last = policy.last_recorded()
            if last is not None:
                seen.append(last)
        return max(seen)

    def is_locked(self, now: float) -> bool:
        return self.request.is_locked(now) or self.resend.is_locked(now)


class DeviceStateStore:
    def __init__(
        self,
        engine: ThrottleEngine,
        clock: Callable[[], float] = time.monotonic,
        idle_eviction_seconds: Optional[float] = None,
    ) -> None:
        self._lock = threading.Lock()
        self.engine = engine
        self.clock = clock
        self.idle_eviction_seconds = idle_eviction_seconds
        self.devices: Dict[str, DeviceState] = {}
        self._last_sweep: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeviceStateStore":
        return cls(
            ThrottleEngine.from_settings(settings),
            idle_eviction_seconds=settings.device_idle_eviction_seconds,
        )

    def __len__(self) -> int:
        return len(self.devices)

    def __contains__(self, device_id: str) -> bool:
        return device_id in self.devices

    def lookup_or_create(self, device_id: str, now: Optional[float] = None) -> DeviceState:
        """Return the state for ``device_id``, creating an empty one on first contact.

        Callers must hold the store lock for as long as they use the result.
        """
        if now is None:
            now = self.clock()
        self._evict_idle(now)
        state = self.devices.get(device_id)
        if state is None:
            state = DeviceState(
                request_capacity=self.engine.request.max_attempts,
                resend_capacity=self.engine.resend.max_attempts,
                created_at=now,
            )
            self.devices[device_id] = state
        return state

    def evaluate(
        self,
        device_id: str,
        action: Optional[str] = None,
        check_only: bool = False,
        now: Optional[float] = None,
    ) -> Verdict:
        with self._lock:
            if now is None:
                now = self.clock()
            state = self.lookup_or_create(device_id, now)
            return self.engine.evaluate(state, action, now, check_only)

    def _evict_idle(self, now: float) -> None:
        if self.idle_eviction_seconds is None:
            return
        if self._last_sweep is not None and now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        cutoff = now - self.idle_eviction_seconds
        stale = [
            device_id
            for device_id, state in self.devices.items()
            if not state.is_locked(now) and state.last_activity() <= cutoff
        ]
        for device_id in stale:
            del self.devices[device_id]
        if stale:
            logger.info("devices.evicted", count=len(stale), remaining=len(self.devices))


device_store = DeviceStateStore.from_settings(get_settings())
