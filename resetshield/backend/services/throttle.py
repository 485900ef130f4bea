"""Throttling decisions for password-reset requests and code resends.

Each device carries two independent policy states. A policy evaluation runs
in a fixed order: active lockout, expired lockout cleanup, check-only probe,
then the real evaluation (prune, spacing, count threshold, record).
"""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Optional, Union

from ..config import Settings
from ..logging_config import logger

if TYPE_CHECKING:
    from ..utils.state import DeviceState

RESEND_ACTION = "resend"
REQUEST_ACTION = "request"


@dataclass(frozen=True)
class Open:
    """Policy accepts evaluations."""


@dataclass(frozen=True)
class Locked:
    """Policy denies every evaluation until ``expiry``."""

    expiry: float


LockState = Union[Open, Locked]
OPEN = Open()


class PolicyState:
    """Lock state plus the recorded timestamps of one policy for one device."""

    def __init__(self, capacity: Optional[int] = None) -> None:
        self.history: Deque[float] = deque(maxlen=capacity)
        self.lock: LockState = OPEN

    @property
    def cooldown_expiry(self) -> Optional[float]:
        if isinstance(self.lock, Locked):
            return self.lock.expiry
        return None

    def last_recorded(self) -> Optional[float]:
        return self.history[-1] if self.history else None

    def is_locked(self, now: float) -> bool:
        return isinstance(self.lock, Locked) and now < self.lock.expiry


@dataclass(frozen=True)
class PolicyConfig:
    name: str
    window_seconds: float
    max_attempts: int
    lockout_seconds: float
    allowed_message: str
    check_only_message: str
    lockout_message: str
    min_interval_seconds: Optional[float] = None
    report_remaining: bool = False


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    message: str
    reason: str
    cooldown_remaining: Optional[int] = None
    remaining_attempts: Optional[int] = None

    @property
    def status_code(self) -> int:
        return 200 if self.allowed else 429


def _deny(message: str, cooldown_remaining: int, reason: str) -> Verdict:
    return Verdict(allowed=False, message=message, reason=reason, cooldown_remaining=cooldown_remaining)


def _spacing_denial(policy: PolicyConfig, state: PolicyState, now: float) -> Optional[Verdict]:
    if policy.min_interval_seconds is None:
        return None
    last = state.last_recorded()
    if last is None:
        return None
    since_last = now - last
    if since_last >= policy.min_interval_seconds:
        return None
    wait_seconds = int(policy.min_interval_seconds - since_last)
    return _deny(f"Please wait {wait_seconds} seconds before requesting again.", wait_seconds, "spacing")


def evaluate_policy(policy: PolicyConfig, state: PolicyState, now: float, check_only: bool = False) -> Verdict:
    if isinstance(state.lock, Locked):
        if now < state.lock.expiry:
            return _deny(policy.lockout_message, math.ceil(state.lock.expiry - now), "lockout")
        # Expired lockouts are cleared even by check-only probes.
        state.lock = OPEN
        state.history.clear()
        logger.info("lockout.cleared", policy=policy.name)

    if check_only:
        denial = _spacing_denial(policy, state, now)
        if denial is not None:
            return denial
        return Verdict(allowed=True, message=policy.check_only_message, reason="check_only")

    cutoff = now - policy.window_seconds
    while state.history and state.history[0] <= cutoff:
        state.history.popleft()

    denial = _spacing_denial(policy, state, now)
    if denial is not None:
        return denial

    if len(state.history) >= policy.max_attempts:
        state.lock = Locked(expiry=now + policy.lockout_seconds)
        logger.warning("lockout.started", policy=policy.name, lockout_seconds=policy.lockout_seconds)
        return _deny(policy.lockout_message, int(policy.lockout_seconds), "threshold")

    state.history.append(now)
    remaining = policy.max_attempts - len(state.history) if policy.report_remaining else None
    return Verdict(allowed=True, message=policy.allowed_message, reason="recorded", remaining_attempts=remaining)


def request_policy(settings: Settings) -> PolicyConfig:
    return PolicyConfig(
        name=REQUEST_ACTION,
        window_seconds=settings.request_window_seconds,
        max_attempts=settings.request_max_attempts,
        lockout_seconds=settings.request_lockout_seconds,
        min_interval_seconds=settings.request_min_interval_seconds,
        allowed_message="Reset request permitted",
        check_only_message="Reset request permitted (check only)",
        lockout_message="Please try again after 1 hour for security reasons.",
        report_remaining=True,
    )


def resend_policy(settings: Settings) -> PolicyConfig:
    return PolicyConfig(
        name=RESEND_ACTION,
        window_seconds=settings.resend_window_seconds,
        max_attempts=settings.resend_max_attempts,
        lockout_seconds=settings.resend_lockout_seconds,
        allowed_message="Resend permitted",
        check_only_message="Resend permitted (check only)",
        lockout_message="Please try again after 1 hour.",
    )


class ThrottleEngine:
    """Routes an action to its policy. Holds no device state of its own."""

    def __init__(self, request: PolicyConfig, resend: PolicyConfig) -> None:
        self.request = request
        self.resend = resend

    @classmethod
    def from_settings(cls, settings: Settings) -> "ThrottleEngine":
        return cls(request_policy(settings), resend_policy(settings))

    def evaluate(self, device_state: "DeviceState", action: Optional[str], now: float, check_only: bool = False) -> Verdict:
        if action == RESEND_ACTION:
            return evaluate_policy(self.resend, device_state.resend, now, check_only)
        return evaluate_policy(self.request, device_state.request, now, check_only)
