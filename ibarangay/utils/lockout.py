"""Account lockout after repeated failed logins.

The lock is a deadline on the user row (``lockout_until``); an account is
locked while that deadline is in the future. Attempts made while locked are
turned away before the password is checked and do not count, so hammering a
locked account never extends its lock.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockoutPolicy:
    max_attempts: int = 5
    lockout_duration: timedelta = timedelta(minutes=5)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError('max_attempts must be positive')
        if self.lockout_duration <= timedelta(0):
            raise ValueError('lockout_duration must be positive')

    @classmethod
    def from_config(cls, config) -> 'LockoutPolicy':
        return cls(
            max_attempts=int(config.get('LOGIN_MAX_ATTEMPTS', 5)),
            lockout_duration=timedelta(milliseconds=int(config.get('LOGIN_LOCKOUT_DURATION_MS', 300000))),
        )


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    remaining_seconds: int = 0
    lockout_until: datetime | None = None

    def to_dict(self):
        return {
            'locked': self.locked,
            'remaining_seconds': self.remaining_seconds,
            'lockout_until': isoformat(self.lockout_until),
        }


def check_lock_status(user, now: datetime | None = None) -> LockStatus:
    """Pure read of the lock state; a lapsed deadline counts as unlocked."""
    now = now or utc_now()
    until = user.lockout_until
    if until is None or until <= now:
        return LockStatus(locked=False)
    return LockStatus(
        locked=True,
        remaining_seconds=math.ceil((until - now).total_seconds()),
        lockout_until=until,
    )


def remaining_attempts(user, policy: LockoutPolicy) -> int:
    return max(0, policy.max_attempts - (user.failed_login_attempts or 0))


def _persist(user, what: str):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to persist %s for user %s: %s", what, getattr(user, 'id', None), e)


def record_failed_attempt(user, now: datetime | None = None, policy: LockoutPolicy | None = None):
    """Count one failed password check; lock once the threshold is reached.

    The counter survives a lapsed lock and is only cleared by a successful
    login, so the first failure after a lock expires locks again.
    """
    now = now or utc_now()
    policy = policy or LockoutPolicy()

    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    user.last_failed_login = now
    if user.failed_login_attempts >= policy.max_attempts:
        user.lockout_until = now + policy.lockout_duration
        logger.warning(
            "Account %s locked until %s after %s failed attempts",
            user.id, user.lockout_until.isoformat(), user.failed_login_attempts,
        )

    _persist(user, 'failed login attempt')
    return user


def record_successful_login(user):
    """Clear failure tracking. Writes only when something was set."""
    if not (user.failed_login_attempts or user.lockout_until or user.last_failed_login):
        return user
    user.failed_login_attempts = 0
    user.lockout_until = None
    user.last_failed_login = None
    _persist(user, 'login reset')
    return user
