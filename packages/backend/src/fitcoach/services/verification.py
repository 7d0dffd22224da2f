"""Phone verification codes: short-lived, single-use, in memory.

Learn: The flow during sign-up:
1. issue(phone) → a 6-digit code, valid for 5 minutes. Texting it is
   the SMS gateway's job, not ours.
2. verify(phone, code) → True on a match (and the code is burned),
   False on a mismatch (the code survives, the user may retry).
3. No live code at all (never issued, expired, or already used)
   raises CodeNotFoundError.

Re-issuing for the same phone replaces the old code and restarts its
clock. Expiry is enforced lazily on every call (an entry past its
deadline is treated as absent) and CodeSweeper purges leftovers on an
interval so abandoned codes don't accumulate.

Nothing is persisted: a restart invalidates every outstanding code.
"""

import asyncio
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

CODE_TTL_SECONDS = 5 * 60


class CodeNotFoundError(Exception):
    """Raised when there's no live code for a phone number."""


def generate_code() -> str:
    """Uniform random 6-digit code, 100000–999999."""
    return f"{secrets.randbelow(900_000) + 100_000:06d}"


def mask_phone(phone: str) -> str:
    """01012345678 → 010****5678, for logs."""
    if len(phone) <= 7:
        return "*" * len(phone)
    return f"{phone[:3]}{'*' * (len(phone) - 7)}{phone[-4:]}"


@dataclass
class _Entry:
    code: str
    expires_at: float


class VerificationCodeStore:
    """One live code per phone number, each with its own deadline."""

    def __init__(
        self,
        ttl_seconds: float = CODE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        code_factory: Callable[[], str] = generate_code,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._code_factory = code_factory
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def issue(self, phone: str) -> str:
        """Create (or replace) the code for a phone number and return it."""
        code = self._code_factory()
        with self._lock:
            replaced = phone in self._entries
            self._entries[phone] = _Entry(
                code=code, expires_at=self._clock() + self.ttl_seconds
            )
        logger.info(
            "verification.code_issued",
            phone=mask_phone(phone),
            replaced=replaced,
            ttl_seconds=self.ttl_seconds,
        )
        return code

    def verify(self, phone: str, candidate: str) -> bool:
        """Check a candidate code. A match consumes the code."""
        with self._lock:
            entry = self._live_entry(phone)
            if entry is None:
                raise CodeNotFoundError(f"No verification code for {mask_phone(phone)}")

            matched = secrets.compare_digest(
                entry.code.encode("utf-8"), candidate.encode("utf-8")
            )
            if matched:
                del self._entries[phone]

        logger.info("verification.code_checked", phone=mask_phone(phone), matched=matched)
        return matched

    def pending(self, phone: str) -> bool:
        """Whether a live code exists for this phone number."""
        with self._lock:
            return self._live_entry(phone) is not None

    def purge_expired(self) -> int:
        """Drop every entry past its deadline. Returns how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [p for p, e in self._entries.items() if e.expires_at <= now]
            for phone in expired:
                del self._entries[phone]
        return len(expired)

    def _live_entry(self, phone: str) -> _Entry | None:
        # Caller holds the lock.
        entry = self._entries.get(phone)
        if entry is not None and entry.expires_at <= self._clock():
            del self._entries[phone]
            return None
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CodeSweeper:
    """Background task that purges expired verification codes.

    Learn: Runs as a long-lived task in the FastAPI lifespan.

    Usage:
        sweeper = CodeSweeper(store, interval=30.0)
        asyncio.create_task(sweeper.run_loop())
    """

    def __init__(self, store: VerificationCodeStore, interval: float = 30.0):
        self.store = store
        self.interval = interval
        self._running = False

    async def run_loop(self) -> None:
        self._running = True
        logger.info("code_sweeper.started", interval=self.interval)

        while self._running:
            purged = self.store.purge_expired()
            if purged:
                logger.debug("code_sweeper.purged", count=purged)
            await asyncio.sleep(self.interval)

    def stop(self) -> None:
        """Signal the sweeper to stop."""
        self._running = False
        logger.info("code_sweeper.stopping")
