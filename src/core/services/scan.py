"""Per-query scan state machine.

The host drives a scan one call at a time::

    scan = ProfileScan(builder, transport, policy)
    scan.begin(quals, columns)
    while (row := scan.next()) is not None:
        ...
    scan.end()

At most one row is produced per scan: the address hash resolves to at most
one profile. The fetch happens lazily on the first `next` and is repeated
(never replayed from cache) after `restart`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Sequence

from core.domain.models import FIXED_COLUMNS, Column, ProfileRow, Qual, coerce_columns
from core.errors import MissingKeyFilter, ScanStateError
from core.hashing import hash_email
from core.interfaces.transport import Transport
from core.services.predicate import KEY_COLUMN, extract_lookup_key
from core.services.profile_mapper import map_outcome
from core.services.request_builder import RequestBuilder
from core.services.retry_policy import FetchOutcome, RetryPolicy

logger = logging.getLogger(__name__)


class ScanPhase(str, Enum):
    CREATED = "created"
    FETCHING = "fetching"
    ROW_READY = "row_ready"
    EXHAUSTED = "exhausted"
    ENDED = "ended"


class FetchStatus(str, Enum):
    NOT_FETCHED = "not_fetched"
    ROW_READY = "row_ready"
    EXHAUSTED = "exhausted"


@dataclass
class ScanContext:
    """Mutable state owned by exactly one scan."""

    email: str | None
    address_hash: str | None
    columns: list[Column] = field(default_factory=list)
    status: FetchStatus = FetchStatus.NOT_FETCHED
    attempts: int = 0
    row: ProfileRow | None = None

    @property
    def has_key(self) -> bool:
        return self.email is not None

    def reset(self) -> None:
        self.status = FetchStatus.NOT_FETCHED
        self.attempts = 0
        self.row = None


class ProfileScan:
    """One scan over the `profiles` table.

    Owns its `ScanContext`; nothing is shared with other scans except the
    (stateless) request builder, transport and policy passed in.
    """

    def __init__(
        self,
        builder: RequestBuilder,
        transport: Transport,
        policy: RetryPolicy | None = None,
        *,
        key_column: str = KEY_COLUMN,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._builder = builder
        self._transport = transport
        self._policy = policy or RetryPolicy()
        self._key_column = key_column
        self._sleep = sleep
        self._clock = clock
        self._phase = ScanPhase.CREATED
        self._context: ScanContext | None = None

    @property
    def phase(self) -> ScanPhase:
        return self._phase

    @property
    def context(self) -> ScanContext | None:
        return self._context

    def begin(self, quals: Iterable[Qual], columns: Sequence[Column | str] | None = None) -> None:
        """Validate the predicate and prepare the fetch.

        Raises:
            UnsupportedPredicate: the key filter cannot be answered safely.
        """

        if self._phase is not ScanPhase.CREATED:
            raise ScanStateError(f"begin() called in phase '{self._phase.value}'")

        requested = coerce_columns(columns)
        try:
            email = extract_lookup_key(quals, self._key_column)
        except MissingKeyFilter as exc:
            logger.info(
                "%s. The profiles table requires %s = 'email@example.com' in the WHERE clause",
                exc.message,
                self._key_column,
            )
            self._context = ScanContext(email=None, address_hash=None, columns=requested)
            self._context.status = FetchStatus.EXHAUSTED
            self._phase = ScanPhase.EXHAUSTED
            return

        self._context = ScanContext(email=email, address_hash=hash_email(email), columns=requested)
        self._phase = ScanPhase.FETCHING

    def next(self) -> ProfileRow | None:
        """Return the profile row on the first call, None afterwards."""

        if self._phase in (ScanPhase.CREATED, ScanPhase.ENDED):
            raise ScanStateError(f"next() called in phase '{self._phase.value}'")
        if self._phase is ScanPhase.EXHAUSTED:
            return None
        if self._phase is ScanPhase.ROW_READY:
            self._mark_exhausted()
            return None

        try:
            row = self._fetch()
        except Exception:
            self._mark_exhausted()
            raise
        if row is None:
            self._mark_exhausted()
            return None
        self._phase = ScanPhase.ROW_READY
        return row

    def restart(self) -> None:
        """Allow the host to re-run the scan; the next `next` fetches again."""

        if self._phase in (ScanPhase.CREATED, ScanPhase.ENDED):
            raise ScanStateError(f"restart() called in phase '{self._phase.value}'")
        if self._context is None:
            raise ScanStateError("restart() called without an active scan context")
        if not self._context.has_key:
            return
        self._context.reset()
        self._phase = ScanPhase.FETCHING

    def end(self) -> None:
        self._context = None
        self._phase = ScanPhase.ENDED

    def _mark_exhausted(self) -> None:
        if self._context is not None:
            self._context.status = FetchStatus.EXHAUSTED
            self._context.row = None
        self._phase = ScanPhase.EXHAUSTED

    def _fetch(self) -> ProfileRow | None:
        ctx = self._context
        if ctx is None or ctx.email is None or ctx.address_hash is None:
            raise ScanStateError("fetch attempted without a lookup key")

        request = self._builder.build(ctx.address_hash)
        result = self._policy.execute(
            lambda: self._transport.send(request),
            authenticated=request.authenticated,
            sleep=self._sleep,
            clock=self._clock,
        )
        ctx.attempts = result.attempts
        outcome: FetchOutcome = result.outcome

        extra = [c for c in ctx.columns if c.name not in FIXED_COLUMNS]
        row = map_outcome(
            outcome,
            email=ctx.email,
            address_hash=ctx.address_hash,
            extra_columns=extra,
        )
        if row is not None:
            logger.info("Found profile for email: %s", ctx.email)
            ctx.row = row
            ctx.status = FetchStatus.ROW_READY
        return row
