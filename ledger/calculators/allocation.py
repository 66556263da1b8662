"""
Package Allocator

Decides which package each of a client's sessions is billed against.

After a new package is purchased:
- Older packages never end up with more sessions than they were bought for;
  their most recent overflow sessions move forward to the next package.
- Drop-in sessions (no package) are absorbed by the oldest package that still
  has spare capacity. Drop-ins that fit nowhere stay unlinked.

The traversal order lives in an `AllocationPolicy` so alternate orderings can be
swapped in without touching callers.
"""

import logging
from collections import Counter
from dataclasses import replace
from datetime import date
from typing import Iterable, Protocol

from ..models import AllocationResult, Package, Session, SessionMove

logger = logging.getLogger(__name__)


class AllocationPolicy(Protocol):
    """Traversal hooks the allocator delegates ordering decisions to."""

    name: str

    def order_packages(self, packages: list[Package]) -> list[Package]: ...

    def order_sessions(self, sessions: list[Session]) -> list[Session]: ...

    def select_overflow(self, linked: list[Session], overflow: int) -> list[Session]: ...

    def choose_package(self, ordered: list[Package], used: Counter) -> Package | None: ...


class OldestFirstPolicy:
    """
    Default allocation policy.

    Packages age by start date, ties by insertion order. Overflow flows
    forward from oldest to newest; drop-ins fill the oldest package with
    spare capacity first.
    """

    name = "oldest_first"

    def order_packages(self, packages: list[Package]) -> list[Package]:
        # sorted() is stable, so insertion order breaks start-date ties
        return sorted(packages, key=lambda p: p.start_date)

    def order_sessions(self, sessions: list[Session]) -> list[Session]:
        return sorted(sessions, key=lambda s: (s.date, s.id))

    def select_overflow(self, linked: list[Session], overflow: int) -> list[Session]:
        """Pick which of a package's time-ordered sessions move forward."""
        return linked[-overflow:]

    def choose_package(self, ordered: list[Package], used: Counter) -> Package | None:
        """Pick the package a drop-in should be absorbed by."""
        for package in ordered:
            if used[package.id] < package.sessions_purchased:
                return package
        return None


OLDEST_FIRST = OldestFirstPolicy()


class PackageAllocator:
    """Rebalances a client's sessions across their packages."""

    def __init__(self, policy: AllocationPolicy | None = None):
        self.policy = policy or OLDEST_FIRST

    def allocate(
        self,
        packages: Iterable[Package],
        sessions: Iterable[Session],
        client_id: int,
        trainer_id: int | None = None,
        shared: bool = False,
    ) -> AllocationResult:
        """
        Rebalance the sessions of one client (and trainer).

        Shared clients pool packages across trainers, so `trainer_id` is
        ignored for them. Sessions of other clients/trainers pass through
        untouched. Input records are never mutated.
        """
        sessions = list(sessions)

        def in_scope(record) -> bool:
            if record.client_id != client_id:
                return False
            return shared or trainer_id is None or record.trainer_id == trainer_id

        ordered = self.policy.order_packages([p for p in packages if in_scope(p)])
        if not ordered:
            return AllocationResult(sessions=sessions)

        known_ids = {p.id for p in ordered}
        links: dict = {s.id: s.package_id for s in sessions}
        moves: list[SessionMove] = []

        linked = self.policy.order_sessions(
            [s for s in sessions if in_scope(s) and s.package_id in known_ids]
        )
        self._move_overflow(ordered, linked, links, moves)

        drop_ins = self.policy.order_sessions(
            [s for s in sessions if in_scope(s) and s.package_id is None]
        )
        self._absorb_drop_ins(ordered, linked, drop_ins, links, moves)

        if moves:
            logger.info(
                f"Rebalanced client {client_id}: {len(moves)} session(s) moved across {len(ordered)} package(s)"
            )

        updated = [
            replace(s, package_id=links[s.id]) if links[s.id] != s.package_id else s
            for s in sessions
        ]
        return AllocationResult(sessions=updated, moves=moves)

    def _move_overflow(
        self,
        ordered: list[Package],
        linked: list[Session],
        links: dict,
        moves: list[SessionMove],
    ) -> None:
        """Cascade overflow forward; the newest package may stay over capacity."""
        for current, following in zip(ordered, ordered[1:]):
            current_sessions = [s for s in linked if links[s.id] == current.id]
            overflow = len(current_sessions) - current.sessions_purchased
            if overflow <= 0:
                continue

            for session in self.policy.select_overflow(current_sessions, overflow):
                links[session.id] = following.id
                moves.append(SessionMove(session.id, current.id, following.id, "overflow"))

    def _absorb_drop_ins(
        self,
        ordered: list[Package],
        linked: list[Session],
        drop_ins: list[Session],
        links: dict,
        moves: list[SessionMove],
    ) -> None:
        used = Counter(links[s.id] for s in linked)
        for session in drop_ins:
            package = self.policy.choose_package(ordered, used)
            if package is None:
                continue
            used[package.id] += 1
            links[session.id] = package.id
            moves.append(SessionMove(session.id, None, package.id, "drop_in"))


def pick_package_for_session(
    client_id: int,
    trainer_id: int,
    session_date: date,
    packages: Iterable[Package],
    sessions: Iterable[Session],
) -> Package | None:
    """Oldest package started on or before `session_date` with spare capacity."""
    candidates = OLDEST_FIRST.order_packages(
        [
            p for p in packages
            if p.client_id == client_id and p.trainer_id == trainer_id and p.start_date <= session_date
        ]
    )
    used = Counter(s.package_id for s in sessions if s.package_id is not None)
    return OLDEST_FIRST.choose_package(candidates, used)
