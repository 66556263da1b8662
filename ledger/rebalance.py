"""
Package Rebalancer

Runs the allocator as one unit of work: read a client's packages and
sessions, rebalance, write the changed links back. Units of work for the
same client are serialized, whichever trainer or mode they run for, so each
one sees a consistent snapshot of which packages exist and which sessions
are linked.
"""

import logging
import threading
from dataclasses import replace

from .calculators.allocation import PackageAllocator
from .models import AllocationResult, Package, Session

logger = logging.getLogger(__name__)


class SessionRepository:
    """Storage port for the rebalancer."""

    def load_packages(self, client_id: int) -> list[Package]:
        raise NotImplementedError("SessionRepository.load_packages must be implemented")

    def load_sessions(self, client_id: int) -> list[Session]:
        raise NotImplementedError("SessionRepository.load_sessions must be implemented")

    def save_links(self, links: dict) -> None:
        """Persist {session id: package id} for the sessions that changed."""
        raise NotImplementedError("SessionRepository.save_links must be implemented")


class InMemorySessionRepository(SessionRepository):
    # In-memory adapter for local runs and tests.
    def __init__(self, packages: list[Package] | None = None, sessions: list[Session] | None = None) -> None:
        self.packages: list[Package] = list(packages or [])
        self.sessions: dict[int, Session] = {s.id: s for s in sessions or []}

    def add_package(self, package: Package) -> None:
        self.packages.append(package)

    def load_packages(self, client_id: int) -> list[Package]:
        return [p for p in self.packages if p.client_id == client_id]

    def load_sessions(self, client_id: int) -> list[Session]:
        return [s for s in self.sessions.values() if s.client_id == client_id]

    def save_links(self, links: dict) -> None:
        for session_id, package_id in links.items():
            self.sessions[session_id] = replace(self.sessions[session_id], package_id=package_id)


class PackageRebalancer:
    """
    Serializes allocator runs per client.

    One lock is kept per client id for the lifetime of the rebalancer.
    """

    def __init__(self, repository: SessionRepository, allocator: PackageAllocator | None = None):
        self.repository = repository
        self.allocator = allocator or PackageAllocator()
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, client_id: int) -> threading.Lock:
        with self._locks_guard:
            if client_id not in self._locks:
                self._locks[client_id] = threading.Lock()
            return self._locks[client_id]

    def rebalance(self, client_id: int, trainer_id: int | None = None, shared: bool = False) -> AllocationResult:
        """
        Rebalance a client's packages after a purchase.

        A shared run touches every trainer's packages for the client, so all
        runs for one client share a lock, per-trainer and shared alike.
        """
        with self._lock_for(client_id):
            packages = self.repository.load_packages(client_id)
            sessions = self.repository.load_sessions(client_id)
            result = self.allocator.allocate(
                packages, sessions, client_id=client_id, trainer_id=trainer_id, shared=shared
            )
            if result.moves:
                links = {move.session_id: move.to_package_id for move in result.moves}
                self.repository.save_links(links)
                logger.info(f"Saved {len(links)} session link(s) for client {client_id}")
            return result
