"""Badge, mission and challenge registries.

Each registry pairs a static catalog with a persisted membership set
(earned / completed / joined). Membership only grows, and only with ids the
catalog knows. Rewards for completing something are the caller's concern.
"""

from __future__ import annotations

import logging
from typing import Generic, Protocol, TypeVar

from nutriaura.core.storage.repository import (
    CHALLENGES_KEY,
    COMPLETED_MISSIONS_KEY,
    EARNED_BADGES_KEY,
    WellnessRepository,
)
from nutriaura.domains.wellness.catalog import (
    Badge,
    Challenge,
    Mission,
    load_badges,
    load_challenges,
    load_missions,
)

logger = logging.getLogger(__name__)


class _CatalogEntry(Protocol):
    @property
    def id(self) -> str: ...


E = TypeVar("E", bound=_CatalogEntry)


class UnknownCatalogEntryError(KeyError):
    """Raised when an id outside the catalog is granted or looked up."""


class MembershipRegistry(Generic[E]):
    """A read-only catalog plus an add-only set of member ids."""

    label = "entry"

    def __init__(self, repository: WellnessRepository, storage_key: str, catalog: tuple[E, ...]) -> None:
        self._repo = repository
        self._key = storage_key
        self._catalog = catalog
        self._by_id = {entry.id: entry for entry in catalog}

    def list(self) -> tuple[E, ...]:
        return self._catalog

    def get(self, entry_id: str) -> E:
        try:
            return self._by_id[entry_id]
        except KeyError:
            raise UnknownCatalogEntryError(f"Unknown {self.label}: {entry_id!r}") from None

    def get_memberships(self) -> set[str]:
        # Ignore ids a catalog update has since removed
        return {i for i in self._repo.get_members(self._key) if i in self._by_id}

    def is_member(self, entry_id: str) -> bool:
        return entry_id in self.get_memberships()

    def grant(self, entry_id: str) -> bool:
        """Add ``entry_id`` to the membership set.

        Returns:
            True if it was newly added, False if it was already a member.
        """
        entry = self.get(entry_id)
        _, added = self._repo.add_member(self._key, entry.id)
        if added:
            logger.info("%s granted: %s", self.label.capitalize(), entry.id)
        return added


class BadgeRegistry(MembershipRegistry[Badge]):
    label = "badge"

    def __init__(self, repository: WellnessRepository, catalog: tuple[Badge, ...] | None = None) -> None:
        super().__init__(repository, EARNED_BADGES_KEY, catalog if catalog is not None else load_badges())


class MissionRegistry(MembershipRegistry[Mission]):
    label = "mission"

    def __init__(self, repository: WellnessRepository, catalog: tuple[Mission, ...] | None = None) -> None:
        super().__init__(
            repository, COMPLETED_MISSIONS_KEY, catalog if catalog is not None else load_missions()
        )


class ChallengeRegistry(MembershipRegistry[Challenge]):
    label = "challenge"

    def __init__(self, repository: WellnessRepository, catalog: tuple[Challenge, ...] | None = None) -> None:
        super().__init__(
            repository, CHALLENGES_KEY, catalog if catalog is not None else load_challenges()
        )
