"""ManageTerritoriesUseCase — territory CRUD and roster mutation."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Collection

from territory_engine.application.ports.territory_repo import TerritoryRepository
from territory_engine.domain.entities.results import OperationResult
from territory_engine.domain.entities.territory import TeamMemberAssignment, Territory
from territory_engine.domain.value_objects.identifiers import new_id, utcnow

logger = logging.getLogger(__name__)

# Never taken from a partial update; maintained by the store itself.
_IMMUTABLE_TERRITORY_FIELDS = frozenset(
    {"id", "created_at", "updated_at", "created_by", "last_modified_by"}
)
_IMMUTABLE_MEMBER_FIELDS = frozenset({"user_id", "joined_at"})

_TERRITORY_FIELDS = frozenset(f.name for f in dataclasses.fields(Territory))
_MEMBER_FIELDS = frozenset(f.name for f in dataclasses.fields(TeamMemberAssignment))


def _member_problem(member: TeamMemberAssignment) -> str | None:
    if not member.user_id:
        return "Team member user_id must not be empty"
    if member.max_capacity <= 0:
        return f"max_capacity must be positive for user {member.user_id}"
    if member.current_client_count < 0:
        return f"current_client_count must not be negative for user {member.user_id}"
    return None


def _roster_problem(members: list[TeamMemberAssignment]) -> str | None:
    seen: set[str] = set()
    for member in members:
        problem = _member_problem(member)
        if problem:
            return problem
        if member.user_id in seen:
            return f"User {member.user_id} listed twice in the roster"
        seen.add(member.user_id)
    return None


class ManageTerritoriesUseCase:
    """Create, read, update and delete territories and their rosters."""

    def __init__(self, territory_repo: TerritoryRepository):
        self._territories = territory_repo

    # ─── Reads ──────────────────────────────────────────────────────

    async def get(self, territory_id: str) -> Territory | None:
        return await self._territories.get_by_id(territory_id)

    async def list_all(self) -> list[Territory]:
        return await self._territories.get_all()

    async def list_by_member(self, user_id: str) -> list[Territory]:
        return await self._territories.get_by_member(user_id)

    # ─── Territory CRUD ─────────────────────────────────────────────

    async def create(self, territory: Territory, created_by: str = "") -> OperationResult[Territory]:
        """Persist a new territory with a fresh id and audit timestamps."""
        if not territory.name or not territory.name.strip():
            return OperationResult.invalid("Territory name must not be empty")
        problem = _roster_problem(territory.team_members)
        if problem:
            return OperationResult.invalid(problem)

        now = utcnow()
        for member in territory.team_members:
            if member.joined_at is None:
                member.joined_at = now
        new_territory = dataclasses.replace(
            territory,
            id=new_id("territory"),
            created_at=now,
            updated_at=now,
            created_by=created_by or territory.created_by,
            last_modified_by=created_by or territory.created_by,
        )
        saved = await self._territories.save(new_territory)
        logger.info("Territory %s (%s) created with %d members",
                    saved.id, saved.name, len(saved.team_members))
        return OperationResult.success(saved)

    async def update(
        self,
        territory_id: str,
        changes: dict[str, Any],
        modified_by: str = "",
        keep_client_counts: Collection[str] = (),
    ) -> OperationResult[Territory]:
        """Apply a partial update. ``id`` and ``created_at`` are never overwritten.

        A ``team_members`` entry replaces the whole roster: members missing
        from it are removed, new ones appended, existing ones overwritten.
        Existing members named in ``keep_client_counts`` keep their stored
        ``current_client_count``.
        """
        existing = await self._territories.get_by_id(territory_id)
        if existing is None:
            logger.warning("Update of unknown territory %s", territory_id)
            return OperationResult.not_found(f"Territory with id {territory_id} not found")

        unknown = set(changes) - _TERRITORY_FIELDS
        if unknown:
            return OperationResult.invalid(f"Unknown territory fields: {', '.join(sorted(unknown))}")

        fields = {k: v for k, v in changes.items() if k not in _IMMUTABLE_TERRITORY_FIELDS}
        roster = fields.pop("team_members", None)
        if "name" in fields and not (fields["name"] or "").strip():
            return OperationResult.invalid("Territory name must not be empty")
        if roster is not None:
            problem = _roster_problem(roster)
            if problem:
                return OperationResult.invalid(problem)
            await self._replace_roster(existing, roster, keep_client_counts)

        updated = dataclasses.replace(
            existing,
            **fields,
            updated_at=utcnow(),
            last_modified_by=modified_by or existing.last_modified_by,
        )
        await self._territories.update(updated)
        refreshed = await self._territories.get_by_id(territory_id)
        return OperationResult.success(refreshed)

    async def delete(self, territory_id: str) -> bool:
        """Remove a territory. Rules that reference it are left untouched."""
        deleted = await self._territories.delete(territory_id)
        if deleted:
            logger.info("Territory %s deleted", territory_id)
        else:
            logger.warning("Delete of unknown territory %s", territory_id)
        return deleted

    # ─── Roster ─────────────────────────────────────────────────────

    async def add_member(
        self,
        territory_id: str,
        member: TeamMemberAssignment,
        modified_by: str = "",
    ) -> OperationResult[Territory]:
        territory = await self._territories.get_by_id(territory_id)
        if territory is None:
            return OperationResult.not_found(f"Territory {territory_id} not found")
        if territory.has_member(member.user_id):
            return OperationResult.duplicate(
                f"User {member.user_id} already assigned to this territory"
            )
        problem = _member_problem(member)
        if problem:
            return OperationResult.invalid(problem)

        if member.joined_at is None:
            member = dataclasses.replace(member, joined_at=utcnow())
        await self._territories.add_member(territory_id, member)
        logger.info("User %s added to territory %s", member.user_id, territory_id)
        return await self._touch(territory, modified_by)

    async def remove_member(
        self,
        territory_id: str,
        user_id: str,
        modified_by: str = "",
    ) -> OperationResult[Territory]:
        territory = await self._territories.get_by_id(territory_id)
        if territory is None:
            return OperationResult.not_found(f"Territory {territory_id} not found")
        if not territory.has_member(user_id):
            return OperationResult.not_found(f"User {user_id} not found in territory")

        await self._territories.remove_member(territory_id, user_id)
        logger.info("User %s removed from territory %s", user_id, territory_id)
        return await self._touch(territory, modified_by)

    async def update_member(
        self,
        territory_id: str,
        user_id: str,
        changes: dict[str, Any],
        modified_by: str = "",
    ) -> OperationResult[Territory]:
        territory = await self._territories.get_by_id(territory_id)
        if territory is None:
            return OperationResult.not_found(f"Territory {territory_id} not found")
        member = territory.find_member(user_id)
        if member is None:
            return OperationResult.not_found(f"User {user_id} not found in territory")

        unknown = set(changes) - _MEMBER_FIELDS
        if unknown:
            return OperationResult.invalid(f"Unknown member fields: {', '.join(sorted(unknown))}")
        fields = {k: v for k, v in changes.items() if k not in _IMMUTABLE_MEMBER_FIELDS}
        updated = dataclasses.replace(member, **fields)
        problem = _member_problem(updated)
        if problem:
            return OperationResult.invalid(problem)

        await self._territories.update_member(territory_id, updated)
        return await self._touch(territory, modified_by)

    # ─── Helpers ────────────────────────────────────────────────────

    async def _replace_roster(
        self,
        territory: Territory,
        roster: list[TeamMemberAssignment],
        keep_client_counts: Collection[str] = (),
    ) -> None:
        wanted = {m.user_id for m in roster}
        for current in territory.team_members:
            if current.user_id not in wanted:
                await self._territories.remove_member(territory.id, current.user_id)
        for member in roster:
            existing = territory.find_member(member.user_id)
            if existing is None:
                if member.joined_at is None:
                    member = dataclasses.replace(member, joined_at=utcnow())
                await self._territories.add_member(territory.id, member)
            else:
                if member.joined_at is None:
                    member = dataclasses.replace(member, joined_at=existing.joined_at)
                if member.user_id in keep_client_counts:
                    member = dataclasses.replace(
                        member, current_client_count=existing.current_client_count
                    )
                await self._territories.update_member(territory.id, member)

    async def _touch(self, territory: Territory, modified_by: str) -> OperationResult[Territory]:
        stamped = dataclasses.replace(
            territory,
            updated_at=utcnow(),
            last_modified_by=modified_by or territory.last_modified_by,
        )
        await self._territories.update(stamped)
        refreshed = await self._territories.get_by_id(territory.id)
        return OperationResult.success(refreshed)
