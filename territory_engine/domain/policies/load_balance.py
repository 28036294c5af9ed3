"""LoadBalancePolicy — deterministic least-loaded member selection."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from territory_engine.domain.entities.territory import TeamMemberAssignment, Territory


@dataclass(frozen=True)
class Candidate:
    """A member together with the territory it would be assigned through."""

    territory: Territory
    member: TeamMemberAssignment


def territory_candidates(territory: Territory) -> Iterator[Candidate]:
    """Available members of one territory, in roster order."""
    for member in territory.available_members():
        yield Candidate(territory=territory, member=member)


def pool_candidates(territories: Iterable[Territory]) -> Iterator[Candidate]:
    """Available members of every active territory (territory order, then roster order)."""
    for territory in territories:
        if territory.active:
            yield from territory_candidates(territory)


def specialty_candidates(
    territories: Iterable[Territory],
    required: frozenset[str],
) -> Iterator[Candidate]:
    """Available members holding at least one of the required specialties."""
    for candidate in pool_candidates(territories):
        if candidate.member.has_any_specialty(required):
            yield candidate


def pick_least_loaded(candidates: Iterable[Candidate]) -> Candidate | None:
    """Lowest ``current_client_count`` wins; ties go to the first encountered.

    Returns None if there are no candidates.
    """
    best: Candidate | None = None
    for candidate in candidates:
        if best is None or candidate.member.current_client_count < best.member.current_client_count:
            best = candidate
    return best
