from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterable
from uuid import UUID


@dataclass(frozen=True)
class OfficeStanding:
    office: str
    total_points: int
    participants_count: int
    average_points: int


@dataclass(frozen=True)
class ParticipantStanding:
    rank: int
    user_id: UUID | None
    full_name: str
    office: str
    points: int


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def aggregate_offices(rows: Iterable[tuple[int, str]]) -> list[OfficeStanding]:
    """
    Group (points, office) pairs by office: total, participant count and rounded average.
    Sorted by total descending, ties broken by office name.

    Examples:
        >>> [s.office for s in aggregate_offices([(100, "A"), (50, "A"), (200, "B")])]
        ['B', 'A']
    """
    totals: dict[str, int] = {}
    counts: dict[str, int] = {}
    for points, office in rows:
        totals[office] = totals.get(office, 0) + int(points or 0)
        counts[office] = counts.get(office, 0) + 1
    standings = [
        OfficeStanding(
            office=office,
            total_points=totals[office],
            participants_count=counts[office],
            average_points=_round_half_up(totals[office] / counts[office]),
        )
        for office in totals
    ]
    return sorted(standings, key=lambda s: (-s.total_points, s.office))


def rank_participants(rows: Iterable[tuple[UUID | None, str, str, int]], limit: int = 10) -> list[ParticipantStanding]:
    """(user_id, full_name, office, points) rows -> top `limit` by points, ties by name."""
    ordered = sorted(rows, key=lambda r: (-int(r[3] or 0), r[1]))
    return [
        ParticipantStanding(rank=i + 1, user_id=uid, full_name=name, office=office, points=int(points or 0))
        for i, (uid, name, office, points) in enumerate(ordered[:limit])
    ]
