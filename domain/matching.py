"""Domain Services - pure matching functions

Nothing in here touches storage or the clock; callers pass in snapshots.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Set, Tuple

from domain.entities import (
    WaitingListEntry, CommittedBooking, MatchResult, ConflictContender,
    DateConflict, MatchSummary,
)
from domain.value_objects import DateWindow


def build_occupancy(bookings: Iterable[CommittedBooking], window: DateWindow) -> Set[date]:
    """Calendar dates inside the window consumed by non-cancelled bookings.

    A multi-day booking occupies every date from its start day to its end day.
    """
    occupied: Set[date] = set()
    for booking in bookings:
        if not booking.occupies():
            continue
        occupied.update(booking.occupied_days(window))
    return occupied


def rank_contenders(entries: Iterable[WaitingListEntry]) -> List[ConflictContender]:
    """Order entries sharing a date first-come-first-served, priority from 1"""
    ordered = sorted(entries, key=lambda e: e.priority_key())
    return [
        ConflictContender(entry=entry, priority=rank)
        for rank, entry in enumerate(ordered, start=1)
    ]


def date_pairs(matches: Iterable[MatchResult]) -> Iterable[Tuple[date, WaitingListEntry]]:
    for match in matches:
        for day in match.matching_dates:
            yield day, match.entry


def group_conflicts(matches: Iterable[MatchResult]) -> List[DateConflict]:
    """Dates wanted by more than one entry, ascending by date"""
    by_date: Dict[date, List[WaitingListEntry]] = defaultdict(list)
    for day, entry in date_pairs(matches):
        by_date[day].append(entry)

    return [
        DateConflict(date=day, entries=rank_contenders(contenders))
        for day, contenders in sorted(by_date.items())
        if len(contenders) > 1
    ]


def match_entries(
    entries: Iterable[WaitingListEntry],
    occupied: Set[date],
    window: DateWindow
) -> List[MatchResult]:
    """Match results for every entry with at least one open date, oldest entry first"""
    results = []
    for entry in sorted(entries, key=lambda e: e.priority_key()):
        if not entry.is_pending():
            continue
        result = MatchResult.from_dates(entry, entry.open_dates(window, occupied))
        if result is not None:
            results.append(result)
    return results


def summarize(
    pending: List[WaitingListEntry],
    matches: List[MatchResult],
    conflicts: List[DateConflict]
) -> MatchSummary:
    return MatchSummary(
        total_pending_entries=len(pending),
        entries_with_matches=len(matches),
        total_available_dates=sum(m.match_count for m in matches),
        dates_with_conflicts=len(conflicts)
    )
