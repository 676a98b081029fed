"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from domain.clock import Clock, utc_now, as_utc, start_of_day
from domain.entities import WaitingListEntry, RangeMatchReport, SweepResult
from domain.enums import EntryStatus, RuleType
from domain.exceptions import ValidationError, NotFoundError
from domain.matching import build_occupancy, match_entries, group_conflicts, summarize
from domain.repositories import WaitingListRepository, BookingRepository
from domain.value_objects import WaitingListRule, DateWindow, DEFAULT_WINDOW_DAYS

logger = logging.getLogger(__name__)

_rule_adapter = TypeAdapter(WaitingListRule)

# PENDING first, then terminal states
_STATUS_ORDER = {status: index for index, status in enumerate(EntryStatus)}


def _to_validation_error(exc: PydanticValidationError, prefix: Optional[str] = None) -> ValidationError:
    """Translate the first pydantic error into a ValidationError naming its field"""
    error = exc.errors()[0]
    tags = {rule_type.value for rule_type in RuleType}
    parts = [str(p) for p in error["loc"] if not isinstance(p, int) and p not in tags]
    if prefix:
        parts.insert(0, prefix)
    field = ".".join(parts) or prefix or "input"
    return ValidationError(field, error["msg"])


def parse_rule(rule: Union[Mapping[str, Any], WaitingListRule]) -> WaitingListRule:
    """Build a rule variant from a tagged mapping, rejecting inconsistent data"""
    if not isinstance(rule, Mapping):
        return rule
    try:
        return _rule_adapter.validate_python(dict(rule))
    except PydanticValidationError as e:
        raise _to_validation_error(e, prefix="rule")


class ExpirationSweeper:
    """Retires pending entries whose expiration has passed"""

    def __init__(self, repository: WaitingListRepository, clock: Clock = utc_now):
        self.repository = repository
        self.clock = clock

    async def sweep(self, site_id: UUID) -> int:
        expired = await self.repository.expire_pending(site_id, self.clock())
        if expired:
            logger.info("Expired %d waiting list entries for site %s", expired, site_id)
        return expired


class WaitingListService:
    """Service for waiting list entry use cases"""

    def __init__(
        self,
        repository: WaitingListRepository,
        sweeper: Optional[ExpirationSweeper] = None,
        clock: Clock = utc_now
    ):
        self.repository = repository
        self.clock = clock
        self.sweeper = sweeper or ExpirationSweeper(repository, clock)

    async def create_entry(
        self,
        site_id: UUID,
        client_id: UUID,
        rule: Union[Mapping[str, Any], WaitingListRule],
        expiration_date: datetime,
        notes: Optional[str] = None,
        created_by: Optional[UUID] = None
    ) -> WaitingListEntry:
        """Validate and store a new pending entry"""
        parsed_rule = parse_rule(rule)
        try:
            entry = WaitingListEntry.create(
                site_id=site_id,
                client_id=client_id,
                rule=parsed_rule,
                expiration_date=expiration_date,
                now=self.clock(),
                notes=notes,
                created_by=created_by
            )
        except PydanticValidationError as e:
            raise _to_validation_error(e)

        entry = await self.repository.insert(entry)
        logger.info(
            "Created waiting list entry %s (%s) for client %s at site %s",
            entry.entry_id, parsed_rule.rule_type, client_id, site_id
        )
        return entry

    async def get_entry(self, entry_id: UUID) -> WaitingListEntry:
        entry = await self.repository.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError("Waiting list entry", entry_id)
        return entry

    async def update_entry(self, entry_id: UUID, patch: Mapping[str, Any]) -> WaitingListEntry:
        """Apply status / linked event / notes / expiration changes"""
        entry = await self.get_entry(entry_id)
        entry.amend(patch, self.clock())
        entry = await self.repository.update(entry)
        logger.info("Updated waiting list entry %s: %s", entry_id, ", ".join(sorted(patch)))
        return entry

    async def delete_entry(self, entry_id: UUID) -> WaitingListEntry:
        """Soft delete; the entry disappears from every read and match"""
        entry = await self.get_entry(entry_id)
        entry.soft_delete(self.clock())
        entry = await self.repository.update(entry)
        logger.info("Deleted waiting list entry %s", entry_id)
        return entry

    async def list_entries(
        self,
        site_id: UUID,
        client_id: Optional[UUID] = None,
        status: Optional[EntryStatus] = None,
        include_expired: bool = False
    ) -> List[WaitingListEntry]:
        """Entries of a site, PENDING first then oldest first"""
        entries = await self.repository.find_by_site(site_id, client_id=client_id, status=status)
        if not include_expired:
            now = self.clock()
            entries = [
                e for e in entries
                if e.status != EntryStatus.EXPIRED or e.expiration_date > now
            ]
        return sorted(entries, key=lambda e: (_STATUS_ORDER[e.status], e.priority_key()))

    async def list_entries_for_sites(self, site_ids: Iterable[UUID]) -> List[WaitingListEntry]:
        """Non-expired entries across several sites, oldest first"""
        entries: List[WaitingListEntry] = []
        for site_id in site_ids:
            await self.sweeper.sweep(site_id)
            entries.extend(await self.list_entries(site_id))
        return sorted(entries, key=lambda e: e.priority_key())


class MatchingService:
    """Service for expiration sweeps and availability matching"""

    def __init__(
        self,
        repository: WaitingListRepository,
        booking_repository: BookingRepository,
        sweeper: Optional[ExpirationSweeper] = None,
        clock: Clock = utc_now,
        default_window_days: int = DEFAULT_WINDOW_DAYS
    ):
        self.repository = repository
        self.booking_repository = booking_repository
        self.clock = clock
        self.sweeper = sweeper or ExpirationSweeper(repository, clock)
        self.default_window_days = default_window_days

    async def sweep_expired(self, site_id: UUID) -> SweepResult:
        expired = await self.sweeper.sweep(site_id)
        return SweepResult(site_id=site_id, expired_count=expired)

    async def match_single_date(
        self,
        site_id: UUID,
        day: Union[date, datetime]
    ) -> List[WaitingListEntry]:
        """Pending entries waiting for exactly this date, oldest first"""
        if isinstance(day, datetime):
            day = as_utc(day).date()

        await self.sweeper.sweep(site_id)
        entries = await self.repository.find_pending(site_id, expiration_after=start_of_day(day))
        matched = [e for e in entries if e.matches_date(day)]
        return sorted(matched, key=lambda e: e.priority_key())

    async def match_range(
        self,
        site_id: UUID,
        start: Union[date, datetime, None] = None,
        end: Union[date, datetime, None] = None
    ) -> RangeMatchReport:
        """All open dates per pending entry over a window, plus contended dates"""
        window = DateWindow.resolve(
            start, end, self.clock().date(), default_days=self.default_window_days
        )
        if window.clamped:
            logger.warning(
                "Match window for site %s clamped to %s..%s (requested end %s)",
                site_id, window.start, window.end, end
            )

        await self.sweeper.sweep(site_id)

        pending = await self.repository.find_pending(
            site_id, expiration_after=start_of_day(window.start)
        )
        bookings = await self.booking_repository.find_bookings(site_id, window)
        occupied = build_occupancy(bookings, window)

        matches = match_entries(pending, occupied, window)
        conflicts = group_conflicts(matches)
        summary = summarize(pending, matches, conflicts)

        logger.debug(
            "Range match for site %s over %s..%s: %d/%d entries matched, %d conflicting dates",
            site_id, window.start, window.end,
            summary.entries_with_matches, summary.total_pending_entries,
            summary.dates_with_conflicts
        )
        return RangeMatchReport(
            window=window,
            matches=matches,
            conflicts=conflicts,
            summary=summary
        )
