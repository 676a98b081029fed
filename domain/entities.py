"""Domain Entities - Aggregates and derived match results"""
from pydantic import BaseModel, Field, validator
from uuid import UUID, uuid4
from datetime import datetime, date
from typing import Optional, List, Iterable, Iterator, AbstractSet, Any, Mapping

from domain.clock import as_utc
from domain.enums import EntryStatus, BookingStatus
from domain.exceptions import ValidationError
from domain.value_objects import WaitingListRule, DateWindow, iter_days

CalendarDate = date

AMENDABLE_FIELDS = frozenset({
    "status", "linked_event_id", "notes", "expiration_date", "fulfilled_at"
})


class WaitingListEntry(BaseModel):
    """Waiting List Aggregate Root Entity"""

    # Identity
    entry_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    site_id: UUID
    client_id: UUID
    created_by: Optional[UUID] = None

    # Applicability pattern
    rule: WaitingListRule

    # Status
    status: EntryStatus = EntryStatus.PENDING
    expiration_date: datetime
    linked_event_id: Optional[UUID] = None
    fulfilled_at: Optional[datetime] = None
    notes: Optional[str] = None

    # Soft delete
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None

    # Metadata
    created_at: datetime
    modified_at: Optional[datetime] = None
    version: int = 1

    class Config:
        from_attributes = True

    @validator('expiration_date', 'created_at')
    def normalize_to_utc(cls, v):
        return as_utc(v)

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        site_id: UUID,
        client_id: UUID,
        rule: WaitingListRule,
        expiration_date: datetime,
        now: datetime,
        notes: Optional[str] = None,
        created_by: Optional[UUID] = None
    ) -> "WaitingListEntry":
        """Create new pending entry with validation"""
        if as_utc(expiration_date) <= now:
            raise ValidationError("expiration_date", "expiration_date must be in the future")

        return WaitingListEntry(
            site_id=site_id,
            client_id=client_id,
            rule=rule,
            expiration_date=expiration_date,
            notes=notes,
            created_by=created_by,
            status=EntryStatus.PENDING,
            created_at=now
        )

    # ==================== STATE TRANSITION METHODS ====================
    def expire(self, now: datetime) -> bool:
        """Move a pending entry past its expiration to EXPIRED"""
        if not self.is_expired_at(now):
            return False

        self.status = EntryStatus.EXPIRED
        self._touch(now)
        return True

    def change_status(
        self,
        new_status: EntryStatus,
        now: datetime,
        fulfilled_at: Optional[datetime] = None
    ) -> None:
        """Apply an explicit status change requested by a caller"""
        if new_status == self.status:
            return

        self._check_transition(new_status)
        self.status = new_status
        if new_status == EntryStatus.FULFILLED and self.fulfilled_at is None:
            self.fulfilled_at = as_utc(fulfilled_at) if fulfilled_at else now
        self._touch(now)

    # ==================== MODIFICATION METHODS ====================
    def amend(self, changes: Mapping[str, Any], now: datetime) -> None:
        """Apply a caller patch; status is applied last so fulfilled_at can be supplied with it"""
        unknown = set(changes) - AMENDABLE_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(field, f"{field} cannot be updated")

        new_status = self.status
        if changes.get("status") is not None:
            try:
                new_status = EntryStatus(changes["status"])
            except ValueError:
                raise ValidationError("status", f"Unknown status {changes['status']!r}")
            self._check_transition(new_status)

        if "expiration_date" in changes and changes["expiration_date"] is None:
            raise ValidationError("expiration_date", "expiration_date is required")

        if "expiration_date" in changes:
            self.expiration_date = as_utc(changes["expiration_date"])
        if "linked_event_id" in changes:
            self.linked_event_id = changes["linked_event_id"]
        if "notes" in changes:
            self.notes = changes["notes"]
        if "fulfilled_at" in changes:
            value = changes["fulfilled_at"]
            self.fulfilled_at = as_utc(value) if value is not None else None

        if new_status == self.status:
            self._touch(now)
        elif new_status == EntryStatus.FULFILLED:
            self.fulfill(now)
        elif new_status == EntryStatus.CANCELLED:
            self.cancel(now)
        else:
            self.change_status(new_status, now)

    def fulfill(self, now: datetime, event_id: Optional[UUID] = None) -> None:
        """Mark as satisfied, optionally recording the booking that did it"""
        self.change_status(EntryStatus.FULFILLED, now)
        if event_id is not None:
            self.linked_event_id = event_id

    def cancel(self, now: datetime) -> None:
        self.change_status(EntryStatus.CANCELLED, now)

    def soft_delete(self, now: datetime) -> None:
        self.is_deleted = True
        self.deleted_at = now
        self._touch(now)

    def _check_transition(self, new_status: EntryStatus) -> None:
        if new_status == self.status:
            return
        if self.status.is_terminal:
            raise ValidationError(
                "status",
                f"Cannot change status of entry in terminal status {self.status.value}"
            )
        if new_status == EntryStatus.PENDING:
            raise ValidationError("status", "Entries cannot be moved back to PENDING")

    def _touch(self, now: datetime) -> None:
        self.modified_at = now
        self.version += 1

    # ==================== QUERY METHODS ====================
    @property
    def last_matchable_day(self) -> date:
        """Last calendar date (UTC) this entry may still be matched against"""
        return self.expiration_date.date()

    def is_pending(self) -> bool:
        return self.status == EntryStatus.PENDING and not self.is_deleted

    def is_expired_at(self, now: datetime) -> bool:
        return self.status == EntryStatus.PENDING and self.expiration_date < now

    def matches_date(self, day: date) -> bool:
        """Whether this entry is waiting for the given calendar date"""
        return (
            self.is_pending()
            and day <= self.last_matchable_day
            and self.rule.includes(day)
        )

    def open_dates(self, window: DateWindow, occupied: AbstractSet[date]) -> List[date]:
        """Dates inside the window matched by the rule and not occupied"""
        return [d for d in self.rule.expand(window, self.last_matchable_day) if d not in occupied]

    def priority_key(self):
        """First-come-first-served ordering key"""
        return (self.created_at, str(self.entry_id))


class CommittedBooking(BaseModel):
    """Booking already committed to a site calendar (read-only to matching)"""
    booking_id: UUID = Field(default_factory=uuid4)
    site_id: UUID
    start_date: datetime
    end_date: Optional[datetime] = None
    status: BookingStatus = BookingStatus.SCHEDULED

    class Config:
        from_attributes = True

    @validator('start_date', 'end_date')
    def normalize_to_utc(cls, v):
        return as_utc(v) if v is not None else v

    @validator('end_date')
    def end_not_before_start(cls, v, values):
        if v is not None and 'start_date' in values and v < values['start_date']:
            raise ValueError('end_date must not be before start_date')
        return v

    @property
    def first_day(self) -> date:
        return self.start_date.date()

    @property
    def last_day(self) -> date:
        return (self.end_date or self.start_date).date()

    def occupies(self) -> bool:
        """Cancelled bookings leave their dates free"""
        return self.status != BookingStatus.CANCELLED

    def occupied_days(self, window: DateWindow) -> Iterator[date]:
        """Dates of the window from the start day through the end day"""
        return iter_days(max(self.first_day, window.start), min(self.last_day, window.end))

    def overlaps(self, start: date, end: date) -> bool:
        return self.first_day <= end and self.last_day >= start


class MatchResult(BaseModel):
    """Open dates found for one pending entry"""
    entry: WaitingListEntry
    matching_dates: List[date]
    earliest_match: date
    match_count: int

    @staticmethod
    def from_dates(entry: WaitingListEntry, dates: Iterable[date]) -> Optional["MatchResult"]:
        ordered = sorted(dates)
        if not ordered:
            return None
        return MatchResult(
            entry=entry,
            matching_dates=ordered,
            earliest_match=ordered[0],
            match_count=len(ordered)
        )


class ConflictContender(BaseModel):
    entry: WaitingListEntry
    priority: int = Field(ge=1)


class DateConflict(BaseModel):
    """Calendar date wanted by more than one pending entry"""
    date: CalendarDate
    entries: List[ConflictContender]


class MatchSummary(BaseModel):
    total_pending_entries: int = 0
    entries_with_matches: int = 0
    total_available_dates: int = 0
    dates_with_conflicts: int = 0


class RangeMatchReport(BaseModel):
    """Complete result of a range match, never returned partially"""
    window: DateWindow
    matches: List[MatchResult] = []
    conflicts: List[DateConflict] = []
    summary: MatchSummary = Field(default_factory=MatchSummary)


class SweepResult(BaseModel):
    site_id: UUID
    expired_count: int = 0
