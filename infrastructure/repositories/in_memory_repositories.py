"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict
from uuid import UUID
from datetime import datetime

from domain.repositories import WaitingListRepository, BookingRepository
from domain.entities import WaitingListEntry, CommittedBooking
from domain.enums import EntryStatus
from domain.exceptions import NotFoundError
from domain.value_objects import DateWindow


class InMemoryWaitingListRepository(WaitingListRepository):
    """In-memory implementation of WaitingListRepository"""

    def __init__(self):
        self._storage: Dict[UUID, WaitingListEntry] = {}

    def _visible(self) -> List[WaitingListEntry]:
        return [entry for entry in self._storage.values() if not entry.is_deleted]

    async def insert(self, entry: WaitingListEntry) -> WaitingListEntry:
        """Insert entry into memory"""
        self._storage[entry.entry_id] = entry
        return entry

    async def find_by_id(self, entry_id: UUID) -> Optional[WaitingListEntry]:
        """Find entry by ID"""
        entry = self._storage.get(entry_id)
        if entry is None or entry.is_deleted:
            return None
        return entry

    async def find_pending(
        self,
        site_id: UUID,
        expiration_after: Optional[datetime] = None
    ) -> List[WaitingListEntry]:
        """Find PENDING entries of a site"""
        return [
            entry for entry in self._visible()
            if entry.site_id == site_id
            and entry.status == EntryStatus.PENDING
            and (expiration_after is None or entry.expiration_date >= expiration_after)
        ]

    async def find_by_site(
        self,
        site_id: UUID,
        client_id: Optional[UUID] = None,
        status: Optional[EntryStatus] = None
    ) -> List[WaitingListEntry]:
        """Find entries of a site with optional filters"""
        return [
            entry for entry in self._visible()
            if entry.site_id == site_id
            and (client_id is None or entry.client_id == client_id)
            and (status is None or entry.status == status)
        ]

    async def update(self, entry: WaitingListEntry) -> WaitingListEntry:
        """Update entry"""
        if entry.entry_id in self._storage:
            self._storage[entry.entry_id] = entry
            return entry
        raise NotFoundError("Waiting list entry", entry.entry_id)

    async def update_status(self, entry_id: UUID, new_status: EntryStatus, now: datetime) -> None:
        """Change status of one entry through its transition rules"""
        entry = await self.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError("Waiting list entry", entry_id)
        entry.change_status(new_status, now)

    async def expire_pending(self, site_id: UUID, now: datetime) -> int:
        """Expire pending entries of a site whose expiration has passed"""
        expired = 0
        for entry in self._visible():
            if entry.site_id == site_id and entry.expire(now):
                expired += 1
        return expired


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, CommittedBooking] = {}

    async def save(self, booking: CommittedBooking) -> CommittedBooking:
        """Save booking to memory"""
        self._storage[booking.booking_id] = booking
        return booking

    async def find_bookings(
        self,
        site_id: UUID,
        window: DateWindow,
        exclude_cancelled: bool = True
    ) -> List[CommittedBooking]:
        """Find bookings of a site overlapping the window"""
        return [
            booking for booking in self._storage.values()
            if booking.site_id == site_id
            and booking.overlaps(window.start, window.end)
            and (booking.occupies() or not exclude_cancelled)
        ]
