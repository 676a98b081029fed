"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from domain.entities import WaitingListEntry, CommittedBooking
from domain.enums import EntryStatus
from domain.value_objects import DateWindow


class WaitingListRepository(ABC):
    """Repository interface for WaitingListEntry Aggregate

    Soft-deleted entries are invisible to every finder.
    """

    @abstractmethod
    async def insert(self, entry: WaitingListEntry) -> WaitingListEntry:
        """Insert new entry"""
        pass

    @abstractmethod
    async def find_by_id(self, entry_id: UUID) -> Optional[WaitingListEntry]:
        """Find entry by ID"""
        pass

    @abstractmethod
    async def find_pending(
        self,
        site_id: UUID,
        expiration_after: Optional[datetime] = None
    ) -> List[WaitingListEntry]:
        """Find PENDING entries of a site, optionally only those expiring at or after a moment"""
        pass

    @abstractmethod
    async def find_by_site(
        self,
        site_id: UUID,
        client_id: Optional[UUID] = None,
        status: Optional[EntryStatus] = None
    ) -> List[WaitingListEntry]:
        """Find entries of a site with optional filters"""
        pass

    @abstractmethod
    async def update(self, entry: WaitingListEntry) -> WaitingListEntry:
        """Persist changes to an existing entry"""
        pass

    @abstractmethod
    async def update_status(self, entry_id: UUID, new_status: EntryStatus, now: datetime) -> None:
        """Change the status of one entry.

        Terminal entries never change status and nothing returns to PENDING;
        both raise ValidationError. A real change bumps modified_at and version.
        """
        pass

    @abstractmethod
    async def expire_pending(self, site_id: UUID, now: datetime) -> int:
        """Set EXPIRED on every PENDING entry of the site with expiration_date < now.

        Must behave as one conditional update so concurrent calls converge.
        Returns the number of entries transitioned.
        """
        pass


class BookingRepository(ABC):
    """Repository interface for committed bookings (owned by the calendar)"""

    @abstractmethod
    async def save(self, booking: CommittedBooking) -> CommittedBooking:
        """Save booking"""
        pass

    @abstractmethod
    async def find_bookings(
        self,
        site_id: UUID,
        window: DateWindow,
        exclude_cancelled: bool = True
    ) -> List[CommittedBooking]:
        """Find bookings of a site overlapping the window"""
        pass
