"""Domain Enums"""
from enum import Enum


class EntryStatus(str, Enum):
    PENDING = "PENDING"
    FULFILLED = "FULFILLED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self != EntryStatus.PENDING


class RuleType(str, Enum):
    SPECIFIC_DATES = "SPECIFIC_DATES"
    DAY_OF_WEEK = "DAY_OF_WEEK"
    DATE_RANGE = "DATE_RANGE"


class BookingStatus(str, Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"


class SiteRole(int, Enum):
    VIEWER = 1
    EDITOR = 2
    ADMIN = 3
    OWNER = 4
