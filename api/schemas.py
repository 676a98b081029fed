"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from uuid import UUID
from typing import Dict, List, Optional

from domain.enums import EntryStatus, SiteRole
from domain.entities import CalendarDate
from domain.value_objects import WaitingListRule


# ============================================================================
# WAITING LIST SCHEMAS
# ============================================================================

class CreateEntryRequest(BaseModel):
    """Create waiting list entry request DTO"""
    site_id: UUID
    client_id: UUID
    rule: WaitingListRule
    expiration_date: datetime
    notes: Optional[str] = None


class UpdateEntryRequest(BaseModel):
    """Update waiting list entry request DTO (only fields sent are applied)"""
    status: Optional[EntryStatus] = None
    linked_event_id: Optional[UUID] = None
    notes: Optional[str] = None
    expiration_date: Optional[datetime] = None
    fulfilled_at: Optional[datetime] = None


class RuleResponse(BaseModel):
    """Rule response DTO; only the fields of the rule's variant are set"""
    rule_type: str
    dates: Optional[List[date]] = None
    days: Optional[List[int]] = None
    start: Optional[date] = None
    end: Optional[date] = None


class EntryResponse(BaseModel):
    """Waiting list entry response DTO"""
    entry_id: UUID
    site_id: UUID
    client_id: UUID
    created_by: Optional[UUID] = None
    rule: RuleResponse
    status: str
    expiration_date: datetime
    linked_event_id: Optional[UUID] = None
    fulfilled_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    modified_at: Optional[datetime] = None
    version: int


# ============================================================================
# MATCHING SCHEMAS
# ============================================================================

class SweepResponse(BaseModel):
    site_id: UUID
    expired_count: int


class MatchResultResponse(BaseModel):
    entry: EntryResponse
    matching_dates: List[date]
    earliest_match: date
    match_count: int


class ContenderResponse(BaseModel):
    entry: EntryResponse
    priority: int


class DateConflictResponse(BaseModel):
    date: CalendarDate
    entries: List[ContenderResponse]


class WindowResponse(BaseModel):
    start: date
    end: date
    clamped: bool


class SummaryResponse(BaseModel):
    total_pending_entries: int
    entries_with_matches: int
    total_available_dates: int
    dates_with_conflicts: int


class RangeMatchResponse(BaseModel):
    """Range match response DTO"""
    window: WindowResponse
    matches: List[MatchResultResponse]
    conflicts: List[DateConflictResponse]
    summary: SummaryResponse


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
    site_roles: Dict[UUID, SiteRole] = Field(default_factory=dict)
