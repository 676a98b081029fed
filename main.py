from fastapi import FastAPI, HTTPException, Depends, Query
from uuid import UUID
from datetime import date
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Waiting list
    CreateEntryRequest, UpdateEntryRequest, EntryResponse, RuleResponse,
    # Matching
    SweepResponse, RangeMatchResponse, MatchResultResponse, ContenderResponse,
    DateConflictResponse, WindowResponse, SummaryResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, fake_users_db, get_user, require_site_role
from infrastructure.config import settings
from infrastructure.logging_config import setup_logging
from infrastructure.security import verify_password, create_access_token
from domain.auth import User

from application.services import WaitingListService, MatchingService, ExpirationSweeper
from infrastructure.repositories.in_memory_repositories import (
    InMemoryWaitingListRepository, InMemoryBookingRepository
)
from domain.enums import EntryStatus, RuleType, SiteRole
from domain.exceptions import NotFoundError

setup_logging(settings.log_level)

app = FastAPI(
    title=settings.app_title,
    description="Waiting list matching and expiration API",
    version=settings.app_version
)

# Initialize repositories
entry_repo = InMemoryWaitingListRepository()
booking_repo = InMemoryBookingRepository()
sweeper = ExpirationSweeper(entry_repo)

# Dependency injection
def get_waiting_list_service() -> WaitingListService:
    return WaitingListService(entry_repo, sweeper)

def get_matching_service() -> MatchingService:
    return MatchingService(
        entry_repo, booking_repo, sweeper,
        default_window_days=settings.default_match_window_days
    )

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/entry-status", tags=["Enum Reference"])
async def get_entry_statuses():
    """Get all EntryStatus enum values"""
    return {
        "values": [item.name for item in EntryStatus],
        "description": "Entry status values: PENDING, FULFILLED, EXPIRED, CANCELLED"
    }

@app.get("/api/enums/rule-type", tags=["Enum Reference"])
async def get_rule_types():
    """Get all RuleType enum values"""
    return {
        "values": [item.name for item in RuleType],
        "description": "Rule type values: SPECIFIC_DATES, DAY_OF_WEEK (0=Sunday..6=Saturday), DATE_RANGE"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": create_access_token(user.username), "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# WAITING LIST ENDPOINTS
# ============================================================================

@app.post("/api/waiting-list", response_model=EntryResponse, status_code=201, tags=["Waiting List"])
async def create_entry(
    request: CreateEntryRequest,
    service: WaitingListService = Depends(get_waiting_list_service),
    current_user: User = Depends(get_current_active_user)
):
    """Add a client to the waiting list"""
    require_site_role(current_user, request.site_id, SiteRole.EDITOR, "create waiting list entries")
    try:
        entry = await service.create_entry(
            site_id=request.site_id,
            client_id=request.client_id,
            rule=request.rule,
            expiration_date=request.expiration_date,
            notes=request.notes,
            created_by=current_user.user_id
        )
        return _entry_to_response(entry)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/waiting-list", response_model=List[EntryResponse], tags=["Waiting List"])
async def list_entries(
    site_id: UUID,
    client_id: Optional[UUID] = None,
    status: Optional[EntryStatus] = None,
    include_expired: bool = False,
    service: WaitingListService = Depends(get_waiting_list_service),
    current_user: User = Depends(get_current_active_user)
):
    """List waiting list entries of a site"""
    require_site_role(current_user, site_id, SiteRole.VIEWER, "view waiting list entries")
    entries = await service.list_entries(
        site_id, client_id=client_id, status=status, include_expired=include_expired
    )
    return [_entry_to_response(e) for e in entries]

@app.get("/api/waiting-list/mine", response_model=List[EntryResponse], tags=["Waiting List"])
async def list_entries_for_current_user(
    site_id: Optional[UUID] = None,
    service: WaitingListService = Depends(get_waiting_list_service),
    current_user: User = Depends(get_current_active_user)
):
    """Non-expired entries of one site, or of every site the user belongs to"""
    if site_id is not None:
        require_site_role(current_user, site_id, SiteRole.VIEWER, "view waiting list entries")
        site_ids = [site_id]
    else:
        site_ids = list(current_user.site_roles)
    entries = await service.list_entries_for_sites(site_ids)
    return [_entry_to_response(e) for e in entries]

@app.get("/api/waiting-list/{entry_id}", response_model=EntryResponse, tags=["Waiting List"])
async def get_entry(
    entry_id: UUID,
    service: WaitingListService = Depends(get_waiting_list_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get waiting list entry by ID"""
    try:
        entry = await service.get_entry(entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    require_site_role(current_user, entry.site_id, SiteRole.VIEWER, "view this waiting list entry")
    return _entry_to_response(entry)

@app.patch("/api/waiting-list/{entry_id}", response_model=EntryResponse, tags=["Waiting List"])
async def update_entry(
    entry_id: UUID,
    request: UpdateEntryRequest,
    service: WaitingListService = Depends(get_waiting_list_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update status, linked event, notes or expiration of an entry"""
    try:
        entry = await service.get_entry(entry_id)
        require_site_role(current_user, entry.site_id, SiteRole.EDITOR, "update this waiting list entry")
        entry = await service.update_entry(entry_id, request.model_dump(exclude_unset=True))
        return _entry_to_response(entry)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/api/waiting-list/{entry_id}", tags=["Waiting List"])
async def delete_entry(
    entry_id: UUID,
    service: WaitingListService = Depends(get_waiting_list_service),
    current_user: User = Depends(get_current_active_user)
):
    """Soft delete a waiting list entry"""
    try:
        entry = await service.get_entry(entry_id)
        require_site_role(current_user, entry.site_id, SiteRole.ADMIN, "delete this waiting list entry")
        await service.delete_entry(entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Waiting list entry deleted successfully"}

# ============================================================================
# MATCHING ENDPOINTS
# ============================================================================

@app.post("/api/sites/{site_id}/waiting-list/expire", response_model=SweepResponse, tags=["Matching"])
async def expire_entries(
    site_id: UUID,
    service: MatchingService = Depends(get_matching_service),
    current_user: User = Depends(get_current_active_user)
):
    """Expire pending entries whose expiration date has passed"""
    require_site_role(current_user, site_id, SiteRole.EDITOR, "expire entries")
    result = await service.sweep_expired(site_id)
    return SweepResponse(site_id=result.site_id, expired_count=result.expired_count)

@app.get("/api/sites/{site_id}/waiting-list/matches", response_model=List[EntryResponse], tags=["Matching"])
async def match_single_date(
    site_id: UUID,
    match_date: date = Query(..., alias="date"),
    service: MatchingService = Depends(get_matching_service),
    current_user: User = Depends(get_current_active_user)
):
    """Pending entries waiting for one specific date"""
    require_site_role(current_user, site_id, SiteRole.VIEWER, "check matches")
    entries = await service.match_single_date(site_id, match_date)
    return [_entry_to_response(e) for e in entries]

@app.get("/api/sites/{site_id}/waiting-list/match-range", response_model=RangeMatchResponse, tags=["Matching"])
async def match_range(
    site_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: MatchingService = Depends(get_matching_service),
    current_user: User = Depends(get_current_active_user)
):
    """Open dates for every pending entry over a window (at most 90 days)"""
    require_site_role(current_user, site_id, SiteRole.VIEWER, "check waiting list matches")
    try:
        report = await service.match_range(site_id, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _report_to_response(report)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _rule_to_response(rule) -> RuleResponse:
    """Convert rule variant to RuleResponse"""
    if rule.rule_type == RuleType.SPECIFIC_DATES:
        return RuleResponse(rule_type=rule.rule_type, dates=sorted(rule.dates))
    if rule.rule_type == RuleType.DAY_OF_WEEK:
        return RuleResponse(rule_type=rule.rule_type, days=sorted(rule.days))
    return RuleResponse(rule_type=rule.rule_type, start=rule.start, end=rule.end)

def _entry_to_response(entry) -> EntryResponse:
    """Convert WaitingListEntry entity to EntryResponse"""
    return EntryResponse(
        entry_id=entry.entry_id,
        site_id=entry.site_id,
        client_id=entry.client_id,
        created_by=entry.created_by,
        rule=_rule_to_response(entry.rule),
        status=entry.status.value,
        expiration_date=entry.expiration_date,
        linked_event_id=entry.linked_event_id,
        fulfilled_at=entry.fulfilled_at,
        notes=entry.notes,
        created_at=entry.created_at,
        modified_at=entry.modified_at,
        version=entry.version
    )

def _report_to_response(report) -> RangeMatchResponse:
    """Convert RangeMatchReport to RangeMatchResponse"""
    return RangeMatchResponse(
        window=WindowResponse(**report.window.model_dump()),
        matches=[
            MatchResultResponse(
                entry=_entry_to_response(m.entry),
                matching_dates=m.matching_dates,
                earliest_match=m.earliest_match,
                match_count=m.match_count
            )
            for m in report.matches
        ],
        conflicts=[
            DateConflictResponse(
                date=c.date,
                entries=[
                    ContenderResponse(entry=_entry_to_response(x.entry), priority=x.priority)
                    for x in c.entries
                ]
            )
            for c in report.conflicts
        ],
        summary=SummaryResponse(**report.summary.model_dump())
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
