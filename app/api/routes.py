"""API routes for the prayer fulfillment workflow."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.ai.assistant import PrayerAssistant
from app.api.deps import get_actor, get_assistant, get_optional_actor
from app.api.schemas import (
    CommitmentCreate,
    CommitmentReassign,
    CommitmentResponse,
    CommitmentTargetUpdate,
    CommitmentWithRequestResponse,
    EncouragementRequest,
    EncouragementResponse,
    ErrorResponse,
    PrayerDashboardResponse,
    PrayerRequestCreate,
    PrayerRequestResponse,
    ReminderFrequencyRequest,
    ReminderFrequencyResponse,
    SessionCreate,
    SessionResponse,
    TimelineRequest,
    TimelineResponse,
    TrendsResponse,
    VerseRequest,
    VerseResponse,
)
from app.database import get_db
from app.models.enums import RequestStatus
from app.services.authorization import Actor, Permission, require
from app.services.commitment_ledger import CommitmentLedger
from app.services.dashboard import PrayerDashboard
from app.services.errors import (
    Forbidden,
    InvalidInput,
    NotFound,
    PrayerError,
    RefusalError,
    StorageError,
)
from app.services.request_registry import RequestRegistry
from app.services.session_log import SessionLog

router = APIRouter()


def _http_error(e: PrayerError) -> HTTPException:
    """Translate a service error into its HTTP response."""
    if isinstance(e, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, InvalidInput):
        return HTTPException(
            status_code=422,
            detail={"message": e.message, "field": e.field}
        )
    if isinstance(e, RefusalError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail={"message": e.message})
    if isinstance(e, Forbidden):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    if isinstance(e, StorageError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": e.message, "operation": e.operation}
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


# Prayer request endpoints
@router.post("/prayer-requests", response_model=PrayerRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_prayer_request(
    data: PrayerRequestCreate,
    db: Session = Depends(get_db),
    assistant: PrayerAssistant = Depends(get_assistant),
    actor: Optional[Actor] = Depends(get_optional_actor)
):
    """
    Submit a prayer request. Open to anyone.
    A timeline that cannot be resolved just leaves the request without a deadline.
    """
    registry = RequestRegistry(db, timeline_extractor=assistant)
    try:
        return registry.submit(
            title=data.title,
            description=data.description,
            category=data.category,
            privacy=data.privacy_level,
            contact={
                "name": data.requester_name,
                "phone": data.requester_phone,
                "email": data.requester_email,
            },
            timeline_text=data.timeline,
            submitted_by=actor.user_id if actor else None
        )
    except PrayerError as e:
        raise _http_error(e)


@router.get("/prayer-requests", response_model=List[PrayerRequestResponse])
def list_prayer_requests(
    status_filter: Optional[str] = Query("active", alias="status"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    List requests, newest first. Active by default; ``status=answered``
    or ``status=all`` are leader views.
    """
    registry = RequestRegistry(db)
    if status_filter == RequestStatus.ACTIVE.value:
        return registry.list_active()
    try:
        require(actor, Permission.VIEW_ALL_REQUESTS)
        if status_filter == "all":
            return registry.list_by_status(None)
        try:
            wanted = RequestStatus(status_filter)
        except ValueError:
            raise InvalidInput(f"Unknown status filter: {status_filter}", field="status_filter")
        return registry.list_by_status(wanted)
    except PrayerError as e:
        raise _http_error(e)


@router.get("/prayer-requests/available", response_model=List[PrayerRequestResponse])
def list_available_requests(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """Active requests the caller has not committed to yet."""
    return RequestRegistry(db).list_available(actor.user_id)


@router.get("/prayer-requests/{request_id}", response_model=PrayerRequestResponse)
def get_prayer_request(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    try:
        return RequestRegistry(db).get(request_id)
    except PrayerError as e:
        raise _http_error(e)


@router.put("/prayer-requests/{request_id}/answer", response_model=PrayerRequestResponse)
def mark_request_answered(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """Mark a request answered. Repeating the call changes nothing."""
    try:
        return RequestRegistry(db).mark_answered(actor, request_id)
    except PrayerError as e:
        raise _http_error(e)


@router.delete("/prayer-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_prayer_request(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """Delete a request together with its commitments and prayer log."""
    try:
        RequestRegistry(db).delete(actor, request_id)
    except PrayerError as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Commitment endpoints
@router.post(
    "/prayer-requests/{request_id}/commit",
    response_model=CommitmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Refusal - already committed or request not active"}}
)
def commit_to_request(
    request_id: int,
    data: Optional[CommitmentCreate] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Commit the caller to pray for a request.

    WILL REFUSE if:
    - The request is no longer active
    - The caller already holds a commitment for it
    """
    target_hours = data.target_hours if data else None
    try:
        return CommitmentLedger(db).commit(actor, request_id, target_hours=target_hours)
    except PrayerError as e:
        raise _http_error(e)


@router.get("/prayer-requests/{request_id}/commitments", response_model=List[CommitmentResponse])
def list_request_commitments(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    try:
        require(actor, Permission.VIEW_ALL_REQUESTS)
        RequestRegistry(db).get(request_id)
        return CommitmentLedger(db).list_for_request(request_id)
    except PrayerError as e:
        raise _http_error(e)


@router.get("/prayer-requests/{request_id}/sessions", response_model=List[SessionResponse])
def list_request_sessions(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    try:
        require(actor, Permission.VIEW_ALL_REQUESTS)
        RequestRegistry(db).get(request_id)
        return SessionLog(db).list_for_request(request_id)
    except PrayerError as e:
        raise _http_error(e)


@router.get("/commitments/mine", response_model=List[CommitmentWithRequestResponse])
def list_my_commitments(
    include_completed: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """The caller's commitments, soonest deadline first."""
    return CommitmentLedger(db).list_for_volunteer(actor.user_id, include_completed=include_completed)


@router.put("/commitments/{commitment_id}/reassign", response_model=CommitmentResponse)
def reassign_commitment(
    commitment_id: int,
    data: CommitmentReassign,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """Hand a commitment to another warrior. Progress carries over by default."""
    try:
        return CommitmentLedger(db).reassign(
            actor, commitment_id, data.volunteer_id, reset_progress=data.reset_progress
        )
    except PrayerError as e:
        raise _http_error(e)


@router.put("/commitments/{commitment_id}/target", response_model=CommitmentResponse)
def update_commitment_target(
    commitment_id: int,
    data: CommitmentTargetUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    try:
        return CommitmentLedger(db).update_target(actor, commitment_id, data.target_hours)
    except PrayerError as e:
        raise _http_error(e)


@router.post(
    "/commitments/{commitment_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED
)
def log_prayer_session(
    commitment_id: int,
    data: SessionCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """Log a prayer session; its minutes are credited to the commitment."""
    try:
        return SessionLog(db).append(actor, commitment_id, data.duration_minutes, note=data.note)
    except PrayerError as e:
        raise _http_error(e)


# Dashboard endpoints
@router.get("/dashboard/prayer", response_model=PrayerDashboardResponse)
def prayer_dashboard(
    status_filter: Optional[str] = Query("active", alias="status"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """Totals plus per-request hours and warrior counts."""
    try:
        require(actor, Permission.VIEW_DASHBOARD)
        wanted = None
        if status_filter != "all":
            try:
                wanted = RequestStatus(status_filter)
            except ValueError:
                raise InvalidInput(f"Unknown status filter: {status_filter}", field="status_filter")
    except PrayerError as e:
        raise _http_error(e)

    dashboard = PrayerDashboard(db)
    return {"stats": dashboard.prayer_stats(), "requests": dashboard.request_summaries(wanted)}


# Assistant endpoints
@router.post("/assistant/timeline", response_model=TimelineResponse)
def extract_timeline(data: TimelineRequest, assistant: PrayerAssistant = Depends(get_assistant)):
    result = assistant.extract_timeline(data.text)
    return {"days": result.days, "deadline": result.deadline}


@router.post("/assistant/verse", response_model=VerseResponse)
def suggest_verse(data: VerseRequest, assistant: PrayerAssistant = Depends(get_assistant)):
    category = data.category.value if data.category else None
    return {"verse": assistant.suggest_verse(data.text, category)}


@router.post("/assistant/encouragement", response_model=EncouragementResponse)
def generate_encouragement(data: EncouragementRequest, assistant: PrayerAssistant = Depends(get_assistant)):
    return {"encouragement": assistant.generate_encouragement(data.text)}


@router.post("/assistant/reminder-frequency", response_model=ReminderFrequencyResponse)
def reminder_frequency(data: ReminderFrequencyRequest, assistant: PrayerAssistant = Depends(get_assistant)):
    return {"frequency": assistant.reminder_frequency(data.timeline, data.category.value)}


@router.get("/assistant/trends", response_model=TrendsResponse)
def prayer_trends(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    assistant: PrayerAssistant = Depends(get_assistant)
):
    """Leadership insights over the currently active requests."""
    try:
        require(actor, Permission.VIEW_DASHBOARD)
    except PrayerError as e:
        raise _http_error(e)
    return {"insights": assistant.analyze_trends(RequestRegistry(db).list_active())}
