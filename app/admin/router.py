"""
Admin API Router

Athletes, events, results, ranking snapshots and team selections.
Every endpoint requires an admin (see require_admin).
"""

from datetime import date
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import AdminContext, get_db, require_admin
from ..models import (
    AthleteCreate,
    AthleteUpdate,
    EventCreate,
    EventUpdate,
    ResultCreate,
    ResultUpdate,
    SnapshotCreate,
    SelectionEventCreate,
    SelectionEventUpdate,
    DecisionCreate,
    DecisionUpdate,
    PublishRequest,
    DashboardStats,
)
from .service import AdminService, ConflictError

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)]
)


def get_admin_service(db=Depends(get_db)) -> AdminService:
    return AdminService(db)


def _http_error(e: Exception) -> HTTPException:
    """Service errors to HTTP: conflict 409, missing 404, invalid 400"""
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =============================================
# Dashboard
# =============================================

@router.get("/stats", response_model=DashboardStats)
async def get_stats(service: AdminService = Depends(get_admin_service)):
    """Dashboard counters"""
    return await service.get_stats()


@router.get("/me")
async def get_me(admin: AdminContext = Depends(require_admin)):
    return {"user_id": admin.user_id, "role": admin.role, "email": admin.email}


# =============================================
# Athletes
# =============================================

@router.get("/athletes")
async def list_athletes(
    active_only: bool = Query(False, description="Only active athletes"),
    search: Optional[str] = Query(None, description="Name, club or license number"),
    service: AdminService = Depends(get_admin_service)
):
    return await service.list_athletes(active_only=active_only, search=search)


@router.get("/athletes/{athlete_id}")
async def get_athlete(athlete_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return await service.get_athlete(athlete_id)
    except LookupError as e:
        raise _http_error(e)


@router.post("/athletes", status_code=status.HTTP_201_CREATED)
async def create_athlete(payload: AthleteCreate, service: AdminService = Depends(get_admin_service)):
    """
    Register an athlete

    age_category is derived from date_of_birth and cannot be set directly.
    """
    return await service.create_athlete(payload.model_dump())


@router.patch("/athletes/{athlete_id}")
async def update_athlete(
    athlete_id: str,
    payload: AthleteUpdate,
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.update_athlete(
            athlete_id, payload.model_dump(exclude_unset=True)
        )
    except (ValueError, LookupError) as e:
        raise _http_error(e)


@router.delete("/athletes/{athlete_id}")
async def deactivate_athlete(athlete_id: str, service: AdminService = Depends(get_admin_service)):
    """Athletes are deactivated, never deleted (results keep their reference)"""
    try:
        return await service.deactivate_athlete(athlete_id)
    except LookupError as e:
        raise _http_error(e)


# =============================================
# Events
# =============================================

@router.get("/events")
async def list_events(
    year: Optional[int] = Query(None),
    service: AdminService = Depends(get_admin_service)
):
    return await service.list_events(year=year)


@router.get("/events/{event_id}")
async def get_event(event_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return await service.get_event(event_id)
    except LookupError as e:
        raise _http_error(e)


@router.post("/events", status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, service: AdminService = Depends(get_admin_service)):
    return await service.create_event(payload.model_dump())


@router.patch("/events/{event_id}")
async def update_event(
    event_id: str,
    payload: EventUpdate,
    service: AdminService = Depends(get_admin_service)
):
    """Changing the coefficient recomputes points of the event's results"""
    try:
        return await service.update_event(
            event_id, payload.model_dump(exclude_unset=True)
        )
    except (ValueError, LookupError) as e:
        raise _http_error(e)


@router.post("/events/{event_id}/publish")
async def publish_event(
    event_id: str,
    payload: PublishRequest = PublishRequest(),
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.publish_event(event_id, payload.is_published)
    except LookupError as e:
        raise _http_error(e)


@router.delete("/events/{event_id}")
async def delete_event(event_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return {"deleted": await service.delete_event(event_id)}
    except LookupError as e:
        raise _http_error(e)


# =============================================
# Results
# =============================================

@router.get("/results")
async def list_results(
    event_id: Optional[str] = Query(None),
    athlete_id: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service)
):
    return await service.list_results(event_id=event_id, athlete_id=athlete_id)


@router.post("/results", status_code=status.HTTP_201_CREATED)
async def create_result(payload: ResultCreate, service: AdminService = Depends(get_admin_service)):
    """
    Enter a result

    points_earned is computed from the event coefficient.
    A second result for the same athlete and event is rejected (409).
    """
    try:
        return await service.create_result(payload.model_dump())
    except ValueError as e:
        raise _http_error(e)


@router.patch("/results/{result_id}")
async def update_result(
    result_id: str,
    payload: ResultUpdate,
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.update_result(
            result_id, payload.model_dump(exclude_unset=True, exclude_none=True)
        )
    except (ValueError, LookupError) as e:
        raise _http_error(e)


@router.delete("/results/{result_id}")
async def delete_result(result_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return {"deleted": await service.delete_result(result_id)}
    except LookupError as e:
        raise _http_error(e)


# =============================================
# Ranking snapshots
# =============================================

@router.get("/snapshots")
async def list_snapshots(service: AdminService = Depends(get_admin_service)):
    return await service.list_snapshots()


@router.get("/snapshots/{snapshot_id}")
async def get_snapshot(snapshot_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return await service.get_snapshot(snapshot_id)
    except LookupError as e:
        raise _http_error(e)


@router.post("/snapshots", status_code=status.HTTP_201_CREATED)
async def generate_snapshot(payload: SnapshotCreate, service: AdminService = Depends(get_admin_service)):
    """
    Generate a ranking snapshot from the current results

    The snapshot is created unpublished.
    """
    try:
        return await service.generate_snapshot(
            payload.snapshot_date, payload.title, payload.description
        )
    except ValueError as e:
        raise _http_error(e)


@router.post("/snapshots/{snapshot_id}/publish")
async def publish_snapshot(
    snapshot_id: str,
    payload: PublishRequest = PublishRequest(),
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.publish_snapshot(snapshot_id, payload.is_published)
    except LookupError as e:
        raise _http_error(e)


@router.delete("/snapshots/{snapshot_id}")
async def delete_snapshot(snapshot_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return {"deleted": await service.delete_snapshot(snapshot_id)}
    except (ValueError, LookupError) as e:
        raise _http_error(e)


# =============================================
# Selections
# =============================================

@router.get("/selections")
async def list_selection_events(service: AdminService = Depends(get_admin_service)):
    return await service.list_selection_events()


@router.get("/selections/{selection_id}")
async def get_selection_event(selection_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return await service.get_selection_event(selection_id)
    except LookupError as e:
        raise _http_error(e)


@router.post("/selections", status_code=status.HTTP_201_CREATED)
async def create_selection_event(
    payload: SelectionEventCreate,
    service: AdminService = Depends(get_admin_service)
):
    return await service.create_selection_event(payload.model_dump())


@router.patch("/selections/{selection_id}")
async def update_selection_event(
    selection_id: str,
    payload: SelectionEventUpdate,
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.update_selection_event(
            selection_id, payload.model_dump(exclude_unset=True)
        )
    except (ValueError, LookupError) as e:
        raise _http_error(e)


@router.post("/selections/{selection_id}/publish")
async def publish_selection_event(
    selection_id: str,
    payload: PublishRequest = PublishRequest(),
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.publish_selection_event(selection_id, payload.is_published)
    except LookupError as e:
        raise _http_error(e)


@router.delete("/selections/{selection_id}")
async def delete_selection_event(selection_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return {"deleted": await service.delete_selection_event(selection_id)}
    except LookupError as e:
        raise _http_error(e)


@router.post("/selections/{selection_id}/decisions", status_code=status.HTTP_201_CREATED)
async def add_decision(
    selection_id: str,
    payload: DecisionCreate,
    service: AdminService = Depends(get_admin_service)
):
    """Add an athlete to a selection (default status: selected)"""
    try:
        return await service.add_decision(selection_id, payload.model_dump())
    except (ValueError, LookupError) as e:
        raise _http_error(e)


@router.patch("/decisions/{decision_id}")
async def update_decision(
    decision_id: str,
    payload: DecisionUpdate,
    service: AdminService = Depends(get_admin_service)
):
    try:
        return await service.update_decision(decision_id, payload.model_dump(exclude_unset=True))
    except LookupError as e:
        raise _http_error(e)


@router.delete("/decisions/{decision_id}")
async def remove_decision(decision_id: str, service: AdminService = Depends(get_admin_service)):
    try:
        return {"deleted": await service.remove_decision(decision_id)}
    except LookupError as e:
        raise _http_error(e)


# =============================================
# Points overview
# =============================================

@router.get("/points")
async def points_overview(
    age_category: Optional[str] = Query(None, description="Cadet, Junior or Senior"),
    weight_category: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    club: Optional[str] = Query(None),
    year: Optional[int] = Query(None, description="Event year"),
    coefficient: Optional[int] = Query(None, ge=1, le=5),
    search: Optional[str] = Query(None),
    as_of: Optional[date] = Query(None, description="Ignore events after this date"),
    service: AdminService = Depends(get_admin_service)
) -> Dict[str, Any]:
    """Points per athlete with the available filter values"""
    try:
        return await service.points_overview(
            age_category=age_category,
            weight_category=weight_category,
            gender=gender,
            club=club,
            year=year,
            coefficient=coefficient,
            search=search,
            as_of=as_of,
        )
    except ValueError as e:
        raise _http_error(e)
