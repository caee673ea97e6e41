"""
Public API Router

Published rankings, competitions, athlete profiles and selections.
No authentication.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_db
from ..models import PointsBreakdown, PointsRules
from .service import PublicService
from ranking import InvalidInputError, display_points, points_breakdown

router = APIRouter(prefix="/public", tags=["Public"])


def get_public_service(db=Depends(get_db)) -> PublicService:
    return PublicService(db)


# =============================================
# Rankings
# =============================================

@router.get("/rankings")
async def list_rankings(service: PublicService = Depends(get_public_service)):
    """Published ranking snapshots, newest first"""
    return await service.list_snapshots()


@router.get("/rankings/latest")
async def latest_ranking(
    age_category: Optional[str] = Query(None, description="Cadet, Junior or Senior"),
    weight_category: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    service: PublicService = Depends(get_public_service)
):
    try:
        return await service.snapshot_rankings(None, age_category, weight_category, gender)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/rankings/{snapshot_id}")
async def snapshot_ranking(
    snapshot_id: str,
    age_category: Optional[str] = Query(None, description="Cadet, Junior or Senior"),
    weight_category: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    service: PublicService = Depends(get_public_service)
):
    """
    Ranking table

    Positions are per age category; weight and gender only narrow the view.
    """
    try:
        return await service.snapshot_rankings(snapshot_id, age_category, weight_category, gender)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================
# Athletes
# =============================================

@router.get("/athletes/{athlete_id}")
async def athlete_profile(
    athlete_id: str,
    as_of: Optional[date] = Query(None, description="Season totals on this date (default: today)"),
    service: PublicService = Depends(get_public_service)
):
    try:
        return await service.athlete_profile(athlete_id, as_of)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================
# Competitions
# =============================================

@router.get("/competitions")
async def list_competitions(
    search: Optional[str] = Query(None, description="Name, city or country"),
    year: Optional[int] = Query(None),
    service: PublicService = Depends(get_public_service)
):
    return await service.list_competitions(search=search, year=year)


@router.get("/competitions/{event_id}")
async def competition_results(event_id: str, service: PublicService = Depends(get_public_service)):
    try:
        return await service.competition_results(event_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================
# Selections
# =============================================

@router.get("/selections")
async def list_selections(service: PublicService = Depends(get_public_service)):
    return await service.list_selections()


@router.get("/selections/{selection_id}")
async def selection_detail(selection_id: str, service: PublicService = Depends(get_public_service)):
    try:
        return await service.selection_detail(selection_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================
# Points rules
# =============================================

@router.get("/points/rules", response_model=PointsRules)
async def points_rules():
    """Points table and carry-over rules"""
    return PublicService.points_rules()


@router.get("/points/calculate", response_model=PointsBreakdown)
async def calculate_points(
    coefficient: int = Query(..., description="Tournament coefficient (1-5)"),
    final_rank: int = Query(..., description="Final placing"),
    matches_won: int = Query(0, description="Matches won")
):
    """Points of a single result"""
    try:
        breakdown = points_breakdown(coefficient, final_rank, matches_won)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "coefficient": coefficient,
        "final_rank": final_rank,
        "matches_won": matches_won,
        **breakdown,
        "display_points": display_points(breakdown["points"]),
    }
