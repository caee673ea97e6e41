"""
Public Site Service

Read-only views for the public site: published rankings, competitions,
athlete profiles and team selections.
"""

from collections import defaultdict
from datetime import date
from typing import Optional, List, Dict, Any

from database.supabase_client import FederationDB
from ranking import (
    RankingCalculator,
    filter_rankings,
    points_allocation_table,
    ranking_filter_options,
    HUB_BONUS_POINTS,
)
from ranking import calculator as rules


class PublicService:
    """Published data only"""

    def __init__(self, db: FederationDB):
        self.db = db

    # =============================================
    # Rankings
    # =============================================

    async def list_snapshots(self) -> List[Dict[str, Any]]:
        return await self.db.list_snapshots(published_only=True)

    async def _published_snapshot(self, snapshot_id: str) -> Dict[str, Any]:
        snapshot = await self.db.get_snapshot(snapshot_id)
        if not snapshot or not snapshot.get("is_published"):
            raise LookupError(f"Ranking not found: {snapshot_id}")
        return snapshot

    async def latest_snapshot(self) -> Dict[str, Any]:
        snapshots = await self.list_snapshots()
        if not snapshots:
            raise LookupError("No published ranking yet")
        return snapshots[0]

    async def snapshot_rankings(
        self,
        snapshot_id: Optional[str] = None,
        age_category: Optional[str] = None,
        weight_category: Optional[str] = None,
        gender: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Ranking table of a published snapshot

        Without an age category the first of Cadet, Junior, Senior present
        in the snapshot is shown. Weight choices follow the selected category.
        """
        if snapshot_id:
            snapshot = await self._published_snapshot(snapshot_id)
        else:
            snapshot = await self.latest_snapshot()

        rows = await self.db.get_snapshot_rows(snapshot["id"])
        options = ranking_filter_options(rows, age_category)
        selected = options["selected_age_category"]

        return {
            "snapshot": snapshot,
            "filters": options,
            "age_category": selected,
            "weight_category": weight_category,
            "gender": gender,
            "rankings": filter_rankings(rows, selected, weight_category, gender),
        }

    # =============================================
    # Athletes
    # =============================================

    async def athlete_profile(self, athlete_id: str, as_of: Optional[date] = None) -> Dict[str, Any]:
        """
        Athlete page: results history, season points and latest ranking

        Season points count every result up to `as_of`, as a snapshot
        generated on that date does; the history lists published
        competitions only.
        """
        athlete = await self.db.get_athlete(athlete_id)
        if not athlete or athlete.get("is_active") is False:
            raise LookupError(f"Athlete not found: {athlete_id}")

        as_of = as_of or date.today()
        events = await self.db.list_events()
        calculator = RankingCalculator(
            [athlete], events, await self.db.list_results(athlete_id=athlete_id)
        )
        record = calculator.athletes[str(athlete["id"])]
        season = calculator.season_row(record.id, as_of)

        # unpublished competitions stay hidden
        published = {str(e["id"]) for e in events if e.get("is_published")}
        scored = [
            s for s in calculator.scored_results(athlete_id=record.id)
            if s.event.id in published
        ]

        points_by_year: Dict[int, float] = defaultdict(float)
        for s in scored:
            if s.year is not None:
                points_by_year[s.year] = round(points_by_year[s.year] + s.points, 2)

        return {
            "athlete": {
                "id": record.id,
                "first_name": record.first_name,
                "last_name": record.last_name,
                "club": record.club,
                "gender": record.gender,
                "weight_category": record.weight_category,
                "age_category": season.age_category if season else None,
                "birth_year": record.date_of_birth.year if record.date_of_birth else None,
            },
            "season": {
                "year": as_of.year,
                "as_of": as_of.isoformat(),
                **({
                    "current_year_points": season.current_year_points,
                    "last_year_points": season.last_year_points,
                    "entered_new_age_category": season.entered_new_age_category,
                    "carried_over_points": season.carried_over_points,
                    "hub_bonus": season.hub_bonus,
                    "total_points": season.total_points,
                } if season else {}),
            },
            "points_by_year": dict(sorted(points_by_year.items(), reverse=True)),
            "results": [s.to_dict() for s in scored],
            "ranking": await self._latest_ranking_entry(record.id),
        }

    async def _latest_ranking_entry(self, athlete_id: str) -> Optional[Dict[str, Any]]:
        snapshots = await self.list_snapshots()
        if not snapshots:
            return None
        rows = await self.db.get_snapshot_rows(snapshots[0]["id"])
        for row in rows:
            if str(row.get("athlete_id")) == athlete_id:
                return {**row, "snapshot_date": snapshots[0].get("snapshot_date")}
        return None

    # =============================================
    # Competitions
    # =============================================

    async def list_competitions(
        self,
        search: Optional[str] = None,
        year: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        events = await self.db.list_events(published_only=True)
        if year:
            events = [e for e in events if e.get("year") == year]
        if search:
            term = search.strip().lower()
            events = [
                e for e in events
                if term in (e.get("name") or "").lower()
                or term in (e.get("city") or "").lower()
                or term in (e.get("country") or "").lower()
            ]
        return events

    async def competition_results(self, event_id: str) -> Dict[str, Any]:
        event = await self.db.get_event(event_id)
        if not event or not event.get("is_published"):
            raise LookupError(f"Competition not found: {event_id}")

        results = await self.db.list_results(event_id=event_id)
        athletes = {str(a["id"]): a for a in await self.db.list_athletes()}

        rows = []
        for result in sorted(results, key=lambda r: r.get("final_rank") or 0):
            athlete = athletes.get(str(result["athlete_id"]), {})
            rows.append({
                **result,
                "athlete_name": f"{athlete.get('first_name', '')} {athlete.get('last_name', '')}".strip(),
                "club": athlete.get("club"),
            })

        return {"event": event, "results": rows}

    # =============================================
    # Selections
    # =============================================

    async def list_selections(self) -> List[Dict[str, Any]]:
        selections = await self.db.list_selection_events(published_only=True)
        out = []
        for selection in selections:
            decisions = await self.db.list_decisions(selection["id"])
            counts = defaultdict(int)
            for d in decisions:
                counts[d.get("decision_status")] += 1
            out.append({
                **selection,
                "selected_count": counts["selected"],
                "reserve_count": counts["reserve"],
                "declined_count": counts["declined"],
            })
        return out

    async def selection_detail(self, selection_id: str) -> Dict[str, Any]:
        selection = await self.db.get_selection_event(selection_id)
        if not selection or not selection.get("is_published"):
            raise LookupError(f"Selection not found: {selection_id}")

        decisions = await self.db.list_decisions(selection_id)
        athletes = {str(a["id"]): a for a in await self.db.list_athletes()}

        grouped: Dict[str, List[Dict[str, Any]]] = {"selected": [], "reserve": [], "declined": []}
        for decision in decisions:
            athlete = athletes.get(str(decision["athlete_id"]), {})
            grouped.setdefault(decision.get("decision_status"), []).append({
                **decision,
                "athlete_name": f"{athlete.get('first_name', '')} {athlete.get('last_name', '')}".strip(),
                "club": athlete.get("club"),
                "weight_category": athlete.get("weight_category"),
            })

        return {"selection": selection, "decisions": grouped}

    # =============================================
    # Rules
    # =============================================

    @staticmethod
    def points_rules() -> Dict[str, Any]:
        return {
            "allocation": points_allocation_table(),
            "medal_min_wins": rules.MEDAL_MIN_WINS,
            "carry_over_rate": rules.CARRY_OVER_RATE,
            "new_category_carry_over_rate": rules.NEW_CATEGORY_CARRY_OVER_RATE,
            "qualifying_min_points": rules.QUALIFYING_MIN_POINTS,
            "qualifying_min_coefficient": rules.QUALIFYING_MIN_COEFFICIENT,
            "hub_bonus_points": HUB_BONUS_POINTS,
        }
