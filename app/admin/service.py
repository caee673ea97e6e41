"""
Admin Service

Writes to the federation tables. Derived values (age category,
points_earned, snapshot rows) are always computed here, never taken
from the client.
"""

from dataclasses import asdict
from datetime import date, datetime
from typing import Optional, List, Dict, Any

from loguru import logger

from database.supabase_client import FederationDB
from ranking import (
    RankingCalculator,
    age_category_from_birth_date,
    compute_points,
)
from ranking.calculator import EventRecord, parse_date


class ConflictError(ValueError):
    """Write that collides with an existing row"""


def _serialize(data: Dict[str, Any]) -> Dict[str, Any]:
    """Dates/enums to JSON-friendly values for the Supabase client"""
    out = {}
    for key, value in data.items():
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        elif hasattr(value, "value"):
            value = value.value
        out[key] = value
    return out


def _category_value(birth_date, year: int) -> Optional[str]:
    category = age_category_from_birth_date(birth_date, year)
    return category.value if category else None


# columns a PATCH may not set to null
ATHLETE_REQUIRED_FIELDS = ("first_name", "last_name", "date_of_birth", "gender",
                           "last_year_points", "hub_member", "last_year_hub_member", "is_active")
EVENT_REQUIRED_FIELDS = ("name", "start_date", "coefficient", "is_published")
SELECTION_REQUIRED_FIELDS = ("name", "event_date", "status")


def _reject_cleared(changes: Dict[str, Any], required) -> None:
    cleared = sorted(k for k in required if k in changes and changes[k] is None)
    if cleared:
        raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")


class AdminService:
    """Federation admin operations"""

    def __init__(self, db: FederationDB):
        self.db = db

    async def _require(self, getter, row_id: str, label: str) -> Dict[str, Any]:
        row = await getter(row_id)
        if not row:
            raise LookupError(f"{label} not found: {row_id}")
        return row

    # =============================================
    # Athletes
    # =============================================

    async def list_athletes(
        self,
        active_only: bool = False,
        search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        athletes = await self.db.list_athletes(active_only=active_only)
        if search:
            term = search.strip().lower()
            athletes = [
                a for a in athletes
                if term in f"{a.get('first_name', '')} {a.get('last_name', '')}".lower()
                or term in (a.get("club") or "").lower()
                or term in (a.get("license_number") or "").lower()
            ]
        return athletes

    async def get_athlete(self, athlete_id: str) -> Dict[str, Any]:
        return await self._require(self.db.get_athlete, athlete_id, "Athlete")

    async def create_athlete(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        data.pop("age_category", None)
        data["age_category"] = _category_value(data["date_of_birth"], date.today().year)

        athlete = await self.db.insert_athlete(_serialize(data))
        logger.info(f"Athlete created: {athlete['id']} ({data['first_name']} {data['last_name']})")
        return athlete

    async def update_athlete(self, athlete_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        current = await self.get_athlete(athlete_id)

        changes = dict(changes)
        changes.pop("age_category", None)
        if not changes:
            raise ValueError("No changes provided")
        _reject_cleared(changes, ATHLETE_REQUIRED_FIELDS)

        birth_date = changes.get("date_of_birth", current.get("date_of_birth"))
        changes["age_category"] = _category_value(birth_date, date.today().year)

        athlete = await self.db.update_athlete(athlete_id, _serialize(changes))
        logger.info(f"Athlete updated: {athlete_id} fields={sorted(changes)}")
        return athlete

    async def deactivate_athlete(self, athlete_id: str) -> Dict[str, Any]:
        await self.get_athlete(athlete_id)
        athlete = await self.db.update_athlete(athlete_id, {"is_active": False})
        logger.info(f"Athlete deactivated: {athlete_id}")
        return athlete

    # =============================================
    # Events
    # =============================================

    async def list_events(self, year: Optional[int] = None) -> List[Dict[str, Any]]:
        events = await self.db.list_events()
        if year:
            events = [e for e in events if e.get("year") == year]
        return events

    async def get_event(self, event_id: str) -> Dict[str, Any]:
        return await self._require(self.db.get_event, event_id, "Event")

    async def create_event(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        data["end_date"] = data.get("end_date") or data["start_date"]
        data["year"] = data["start_date"].year

        event = await self.db.insert_event(_serialize(data))
        logger.info(f"Event created: {event['id']} {data['name']} (coefficient {data['coefficient']})")
        return event

    async def update_event(self, event_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        current = await self.get_event(event_id)
        if not changes:
            raise ValueError("No changes provided")
        _reject_cleared(changes, EVENT_REQUIRED_FIELDS)

        changes = dict(changes)
        start = parse_date(changes.get("start_date", current.get("start_date")))
        end = parse_date(changes.get("end_date", current.get("end_date"))) or start
        if start and end and end < start:
            raise ValueError("end_date must not be before start_date")
        if "start_date" in changes:
            changes["year"] = start.year

        event = await self.db.update_event(event_id, _serialize(changes))

        # stored points follow the event coefficient
        if "coefficient" in changes and changes["coefficient"] != current.get("coefficient"):
            updated = await self._recompute_event_points(event_id, changes["coefficient"])
            logger.info(f"Event {event_id} coefficient changed, {updated} results recomputed")

        logger.info(f"Event updated: {event_id} fields={sorted(changes)}")
        return event

    async def _recompute_event_points(self, event_id: str, coefficient: int) -> int:
        results = await self.db.list_results(event_id=event_id)
        for result in results:
            points = compute_points(coefficient, result["final_rank"], result.get("matches_won") or 0)
            await self.db.update_result(result["id"], {"points_earned": points})
        return len(results)

    async def publish_event(self, event_id: str, published: bool = True) -> Dict[str, Any]:
        await self.get_event(event_id)
        return await self.db.update_event(event_id, {"is_published": published})

    async def delete_event(self, event_id: str) -> bool:
        await self.get_event(event_id)
        deleted = await self.db.delete_event(event_id)
        logger.info(f"Event deleted: {event_id}")
        return deleted

    # =============================================
    # Results
    # =============================================

    async def list_results(
        self,
        event_id: Optional[str] = None,
        athlete_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.db.list_results(event_id=event_id, athlete_id=athlete_id)

    async def create_result(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Result entry
        - athlete and event must exist
        - one result per athlete per event
        - points_earned from the event coefficient
        - age/weight category copied from the athlete at entry time
        """
        athlete = await self.db.get_athlete(data["athlete_id"])
        if not athlete:
            raise ValueError(f"Unknown athlete: {data['athlete_id']}")
        event = await self.db.get_event(data["event_id"])
        if not event:
            raise ValueError(f"Unknown event: {data['event_id']}")

        if await self.db.find_result(data["athlete_id"], data["event_id"]):
            logger.warning(
                f"Duplicate result rejected: athlete={data['athlete_id']} event={data['event_id']}"
            )
            raise ConflictError("This athlete already has a result for this event")

        matches_won = data.get("matches_won") or 0
        points = compute_points(EventRecord.from_row(event).coefficient, data["final_rank"], matches_won)
        event_start = parse_date(event.get("start_date"))
        season = event_start.year if event_start else date.today().year

        row = {
            "athlete_id": data["athlete_id"],
            "event_id": data["event_id"],
            "final_rank": data["final_rank"],
            "matches_won": matches_won,
            "points_earned": points,
            "age_category": _category_value(athlete.get("date_of_birth"), season),
            "weight_category": athlete.get("weight_category"),
        }
        result = await self.db.insert_result(row)
        logger.info(
            f"Result created: athlete={row['athlete_id']} event={row['event_id']} "
            f"rank={row['final_rank']} points={points}"
        )
        return result

    async def update_result(self, result_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        current = await self._require(self.db.get_result, result_id, "Result")
        if not changes:
            raise ValueError("No changes provided")

        event = await self._require(self.db.get_event, current["event_id"], "Event")
        final_rank = changes.get("final_rank", current["final_rank"])
        matches_won = changes.get("matches_won", current.get("matches_won")) or 0

        row = {
            "final_rank": final_rank,
            "matches_won": matches_won,
            "points_earned": compute_points(EventRecord.from_row(event).coefficient, final_rank, matches_won),
        }
        result = await self.db.update_result(result_id, row)
        logger.info(f"Result updated: {result_id} points={row['points_earned']}")
        return result

    async def delete_result(self, result_id: str) -> bool:
        await self._require(self.db.get_result, result_id, "Result")
        deleted = await self.db.delete_result(result_id)
        logger.info(f"Result deleted: {result_id}")
        return deleted

    # =============================================
    # Ranking snapshots
    # =============================================

    async def _load_calculator(self) -> RankingCalculator:
        athletes = await self.db.list_athletes()
        events = await self.db.list_events()
        results = await self.db.list_results()
        return RankingCalculator(athletes, events, results)

    async def list_snapshots(self) -> List[Dict[str, Any]]:
        return await self.db.list_snapshots()

    async def get_snapshot(self, snapshot_id: str) -> Dict[str, Any]:
        snapshot = await self._require(self.db.get_snapshot, snapshot_id, "Snapshot")
        rows = await self.db.get_snapshot_rows(snapshot_id)
        return {**snapshot, "rows": rows}

    async def generate_snapshot(
        self,
        snapshot_date: date,
        title: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build and store a ranking snapshot (draft)

        The header row is written first; if the ranking rows cannot be
        stored the header is removed again and the error re-raised.
        """
        calculator = await self._load_calculator()
        rows = calculator.build_snapshot(snapshot_date)

        header = await self.db.insert_snapshot({
            "snapshot_date": snapshot_date.isoformat(),
            "snapshot_month": snapshot_date.month,
            "snapshot_year": snapshot_date.year,
            "title": title or f"Ranking {snapshot_date.month:02d}/{snapshot_date.year}",
            "description": description,
            "is_published": False,
        })
        snapshot_id = header["id"]

        try:
            inserted = await self.db.insert_snapshot_rows(
                [{**row.to_row(), "snapshot_id": snapshot_id} for row in rows]
            )
        except Exception as e:
            logger.error(f"Snapshot rows failed, removing snapshot {snapshot_id}: {e}")
            await self.db.delete_snapshot(snapshot_id)
            raise

        logger.info(f"Snapshot generated: {snapshot_id} ({snapshot_date}) {inserted} athletes")
        return {**header, "athlete_count": inserted}

    async def publish_snapshot(self, snapshot_id: str, published: bool = True) -> Dict[str, Any]:
        await self._require(self.db.get_snapshot, snapshot_id, "Snapshot")
        snapshot = await self.db.publish_snapshot(snapshot_id, published)
        logger.info(f"Snapshot {'published' if published else 'unpublished'}: {snapshot_id}")
        return snapshot

    async def delete_snapshot(self, snapshot_id: str) -> bool:
        snapshot = await self._require(self.db.get_snapshot, snapshot_id, "Snapshot")
        if snapshot.get("is_published"):
            raise ConflictError("Unpublish the snapshot before deleting it")
        return await self.db.delete_snapshot(snapshot_id)

    # =============================================
    # Selections
    # =============================================

    async def list_selection_events(self) -> List[Dict[str, Any]]:
        return await self.db.list_selection_events()

    async def get_selection_event(self, selection_id: str) -> Dict[str, Any]:
        selection = await self._require(self.db.get_selection_event, selection_id, "Selection event")
        decisions = await self.db.list_decisions(selection_id)
        return {**selection, "decisions": decisions}

    async def create_selection_event(self, data: Dict[str, Any]) -> Dict[str, Any]:
        selection = await self.db.insert_selection_event(_serialize(data))
        logger.info(f"Selection event created: {selection['id']} {data['name']}")
        return selection

    async def update_selection_event(self, selection_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        await self._require(self.db.get_selection_event, selection_id, "Selection event")
        if not changes:
            raise ValueError("No changes provided")
        _reject_cleared(changes, SELECTION_REQUIRED_FIELDS)
        return await self.db.update_selection_event(selection_id, _serialize(changes))

    async def publish_selection_event(self, selection_id: str, published: bool = True) -> Dict[str, Any]:
        await self._require(self.db.get_selection_event, selection_id, "Selection event")
        return await self.db.update_selection_event(selection_id, {
            "is_published": published,
            "published_at": datetime.now().isoformat() if published else None,
        })

    async def delete_selection_event(self, selection_id: str) -> bool:
        await self._require(self.db.get_selection_event, selection_id, "Selection event")
        deleted = await self.db.delete_selection_event(selection_id)
        logger.info(f"Selection event deleted: {selection_id}")
        return deleted

    async def add_decision(self, selection_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        await self._require(self.db.get_selection_event, selection_id, "Selection event")
        if not await self.db.get_athlete(data["athlete_id"]):
            raise ValueError(f"Unknown athlete: {data['athlete_id']}")
        if await self.db.find_decision(selection_id, data["athlete_id"]):
            raise ConflictError("Athlete is already part of this selection")

        decision = await self.db.insert_decision(_serialize({
            "selection_event_id": selection_id,
            "athlete_id": data["athlete_id"],
            "decision_status": data.get("decision_status") or "selected",
            "notes": data.get("notes"),
        }))
        logger.info(
            f"Selection decision added: selection={selection_id} athlete={data['athlete_id']} "
            f"status={decision['decision_status']}"
        )
        return decision

    async def update_decision(self, decision_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        await self._require(self.db.get_decision, decision_id, "Decision")
        return await self.db.update_decision(decision_id, _serialize(changes))

    async def remove_decision(self, decision_id: str) -> bool:
        await self._require(self.db.get_decision, decision_id, "Decision")
        return await self.db.delete_decision(decision_id)

    # =============================================
    # Points overview / stats
    # =============================================

    async def points_overview(
        self,
        age_category: Optional[str] = None,
        weight_category: Optional[str] = None,
        gender: Optional[str] = None,
        club: Optional[str] = None,
        year: Optional[int] = None,
        coefficient: Optional[int] = None,
        search: Optional[str] = None,
        as_of: Optional[date] = None
    ) -> Dict[str, Any]:
        """Per-athlete totals with the filter values present in the data"""
        calculator = await self._load_calculator()
        summaries = calculator.summarize_athletes(
            age_category=age_category,
            weight_category=weight_category,
            gender=gender,
            club=club,
            year=year,
            coefficient=coefficient,
            search=search,
            as_of=as_of,
        )

        athletes = list(calculator.athletes.values())
        years = {e.start_date.year for e in calculator.events.values() if e.start_date}

        return {
            "athletes": [asdict(s) for s in summaries],
            "total_points": round(sum(s.total_points for s in summaries), 2),
            "filters": {
                "clubs": sorted({a.club for a in athletes if a.club}),
                "weight_categories": sorted({a.weight_category for a in athletes if a.weight_category}),
                "genders": sorted({a.gender for a in athletes if a.gender}),
                "years": sorted(years, reverse=True),
                "coefficients": sorted({e.coefficient for e in calculator.events.values()}),
            },
        }

    async def get_stats(self) -> Dict[str, Any]:
        stats = await self.db.get_stats()
        return {**stats, "generated_at": datetime.now()}
