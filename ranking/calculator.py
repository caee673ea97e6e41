"""
Federation ranking calculation module

Points rules used for national team selection
- tournament coefficient (1-5) x placement base points
- per-win bonus, awarded whether or not a medal counts
- medal gate: placement points only count after at least two wins
- year-over-year carry-over (40%, or 20% after an age category change)
- age category derived from the birth year, never stored by hand
"""
import json
from collections import defaultdict
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Dict, Any, Optional, Iterable, Mapping, Union

from loguru import logger


# =====================================================
# Constants
# =====================================================

# Placement base points by tournament coefficient and final rank
PLACEMENT_POINTS = {
    1: {1: 5, 2: 3, 3: 1},
    2: {1: 10, 2: 6, 3: 3},
    3: {1: 20, 2: 12, 3: 6},
    4: {1: 30, 2: 18, 3: 10},
    5: {1: 40, 2: 34, 3: 26},
}

# Bonus per match won, by tournament coefficient
WIN_BONUS_POINTS = {
    1: 0,
    2: 1,
    3: 2,
    4: 3,
    5: 5,
}

# A medal only counts after this many wins
MEDAL_MIN_WINS = 2

# Carry-over of last season's points
CARRY_OVER_RATE = 0.40
NEW_CATEGORY_CARRY_OVER_RATE = 0.20

# Gate for carry-over after an age category change:
# at least 5 points in a coefficient 2+ tournament during the current year
QUALIFYING_MIN_POINTS = 5
QUALIFYING_MIN_COEFFICIENT = 2

# Flat bonus for HUB development program members
HUB_BONUS_POINTS = 5


class AgeCategory(str, Enum):
    """Ranking age category"""
    CADET = "Cadet"
    JUNIOR = "Junior"
    SENIOR = "Senior"


# Display and default-selection order
AGE_CATEGORY_ORDER = [AgeCategory.CADET, AgeCategory.JUNIOR, AgeCategory.SENIOR]

# Age reached during the season: (min, max), max None = open
AGE_CATEGORY_AGES = {
    AgeCategory.CADET: (12, 14),
    AgeCategory.JUNIOR: (15, 17),
    AgeCategory.SENIOR: (18, None),
}


class InvalidInputError(ValueError):
    """Points/ranking input that breaks the calculator contract"""


# =====================================================
# Data classes
# =====================================================

@dataclass
class AthleteRecord:
    """Athlete as consumed by the calculator"""
    id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    gender: str = ""
    weight_category: str = ""
    club: str = ""
    last_year_points: float = 0.0
    hub_member: bool = False
    last_year_hub_member: bool = False
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AthleteRecord":
        """Build from an `athletes` table row"""
        return cls(
            id=str(row["id"]),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            date_of_birth=parse_date(row.get("date_of_birth")),
            gender=row.get("gender") or "",
            weight_category=row.get("weight_category") or "",
            club=row.get("club") or "",
            last_year_points=float(row.get("last_year_points") or 0),
            hub_member=bool(row.get("hub_member")),
            last_year_hub_member=bool(row.get("last_year_hub_member")),
            is_active=row.get("is_active", True) is not False,
        )


@dataclass
class EventRecord:
    """Competition as consumed by the calculator"""
    id: str
    name: str
    start_date: Optional[date]
    coefficient: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EventRecord":
        """Build from an `events` table row"""
        coefficient = row.get("coefficient")
        # numeric columns may come back as 3.0
        if isinstance(coefficient, float) and coefficient.is_integer():
            coefficient = int(coefficient)
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            start_date=parse_date(row.get("start_date") or row.get("event_date")),
            coefficient=coefficient,
        )


@dataclass
class ResultRecord:
    """One athlete's placing at one event"""
    id: str
    athlete_id: str
    event_id: str
    final_rank: int
    matches_won: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ResultRecord":
        """Build from a `results` table row (missing wins count as 0)"""
        return cls(
            id=str(row.get("id", "")),
            athlete_id=str(row["athlete_id"]),
            event_id=str(row["event_id"]),
            final_rank=row.get("final_rank"),
            matches_won=row.get("matches_won") or 0,
        )


@dataclass
class ScoredResult:
    """Result with its computed points"""
    result: ResultRecord
    event: EventRecord
    points: float

    @property
    def year(self) -> Optional[int]:
        return self.event.start_date.year if self.event.start_date else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result_id": self.result.id,
            "event_id": self.event.id,
            "event_name": self.event.name,
            "start_date": self.event.start_date.isoformat() if self.event.start_date else None,
            "coefficient": self.event.coefficient,
            "final_rank": self.result.final_rank,
            "matches_won": self.result.matches_won,
            "points": self.points,
        }


@dataclass
class SnapshotRow:
    """One ranked athlete inside a ranking snapshot"""
    athlete_id: str
    athlete_name: str
    age_category: str
    weight_category: str
    gender: str
    club: str
    current_year_points: float
    last_year_points: float
    carried_over_points: float
    total_points: float
    entered_new_age_category: bool = False
    hub_bonus: float = 0.0
    ranking_position: int = 0

    def to_row(self) -> Dict[str, Any]:
        """Row for the `ranking_snapshot_data` table"""
        return asdict(self)


@dataclass
class AthletePointsSummary:
    """Per-athlete aggregate for the admin points overview"""
    athlete_id: str
    athlete_name: str
    club: str
    gender: str
    age_category: Optional[str]
    weight_category: str
    current_year_points: float = 0.0
    carried_over_points: float = 0.0
    total_points: float = 0.0
    competitions_count: int = 0
    best_result: float = 0.0
    gold_count: int = 0
    silver_count: int = 0
    bronze_count: int = 0
    last_competition_date: Optional[str] = None
    results: List[Dict[str, Any]] = field(default_factory=list)


# =====================================================
# Helpers
# =====================================================

def parse_date(value: Union[date, str, None]) -> Optional[date]:
    """Accept a date, datetime or ISO string; empty values give None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError(f"Invalid date: {value!r}")


def _require_int(name: str, value: Any, minimum: int) -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidInputError(f"{name} must be >= {minimum}, got {value}")
    return value


def _require_coefficient(coefficient: Any) -> int:
    _require_int("coefficient", coefficient, 1)
    if coefficient not in PLACEMENT_POINTS:
        raise InvalidInputError(f"coefficient must be between 1 and 5, got {coefficient}")
    return coefficient


def _require_points(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value}")
    return float(value)


def display_points(points: Optional[float]) -> int:
    """Round half-up for presentation; stored values keep their precision"""
    if points is None:
        return 0
    return int(Decimal(str(points)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =====================================================
# Points calculation
# =====================================================

def points_breakdown(
    coefficient: int,
    final_rank: int,
    matches_won: Optional[int] = 0
) -> Dict[str, Any]:
    """
    Points of a single result, split into placement and win bonus.

    Args:
        coefficient: tournament coefficient (1-5)
        final_rank: final placing (1 = best)
        matches_won: matches won at the tournament; None counts as 0

    Returns:
        {"base_points", "bonus_points", "medal_counted", "points"}

    Raises:
        InvalidInputError: coefficient outside 1-5, rank < 1, wins < 0
            or non-integer values
    """
    if matches_won is None:
        matches_won = 0
    _require_coefficient(coefficient)
    _require_int("final_rank", final_rank, 1)
    _require_int("matches_won", matches_won, 0)

    placement = PLACEMENT_POINTS[coefficient].get(final_rank, 0)
    medal_counted = placement > 0 and matches_won >= MEDAL_MIN_WINS
    base_points = placement if medal_counted else 0
    bonus_points = matches_won * WIN_BONUS_POINTS[coefficient]

    return {
        "base_points": float(base_points),
        "bonus_points": float(bonus_points),
        "medal_counted": medal_counted,
        "points": float(base_points + bonus_points),
    }


def compute_points(
    coefficient: int,
    final_rank: int,
    matches_won: Optional[int] = 0
) -> float:
    """
    Points earned by one result.

    Formula: placement points (top 3, medal gate) + wins x per-win bonus
    """
    return points_breakdown(coefficient, final_rank, matches_won)["points"]


def points_allocation_table() -> List[Dict[str, Any]]:
    """Points table by coefficient, as published with the selection criteria"""
    return [
        {
            "coefficient": coefficient,
            "first": PLACEMENT_POINTS[coefficient][1],
            "second": PLACEMENT_POINTS[coefficient][2],
            "third": PLACEMENT_POINTS[coefficient][3],
            "per_win_bonus": WIN_BONUS_POINTS[coefficient],
        }
        for coefficient in sorted(PLACEMENT_POINTS)
    ]


# =====================================================
# Carry-over
# =====================================================

def compute_total_points(
    current_year_points: float,
    last_year_points: Optional[float],
    entered_new_age_category: bool,
    earned_qualifying_points: bool,
    *,
    hub_member: bool = False,
    last_year_hub_member: bool = False
) -> float:
    """
    Season total with last year's carry-over.

    - same age category: current + 40% of last year
    - new age category: 20% of last year, only once the athlete earned
      5+ points in a coefficient 2+ tournament this year, otherwise nothing
    - last year's HUB bonus is removed before the carry-over is applied;
      this year's HUB members get a flat +5

    A missing last-year value counts as 0.
    """
    current_year_points = _require_points("current_year_points", current_year_points)
    if last_year_points is None:
        last_year_points = 0.0
    last_year_points = _require_points("last_year_points", last_year_points)

    carried_base = last_year_points
    if last_year_hub_member:
        carried_base = max(carried_base - HUB_BONUS_POINTS, 0.0)

    if not entered_new_age_category:
        carried = carried_base * CARRY_OVER_RATE
    elif earned_qualifying_points:
        carried = carried_base * NEW_CATEGORY_CARRY_OVER_RATE
    else:
        carried = 0.0

    total = current_year_points + carried
    if hub_member:
        total += HUB_BONUS_POINTS
    return round(total, 2)


def carried_over_points(
    last_year_points: Optional[float],
    entered_new_age_category: bool,
    earned_qualifying_points: bool,
    last_year_hub_member: bool = False
) -> float:
    """Carry-over contribution alone (total with no current points, no HUB)"""
    return compute_total_points(
        0.0,
        last_year_points,
        entered_new_age_category,
        earned_qualifying_points,
        last_year_hub_member=last_year_hub_member,
    )


def has_qualifying_points(scored_results: Iterable[ScoredResult]) -> bool:
    """True if any result earned 5+ points in a coefficient 2+ tournament"""
    return any(
        s.event.coefficient >= QUALIFYING_MIN_COEFFICIENT and s.points >= QUALIFYING_MIN_POINTS
        for s in scored_results
    )


# =====================================================
# Age category
# =====================================================

def age_category_from_birth_date(
    birth_date: Union[date, str, None],
    as_of_year: int
) -> Optional[AgeCategory]:
    """
    Age category for a season, from the birth year.

    Season 2026: Cadet 2012-2014, Junior 2009-2011, Senior 2008 and older.
    Athletes younger than Cadet age have no ranking category (None).
    """
    birth = parse_date(birth_date)
    if birth is None:
        return None
    age = as_of_year - birth.year

    for category in AGE_CATEGORY_ORDER:
        low, high = AGE_CATEGORY_AGES[category]
        if age >= low and (high is None or age <= high):
            return category
    return None


def entered_new_age_category(birth_date: Union[date, str, None], season_year: int) -> bool:
    """True when the athlete's category differs from the previous season's"""
    current = age_category_from_birth_date(birth_date, season_year)
    previous = age_category_from_birth_date(birth_date, season_year - 1)
    return current is not None and previous is not None and current != previous


def age_category_sort_key(category: Optional[str]) -> int:
    """Cadet < Junior < Senior, unknown values last"""
    values = [c.value for c in AGE_CATEGORY_ORDER]
    return values.index(category) if category in values else len(values)


def default_age_category(categories: Iterable[str]) -> str:
    """Category shown first: Cadet > Junior > Senior > first available"""
    present = [c for c in categories if c]
    for category in AGE_CATEGORY_ORDER:
        if category.value in present:
            return category.value
    return present[0] if present else AgeCategory.SENIOR.value


# =====================================================
# Ranking filters (public table)
# =====================================================

def filter_rankings(
    rows: Iterable[Mapping[str, Any]],
    age_category: str,
    weight_category: Optional[str] = None,
    gender: Optional[str] = None
) -> List[Mapping[str, Any]]:
    """
    Rows of one age category, optionally narrowed to a weight and gender.

    Weight and gender are display filters only: each row keeps the
    ranking_position it got inside its age category.
    """
    if not age_category:
        raise InvalidInputError("age_category is required")

    filtered = [r for r in rows if r.get("age_category") == age_category]
    if weight_category and weight_category != "all":
        filtered = [r for r in filtered if r.get("weight_category") == weight_category]
    if gender and gender != "all":
        filtered = [r for r in filtered if r.get("gender") == gender]

    return sorted(filtered, key=lambda r: r.get("ranking_position") or 0)


def ranking_filter_options(
    rows: Iterable[Mapping[str, Any]],
    age_category: Optional[str] = None
) -> Dict[str, List[str]]:
    """Available filter values; weights are limited to the chosen category"""
    rows = list(rows)
    categories = sorted(
        {r.get("age_category") for r in rows if r.get("age_category")},
        key=age_category_sort_key,
    )
    selected = age_category or default_age_category(categories)
    weights = sorted({
        r.get("weight_category") for r in rows
        if r.get("age_category") == selected and r.get("weight_category")
    })
    genders = sorted({r.get("gender") for r in rows if r.get("gender")})

    return {
        "age_categories": categories,
        "selected_age_category": selected,
        "weight_categories": weights,
        "genders": genders,
    }


# =====================================================
# Ranking calculator
# =====================================================

class RankingCalculator:
    """Aggregates results into carried-over totals and ranking snapshots"""

    def __init__(
        self,
        athletes: Optional[Iterable[Mapping[str, Any]]] = None,
        events: Optional[Iterable[Mapping[str, Any]]] = None,
        results: Optional[Iterable[Mapping[str, Any]]] = None
    ):
        self.athletes: Dict[str, AthleteRecord] = {}
        self.events: Dict[str, EventRecord] = {}
        self.results: List[ResultRecord] = []

        if athletes is not None or events is not None or results is not None:
            self.load_from_rows(athletes or [], events or [], results or [])

    def load_data(self, data_file: str):
        """Load a JSON export: {"athletes": [...], "events": [...], "results": [...]}"""
        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        self.load_from_rows(
            data.get("athletes", []),
            data.get("events", []),
            data.get("results", []),
        )

    def load_from_rows(
        self,
        athletes: Iterable[Mapping[str, Any]],
        events: Iterable[Mapping[str, Any]],
        results: Iterable[Mapping[str, Any]]
    ):
        """Load database rows (as returned by Supabase)"""
        self.athletes = {a.id: a for a in (AthleteRecord.from_row(r) for r in athletes)}
        self.events = {e.id: e for e in (EventRecord.from_row(r) for r in events)}

        # one result per (athlete, event); later duplicates are ignored
        self.results = []
        seen = set()
        for row in results:
            result = ResultRecord.from_row(row)
            key = (result.athlete_id, result.event_id)
            if key in seen:
                logger.warning(
                    f"Duplicate result ignored: athlete={result.athlete_id} event={result.event_id}"
                )
                continue
            seen.add(key)
            self.results.append(result)

        logger.info(
            f"Ranking data loaded: {len(self.athletes)} athletes, "
            f"{len(self.events)} events, {len(self.results)} results"
        )

    def scored_results(
        self,
        athlete_id: Optional[str] = None,
        year: Optional[int] = None,
        as_of: Optional[date] = None
    ) -> List[ScoredResult]:
        """
        Results with computed points, newest event first.

        Args:
            athlete_id: only this athlete's results
            year: only events starting in this year
            as_of: only events starting on or before this date
        """
        scored = []
        for result in self.results:
            if athlete_id and result.athlete_id != athlete_id:
                continue
            event = self.events.get(result.event_id)
            if event is None:
                logger.warning(f"Result {result.id} references unknown event {result.event_id}")
                continue
            if year is not None or as_of is not None:
                if event.start_date is None:
                    continue
                if year is not None and event.start_date.year != year:
                    continue
                if as_of is not None and event.start_date > as_of:
                    continue

            points = compute_points(event.coefficient, result.final_rank, result.matches_won)
            scored.append(ScoredResult(result=result, event=event, points=points))

        scored.sort(key=lambda s: s.event.start_date or date.min, reverse=True)
        return scored

    def build_snapshot(self, as_of: date) -> List[SnapshotRow]:
        """
        Ranked rows for a snapshot taken on `as_of`.

        Season = as_of.year. Active athletes without a ranking age category
        or with a zero total are left out. Rows are grouped by age category
        (Cadet, Junior, Senior) and ranked inside each group by total points;
        ties go to more current-year points, then last name, first name, id.
        """
        season = as_of.year
        by_athlete: Dict[str, List[ScoredResult]] = defaultdict(list)
        for s in self.scored_results(year=season, as_of=as_of):
            by_athlete[s.result.athlete_id].append(s)

        rows: List[SnapshotRow] = []
        for athlete in self.athletes.values():
            if not athlete.is_active:
                continue
            row = self._season_row(athlete, by_athlete.get(athlete.id, []), season)
            if row is None or row.total_points <= 0:
                continue
            rows.append(row)

        return self._rank_partitions(rows)

    def season_row(self, athlete_id: str, as_of: date) -> Optional[SnapshotRow]:
        """
        Unranked season row of one athlete on `as_of`, computed exactly as
        `build_snapshot` computes it. None when the athlete has no ranking
        age category that season.
        """
        athlete = self.athletes.get(athlete_id)
        if athlete is None:
            raise LookupError(f"Unknown athlete: {athlete_id}")
        season_results = self.scored_results(athlete_id=athlete_id, year=as_of.year, as_of=as_of)
        return self._season_row(athlete, season_results, as_of.year)

    def _season_row(
        self,
        athlete: AthleteRecord,
        season_results: List[ScoredResult],
        season: int
    ) -> Optional[SnapshotRow]:
        category = age_category_from_birth_date(athlete.date_of_birth, season)
        if category is None:
            return None

        current = round(sum(s.points for s in season_results), 2)
        new_category = entered_new_age_category(athlete.date_of_birth, season)
        qualifying = has_qualifying_points(season_results)

        return SnapshotRow(
            athlete_id=athlete.id,
            athlete_name=athlete.full_name,
            age_category=category.value,
            weight_category=athlete.weight_category,
            gender=athlete.gender,
            club=athlete.club,
            current_year_points=current,
            last_year_points=athlete.last_year_points,
            carried_over_points=carried_over_points(
                athlete.last_year_points,
                new_category,
                qualifying,
                athlete.last_year_hub_member,
            ),
            total_points=compute_total_points(
                current,
                athlete.last_year_points,
                new_category,
                qualifying,
                hub_member=athlete.hub_member,
                last_year_hub_member=athlete.last_year_hub_member,
            ),
            entered_new_age_category=new_category,
            hub_bonus=float(HUB_BONUS_POINTS) if athlete.hub_member else 0.0,
        )

    def _rank_partitions(self, rows: List[SnapshotRow]) -> List[SnapshotRow]:
        partitions: Dict[str, List[SnapshotRow]] = defaultdict(list)
        for row in rows:
            partitions[row.age_category].append(row)

        ranked: List[SnapshotRow] = []
        for category in sorted(partitions, key=age_category_sort_key):
            group = partitions[category]
            group.sort(key=lambda r: (
                -r.total_points,
                -r.current_year_points,
                self.athletes[r.athlete_id].last_name.lower(),
                self.athletes[r.athlete_id].first_name.lower(),
                r.athlete_id,
            ))
            for position, row in enumerate(group, 1):
                row.ranking_position = position
            ranked.extend(group)
            logger.info(f"{category}: {len(group)} athletes ranked")

        return ranked

    def summarize_athletes(
        self,
        age_category: Optional[str] = None,
        weight_category: Optional[str] = None,
        gender: Optional[str] = None,
        club: Optional[str] = None,
        year: Optional[int] = None,
        coefficient: Optional[int] = None,
        search: Optional[str] = None,
        as_of: Optional[date] = None
    ) -> List[AthletePointsSummary]:
        """
        Points overview per athlete (admin view).

        Only athletes with at least one matching result are returned,
        sorted by total points descending. `current_year_points` sums the
        matching results; carry-over and HUB bonus follow the season rules,
        so `total_points` equals a snapshot total when no event filter is set.

        Args:
            age_category: athlete's category in the season
            weight_category, gender, club: athlete filters
            year: event start year; also the season (default: as_of year, else today)
            coefficient: event coefficient
            search: matched against athlete name, club and event name
            as_of: ignore events starting after this date
        """
        season = year or (as_of.year if as_of else date.today().year)
        term = (search or "").strip().lower()
        summaries: Dict[str, AthletePointsSummary] = {}
        last_dates: Dict[str, date] = {}

        for s in self.scored_results(year=year, as_of=as_of):
            athlete = self.athletes.get(s.result.athlete_id)
            if athlete is None or not athlete.is_active:
                continue
            category = age_category_from_birth_date(athlete.date_of_birth, season)
            category_value = category.value if category else None

            if age_category and category_value != age_category:
                continue
            if weight_category and athlete.weight_category != weight_category:
                continue
            if gender and athlete.gender != gender:
                continue
            if club and athlete.club != club:
                continue
            if coefficient and s.event.coefficient != coefficient:
                continue
            if term and not (
                term in athlete.full_name.lower()
                or term in athlete.club.lower()
                or term in s.event.name.lower()
            ):
                continue

            summary = summaries.get(athlete.id)
            if summary is None:
                summary = summaries[athlete.id] = AthletePointsSummary(
                    athlete_id=athlete.id,
                    athlete_name=athlete.full_name,
                    club=athlete.club,
                    gender=athlete.gender,
                    age_category=category_value,
                    weight_category=athlete.weight_category,
                )

            summary.current_year_points = round(summary.current_year_points + s.points, 2)
            summary.competitions_count += 1
            summary.best_result = max(summary.best_result, s.points)

            breakdown = points_breakdown(s.event.coefficient, s.result.final_rank, s.result.matches_won)
            if breakdown["medal_counted"]:
                if s.result.final_rank == 1:
                    summary.gold_count += 1
                elif s.result.final_rank == 2:
                    summary.silver_count += 1
                elif s.result.final_rank == 3:
                    summary.bronze_count += 1

            if s.event.start_date and (
                athlete.id not in last_dates or s.event.start_date > last_dates[athlete.id]
            ):
                last_dates[athlete.id] = s.event.start_date
            summary.results.append(s.to_dict())

        season_end = min(as_of, date(season, 12, 31)) if as_of else date(season, 12, 31)
        for athlete_id, summary in summaries.items():
            athlete = self.athletes[athlete_id]
            new_category = entered_new_age_category(athlete.date_of_birth, season)
            qualifying = has_qualifying_points(
                self.scored_results(athlete_id=athlete_id, year=season, as_of=season_end)
            )
            summary.carried_over_points = carried_over_points(
                athlete.last_year_points, new_category, qualifying, athlete.last_year_hub_member
            )
            summary.total_points = compute_total_points(
                summary.current_year_points,
                athlete.last_year_points,
                new_category,
                qualifying,
                hub_member=athlete.hub_member,
                last_year_hub_member=athlete.last_year_hub_member,
            )
            if athlete_id in last_dates:
                summary.last_competition_date = last_dates[athlete_id].isoformat()

        return sorted(
            summaries.values(),
            key=lambda x: (-x.total_points, x.athlete_name.lower(), x.athlete_id)
        )

    def export_snapshot(self, output_file: str, as_of: date, title: Optional[str] = None):
        """Write a snapshot to JSON (offline mode, no database needed)"""
        rows = self.build_snapshot(as_of)

        export_data = {
            "meta": {
                "generated_at": datetime.now().isoformat(),
                "snapshot_date": as_of.isoformat(),
                "snapshot_month": as_of.month,
                "snapshot_year": as_of.year,
                "title": title,
                "total_athletes": len(rows),
            },
            "rankings": [r.to_row() for r in rows],
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(export_data, f, ensure_ascii=False, indent=2)

        logger.info(f"Snapshot exported: {output_file} ({len(rows)} athletes)")
