"""
Unit tests for RankingCalculator

Tests cover:
1. Snapshot building (season window, carry-over, partitions, positions)
2. Tie-break and duplicate handling
3. Ranking filters
4. Admin points overview (carry-over, medals, as-of date)
5. JSON import/export
"""

import json
import pytest
from datetime import date

from ranking import (
    RankingCalculator,
    default_age_category,
    filter_rankings,
    ranking_filter_options,
    InvalidInputError,
)


@pytest.fixture
def calculator(sample_data):
    athletes, events, results = sample_data
    return RankingCalculator(athletes, events, results)


def _by_athlete(rows):
    return {r.athlete_id: r for r in rows}


# =============================================================================
# Snapshot building
# =============================================================================

class TestBuildSnapshot:
    """Tests for ranked snapshot rows"""

    def test_season_window_and_carry_over(self, calculator):
        """Only this season's events up to the snapshot date count"""
        rows = _by_athlete(calculator.build_snapshot(date(2026, 6, 30)))

        cadet = rows["a1"]
        assert cadet.current_year_points == 26
        assert cadet.carried_over_points == 20
        assert cadet.total_points == 46
        assert cadet.entered_new_age_category is False

    def test_later_snapshot_includes_later_events(self, calculator):
        rows = _by_athlete(calculator.build_snapshot(date(2026, 12, 31)))

        assert rows["a1"].current_year_points == 68
        assert rows["a1"].total_points == 88

    def test_new_category_without_qualifying_points(self, calculator):
        """Junior newcomer with only coefficient 1 points carries nothing"""
        junior = _by_athlete(calculator.build_snapshot(date(2026, 6, 30)))["a2"]

        assert junior.entered_new_age_category is True
        assert junior.carried_over_points == 0
        assert junior.total_points == 5

    def test_hub_member_bonus(self, calculator):
        senior = _by_athlete(calculator.build_snapshot(date(2026, 6, 30)))["a3"]

        assert senior.hub_bonus == 5
        assert senior.total_points == 17

    def test_excluded_athletes(self, calculator):
        """Too young and inactive athletes are not ranked"""
        rows = _by_athlete(calculator.build_snapshot(date(2026, 6, 30)))

        assert "a4" not in rows
        assert "a5" not in rows

    def test_partition_order_and_positions(self, calculator):
        rows = calculator.build_snapshot(date(2026, 6, 30))

        assert [r.age_category for r in rows] == ["Cadet", "Junior", "Senior"]
        assert all(r.ranking_position == 1 for r in rows)

    def test_zero_total_athletes_omitted(self):
        calc = RankingCalculator(
            [{"id": "x", "first_name": "A", "last_name": "B", "date_of_birth": "2012-01-01"}],
            [],
            [],
        )
        assert calc.build_snapshot(date(2026, 6, 30)) == []

    def test_last_year_points_alone_rank(self):
        """Carry-over with no results this season still ranks the athlete"""
        calc = RankingCalculator(
            [{"id": "x", "first_name": "A", "last_name": "B", "date_of_birth": "2012-01-01",
              "last_year_points": 10}],
            [],
            [],
        )
        rows = calc.build_snapshot(date(2026, 6, 30))

        assert len(rows) == 1
        assert rows[0].total_points == 4.0

    def test_event_without_date_ignored(self):
        calc = RankingCalculator(
            [{"id": "x", "first_name": "A", "last_name": "B", "date_of_birth": "2012-01-01"}],
            [{"id": "e", "name": "Undated", "start_date": None, "coefficient": 5}],
            [{"id": "r", "athlete_id": "x", "event_id": "e", "final_rank": 1, "matches_won": 3}],
        )
        assert calc.build_snapshot(date(2026, 6, 30)) == []

    def test_snapshot_row_serialization(self, calculator):
        row = calculator.build_snapshot(date(2026, 6, 30))[0].to_row()

        assert row["athlete_name"] == "Mia Tamm"
        assert row["ranking_position"] == 1
        assert set(row) >= {"age_category", "weight_category", "gender", "total_points"}


class TestSeasonRow:
    """Tests for a single athlete's season row"""

    def test_matches_snapshot_row(self, calculator):
        ranked = _by_athlete(calculator.build_snapshot(date(2026, 12, 31)))["a1"]
        row = calculator.season_row("a1", date(2026, 12, 31))

        assert row.total_points == ranked.total_points == 88
        assert row.current_year_points == ranked.current_year_points
        assert row.ranking_position == 0

    def test_no_category(self, calculator):
        assert calculator.season_row("a4", date(2026, 6, 30)) is None

    def test_unknown_athlete(self, calculator):
        with pytest.raises(LookupError):
            calculator.season_row("nope", date(2026, 6, 30))


class TestTieBreak:
    """Tests for deterministic ordering of equal totals"""

    def _calc(self, athletes, results):
        events = [{"id": "e", "name": "Cup", "start_date": "2026-02-01", "coefficient": 3}]
        return RankingCalculator(athletes, events, results)

    def test_more_current_points_wins_tie(self):
        athletes = [
            {"id": "x", "first_name": "A", "last_name": "Alpha", "date_of_birth": "2012-01-01",
             "last_year_points": 10},
            {"id": "y", "first_name": "B", "last_name": "Beta", "date_of_birth": "2012-01-01"},
        ]
        # x: 0 + 4 carried; y: 4 current
        results = [{"id": "r", "athlete_id": "y", "event_id": "e", "final_rank": 9, "matches_won": 2}]
        rows = self._calc(athletes, results).build_snapshot(date(2026, 6, 30))

        assert [r.athlete_id for r in rows] == ["y", "x"]
        assert [r.ranking_position for r in rows] == [1, 2]

    def test_name_order_on_full_tie(self):
        athletes = [
            {"id": "x", "first_name": "Zoe", "last_name": "Tamm", "date_of_birth": "2012-01-01",
             "last_year_points": 10},
            {"id": "y", "first_name": "Ann", "last_name": "Tamm", "date_of_birth": "2012-01-01",
             "last_year_points": 10},
            {"id": "z", "first_name": "Mart", "last_name": "Aas", "date_of_birth": "2012-01-01",
             "last_year_points": 10},
        ]
        rows = self._calc(athletes, []).build_snapshot(date(2026, 6, 30))

        assert [r.athlete_id for r in rows] == ["z", "y", "x"]
        assert [r.ranking_position for r in rows] == [1, 2, 3]

    def test_positions_restart_per_category(self):
        athletes = [
            {"id": "c1", "first_name": "A", "last_name": "A", "date_of_birth": "2012-01-01",
             "last_year_points": 10},
            {"id": "c2", "first_name": "B", "last_name": "B", "date_of_birth": "2013-01-01",
             "last_year_points": 20},
            {"id": "s1", "first_name": "C", "last_name": "C", "date_of_birth": "1999-01-01",
             "last_year_points": 30},
        ]
        rows = self._calc(athletes, []).build_snapshot(date(2026, 6, 30))
        positions = {r.athlete_id: r.ranking_position for r in rows}

        assert positions == {"c2": 1, "c1": 2, "s1": 1}


class TestDuplicateResults:
    """Tests for repeated (athlete, event) rows"""

    def test_duplicate_counted_once(self, sample_data):
        athletes, events, results = sample_data
        results = results + [
            {"id": "dup", "athlete_id": "a2", "event_id": "e2", "final_rank": 1, "matches_won": 5}
        ]
        calc = RankingCalculator(athletes, events, results)
        junior = _by_athlete(calc.build_snapshot(date(2026, 6, 30)))["a2"]

        assert junior.current_year_points == 5
        assert len(calc.scored_results(athlete_id="a2")) == 1


# =============================================================================
# Ranking filters
# =============================================================================

class TestFilterRankings:
    """Tests for public ranking table filters"""

    @pytest.fixture
    def rows(self):
        return [
            {"athlete_id": "1", "age_category": "Junior", "weight_category": "-55kg", "gender": "male", "ranking_position": 1},
            {"athlete_id": "2", "age_category": "Junior", "weight_category": "-63kg", "gender": "male", "ranking_position": 2},
            {"athlete_id": "3", "age_category": "Junior", "weight_category": "-55kg", "gender": "female", "ranking_position": 3},
            {"athlete_id": "4", "age_category": "Senior", "weight_category": "-80kg", "gender": "male", "ranking_position": 1},
        ]

    def test_age_category_only(self, rows):
        result = filter_rankings(rows, "Junior")
        assert [r["athlete_id"] for r in result] == ["1", "2", "3"]

    def test_weight_filter_keeps_positions(self, rows):
        result = filter_rankings(rows, "Junior", weight_category="-55kg")

        assert [r["ranking_position"] for r in result] == [1, 3]

    def test_gender_filter(self, rows):
        result = filter_rankings(rows, "Junior", gender="female")
        assert [r["athlete_id"] for r in result] == ["3"]

    def test_all_means_no_filter(self, rows):
        assert len(filter_rankings(rows, "Junior", weight_category="all", gender="all")) == 3

    def test_age_category_required(self, rows):
        with pytest.raises(InvalidInputError):
            filter_rankings(rows, "")

    def test_filter_options_weights_follow_category(self, rows):
        options = ranking_filter_options(rows, "Senior")

        assert options["age_categories"] == ["Junior", "Senior"]
        assert options["weight_categories"] == ["-80kg"]

    def test_default_category(self, rows):
        assert ranking_filter_options(rows)["selected_age_category"] == "Junior"
        assert default_age_category(["Senior", "Cadet"]) == "Cadet"
        assert default_age_category([]) == "Senior"


# =============================================================================
# Points overview
# =============================================================================

class TestSummarizeAthletes:
    """Tests for the admin points overview"""

    def test_totals_for_year(self, calculator):
        summaries = calculator.summarize_athletes(year=2026)

        assert [s.athlete_id for s in summaries] == ["a1", "a3", "a2"]
        top = summaries[0]
        assert top.current_year_points == 68
        assert top.carried_over_points == 20
        assert top.total_points == 88
        assert top.competitions_count == 3
        assert top.best_result == 42

    def test_total_matches_snapshot(self, calculator):
        """Without event filters the overview total is the ranked total"""
        summaries = calculator.summarize_athletes(year=2026, as_of=date(2026, 6, 30))
        rows = _by_athlete(calculator.build_snapshot(date(2026, 6, 30)))

        for summary in summaries:
            assert summary.total_points == rows[summary.athlete_id].total_points

    def test_medals_need_two_wins(self, calculator):
        """Second place after a single win is not a medal"""
        top = calculator.summarize_athletes(year=2026)[0]
        assert (top.gold_count, top.silver_count, top.bronze_count) == (2, 0, 0)

    def test_counted_silver(self, sample_data):
        athletes, events, results = sample_data
        results = [dict(r, matches_won=2) if r["id"] == "r2" else r for r in results]
        top = RankingCalculator(athletes, events, results).summarize_athletes(year=2026)[0]

        assert top.silver_count == 1

    def test_as_of_excludes_later_events(self, calculator):
        a1 = _by_athlete(calculator.summarize_athletes(year=2026, as_of=date(2026, 6, 30)))["a1"]

        assert a1.current_year_points == 26
        assert a1.competitions_count == 2
        assert a1.last_competition_date == "2026-05-20"

    def test_last_competition_date(self, calculator):
        a1 = _by_athlete(calculator.summarize_athletes(as_of=date(2026, 12, 31)))["a1"]
        assert a1.last_competition_date == "2026-09-01"

    def test_new_category_carries_nothing_without_qualifying(self, calculator):
        a2 = _by_athlete(calculator.summarize_athletes(year=2026))["a2"]

        assert a2.current_year_points == 5
        assert a2.carried_over_points == 0
        assert a2.total_points == 5

    def test_hub_bonus_in_total(self, calculator):
        a3 = _by_athlete(calculator.summarize_athletes(year=2026))["a3"]

        assert a3.current_year_points == 4
        assert a3.carried_over_points == 8
        assert a3.total_points == 17

    def test_all_years(self, calculator):
        top = calculator.summarize_athletes(as_of=date(2026, 12, 31))[0]
        assert top.current_year_points == 128

    def test_coefficient_filter(self, calculator):
        summaries = calculator.summarize_athletes(coefficient=3, as_of=date(2026, 12, 31))
        assert {s.athlete_id: s.current_year_points for s in summaries} == {"a1": 26, "a3": 4}

    def test_search_matches_event_name(self, calculator):
        summaries = calculator.summarize_athletes(search="spring", as_of=date(2026, 12, 31))
        assert {s.athlete_id for s in summaries} == {"a1", "a3"}

    def test_club_filter_skips_inactive(self, calculator):
        summaries = calculator.summarize_athletes(club="Dragon", as_of=date(2026, 12, 31))
        assert [s.athlete_id for s in summaries] == ["a2"]

    def test_age_category_filter(self, calculator):
        summaries = calculator.summarize_athletes(age_category="Junior", as_of=date(2026, 12, 31))
        assert [s.athlete_id for s in summaries] == ["a2"]


# =============================================================================
# JSON import/export
# =============================================================================

class TestExport:
    """Tests for offline snapshot export"""

    def test_load_and_export(self, sample_data, tmp_path):
        athletes, events, results = sample_data
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({"athletes": athletes, "events": events, "results": results}))
        output = tmp_path / "snapshot.json"

        calc = RankingCalculator()
        calc.load_data(str(data_file))
        calc.export_snapshot(str(output), date(2026, 6, 30), title="June")

        exported = json.loads(output.read_text(encoding="utf-8"))
        assert exported["meta"]["snapshot_month"] == 6
        assert exported["meta"]["total_athletes"] == 3
        assert exported["meta"]["title"] == "June"
        assert exported["rankings"][0]["athlete_id"] == "a1"
