"""
Federation ranking system

Points, carry-over and age category rules used for team selection
"""
from .calculator import (
    RankingCalculator,
    AthleteRecord,
    EventRecord,
    ResultRecord,
    ScoredResult,
    SnapshotRow,
    AthletePointsSummary,
    AgeCategory,
    InvalidInputError,
    compute_points,
    points_breakdown,
    points_allocation_table,
    display_points,
    compute_total_points,
    carried_over_points,
    has_qualifying_points,
    age_category_from_birth_date,
    entered_new_age_category,
    default_age_category,
    filter_rankings,
    ranking_filter_options,
    AGE_CATEGORY_ORDER,
    PLACEMENT_POINTS,
    WIN_BONUS_POINTS,
    CARRY_OVER_RATE,
    NEW_CATEGORY_CARRY_OVER_RATE,
    HUB_BONUS_POINTS,
)

__all__ = [
    "RankingCalculator",
    "AthleteRecord",
    "EventRecord",
    "ResultRecord",
    "ScoredResult",
    "SnapshotRow",
    "AthletePointsSummary",
    "AgeCategory",
    "InvalidInputError",
    "compute_points",
    "points_breakdown",
    "points_allocation_table",
    "display_points",
    "compute_total_points",
    "carried_over_points",
    "has_qualifying_points",
    "age_category_from_birth_date",
    "entered_new_age_category",
    "default_age_category",
    "filter_rankings",
    "ranking_filter_options",
    "AGE_CATEGORY_ORDER",
    "PLACEMENT_POINTS",
    "WIN_BONUS_POINTS",
    "CARRY_OVER_RATE",
    "NEW_CATEGORY_CARRY_OVER_RATE",
    "HUB_BONUS_POINTS",
]
