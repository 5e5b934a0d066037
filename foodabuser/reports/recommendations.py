"""Fixed-rule recommendations derived from meal and weight statistics.

Each rule yields a ``Recommendation`` carrying an i18n key plus the icon
and colour the UI shows next to it.  Deterministic, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from foodabuser.i18n import t
from foodabuser.reports.stats import MealStats, PeriodStats, WeightStats

CALORIES_LOW = 1200
CALORIES_HIGH = 3000
PROTEIN_SHARE_MIN = 10  # % of calories
DAY_CALORIES_WATER_HINT = 1500

_RED = "#ff6b6b"
_GREEN = "#43cea2"
_TEAL = "#4ecdc4"
_PURPLE = "#6C63FF"
_ORANGE = "#ff9800"


@dataclass(frozen=True)
class Recommendation:
    key: str
    icon: str
    color: str

    def text(self, lang: str | None = None) -> str:
        return t(self.key, lang)

    def as_dict(self, lang: str | None = None) -> dict[str, str]:
        return {"key": self.key, "icon": self.icon, "color": self.color, "text": self.text(lang)}


def recommend_meals(stats: MealStats, period_stats: PeriodStats) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    average = stats["average_calories"]
    if average < CALORIES_LOW:
        recommendations.append(Recommendation("rec_calories_low", "food", _RED))
    elif average > CALORIES_HIGH:
        recommendations.append(Recommendation("rec_calories_high", "food-off", _RED))

    # 4 kcal per gram of protein
    total = stats["total_calories"]
    if total > 0 and stats["total_protein"] * 4 / total * 100 < PROTEIN_SHARE_MIN:
        recommendations.append(Recommendation("rec_protein_low", "food-drumstick", _TEAL))

    day_calories = period_stats["day"]["calories"]
    if 0 < day_calories < DAY_CALORIES_WATER_HINT:
        recommendations.append(Recommendation("rec_drink_water", "cup-water", _GREEN))

    if not recommendations:
        recommendations.append(Recommendation("rec_balanced", "check-circle", _GREEN))
    return recommendations


def recommend_weight(stats: WeightStats) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    progress = stats["progress_percentage"]
    if progress >= 100:
        recommendations.append(Recommendation("rec_weight_goal_reached", "trophy", _GREEN))
    elif progress >= 75:
        recommendations.append(Recommendation("rec_weight_almost", "trending-down", _GREEN))
    elif progress >= 50:
        recommendations.append(Recommendation("rec_weight_good", "trending-down", _PURPLE))
    elif progress >= 25:
        recommendations.append(
            Recommendation("rec_weight_can_accelerate", "trending-down", _ORANGE)
        )
    else:
        recommendations.append(Recommendation("rec_weight_adjust", "alert-circle", _RED))

    change = stats["weight_change"]
    if change > 0:
        recommendations.append(Recommendation("rec_weight_gained", "trending-up", _RED))
    elif change < -2:
        recommendations.append(Recommendation("rec_weight_great_loss", "trending-down", _GREEN))
    return recommendations
