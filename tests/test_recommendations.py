"""Rule-based meal and weight recommendations."""

from __future__ import annotations

from foodabuser.reports.recommendations import recommend_meals, recommend_weight


def _meal_stats(total: float, protein: float, average: float) -> dict:
    return {
        "total_calories": total,
        "total_protein": protein,
        "total_fat": 0,
        "total_carbs": 0,
        "average_calories": average,
    }


def _period(day_calories: float) -> dict:
    bucket = {"calories": day_calories, "meals_count": 1}
    return {"day": bucket, "week": bucket, "month": bucket}


def _keys(recommendations) -> list[str]:
    return [r.key for r in recommendations]


class TestMealRecommendations:
    def test_balanced(self):
        result = recommend_meals(_meal_stats(2000, 100, 2000), _period(2000))
        assert _keys(result) == ["rec_balanced"]

    def test_low_calories_low_protein_and_water(self):
        result = recommend_meals(_meal_stats(1000, 10, 1000), _period(1000))
        assert _keys(result) == ["rec_calories_low", "rec_protein_low", "rec_drink_water"]

    def test_high_calories(self):
        result = recommend_meals(_meal_stats(3500, 200, 3500), _period(3500))
        assert _keys(result) == ["rec_calories_high"]

    def test_no_meals_only_flags_low_calories(self):
        result = recommend_meals(_meal_stats(0, 0, 0), _period(0))
        assert _keys(result) == ["rec_calories_low"]

    def test_localised_payload(self):
        (rec,) = recommend_meals(_meal_stats(2000, 100, 2000), _period(2000))
        payload = rec.as_dict("EN")
        assert payload["text"] == "Great nutrition balance! Keep it up."
        assert payload["icon"] == "check-circle"


class TestWeightRecommendations:
    def _stats(self, progress: float, change: float) -> dict:
        return {"progress_percentage": progress, "weight_change": change, "average_weight": 75}

    def test_bands(self):
        assert _keys(recommend_weight(self._stats(100, -10))) == [
            "rec_weight_goal_reached",
            "rec_weight_great_loss",
        ]
        assert _keys(recommend_weight(self._stats(80, -1))) == ["rec_weight_almost"]
        assert _keys(recommend_weight(self._stats(50, -1))) == ["rec_weight_good"]
        assert _keys(recommend_weight(self._stats(30, -1))) == ["rec_weight_can_accelerate"]
        assert _keys(recommend_weight(self._stats(10, 0))) == ["rec_weight_adjust"]

    def test_gain_is_flagged(self):
        assert "rec_weight_gained" in _keys(recommend_weight(self._stats(0, 1.5)))
