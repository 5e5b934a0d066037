"""Keyword-table food estimator.

A static table of common dishes with per-100 g nutrition values and a
typical portion.  ``estimate_food`` picks the first dish whose keyword
occurs in the description, scales the portion by size words, and
returns totals with a fixed confidence.  There is no image inference
and no randomness: the same description always gives the same result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

from foodabuser.core.time import utc_now
from foodabuser.db.schemas import MealCategory
from foodabuser.i18n import t

CONFIDENCE = 0.75

# Checked in order; the first match wins.
_SIZE_FACTORS: tuple[tuple[tuple[str, ...], float], ...] = (
    (("больш", "large", "big"), 1.3),
    (("мал", "small"), 0.7),
    (("средн", "medium"), 1.0),
)


@dataclass(frozen=True)
class Dish:
    """Nutrition per 100 g plus the typical portion in grams."""

    key: str
    category: MealCategory
    portion_g: int
    calories: float
    protein: float
    fat: float
    carbs: float
    keywords: tuple[str, ...]


FOOD_TABLE: tuple[Dish, ...] = (
    # breakfast
    Dish("omelette", MealCategory.BREAKFAST, 150, 154, 10.2, 11.6, 0.8,
         ("яйцо", "омлет", "яичница", "omelet", "egg")),
    Dish("porridge", MealCategory.BREAKFAST, 200, 88, 3.0, 1.7, 15.0,
         ("каша", "овсянка", "хлопья", "porridge", "oatmeal")),
    Dish("pancakes", MealCategory.BREAKFAST, 120, 227, 6.1, 3.9, 41.7,
         ("блин", "панкейк", "оладь", "pancake")),
    # lunch
    Dish("chicken_rice", MealCategory.LUNCH, 300, 165, 18.5, 4.5, 16.0,
         ("курица", "рис", "гарнир", "chicken", "rice")),
    Dish("pasta", MealCategory.LUNCH, 250, 158, 5.5, 0.9, 31.0,
         ("паста", "макароны", "спагетти", "pasta", "spaghetti")),
    Dish("soup", MealCategory.LUNCH, 300, 45, 2.5, 2.0, 5.0,
         ("суп", "борщ", "бульон", "soup", "broth")),
    Dish("fish", MealCategory.LUNCH, 250, 120, 20.0, 4.0, 2.5,
         ("рыба", "лосось", "овощи", "fish", "salmon")),
    # dinner
    Dish("salad", MealCategory.DINNER, 200, 45, 1.5, 2.5, 5.0,
         ("салат", "овощи", "зелень", "salad")),
    Dish("steak", MealCategory.DINNER, 200, 250, 26.0, 17.0, 0.0,
         ("стейк", "мясо", "говядина", "steak", "beef")),
    # snack
    Dish("fruits", MealCategory.SNACK, 150, 52, 0.8, 0.3, 13.0,
         ("фрукт", "яблоко", "банан", "апельсин", "fruit", "apple", "banana")),
    Dish("nuts", MealCategory.SNACK, 30, 607, 16.0, 54.0, 13.0,
         ("орех", "миндаль", "кешью", "nut", "almond")),
    Dish("yogurt", MealCategory.SNACK, 150, 66, 5.0, 1.5, 9.0,
         ("йогурт", "кефир", "молочное", "yogurt", "kefir")),
    Dish("sandwich", MealCategory.SNACK, 150, 250, 12.0, 8.0, 32.0,
         ("сэндвич", "бутерброд", "хлеб", "sandwich", "bread")),
)

DEFAULT_DISH = Dish("default", MealCategory.LUNCH, 250, 150, 10.0, 7.0, 15.0, ())


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------
class FoodItem(BaseModel):
    name: str
    weight_grams: int = Field(ge=0)
    calories: int = Field(ge=0)
    protein: float = Field(ge=0)
    fat: float = Field(ge=0)
    carbs: float = Field(ge=0)


class NutritionTotal(BaseModel):
    calories: int = Field(ge=0)
    protein: float = Field(ge=0)
    fat: float = Field(ge=0)
    carbs: float = Field(ge=0)


class FoodEstimate(BaseModel):
    """Estimated nutrition for a described meal."""

    dish: str
    category: MealCategory
    foods: list[FoodItem]
    total: NutritionTotal
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime


# ---------------------------------------------------------------------------
# Estimation
# ---------------------------------------------------------------------------
def detect_dish(description: str | None) -> Dish:
    text = (description or "").strip().lower()
    if not text:
        return DEFAULT_DISH
    for dish in FOOD_TABLE:
        if any(keyword in text for keyword in dish.keywords):
            return dish
    return DEFAULT_DISH


def _size_factor(text: str) -> float:
    for words, factor in _SIZE_FACTORS:
        if any(word in text for word in words):
            return factor
    return 1.0


def estimate_food(
    description: str | None,
    lang: str | None = "RU",
    now: datetime | None = None,
) -> FoodEstimate:
    """Estimate nutrition for a free-text meal description."""
    dish = detect_dish(description)
    portion = round(dish.portion_g * _size_factor((description or "").lower()))
    multiplier = portion / 100

    item = FoodItem(
        name=t(f"food_{dish.key}", lang),
        weight_grams=portion,
        calories=round(dish.calories * multiplier),
        protein=round(dish.protein * multiplier, 1),
        fat=round(dish.fat * multiplier, 1),
        carbs=round(dish.carbs * multiplier, 1),
    )
    foods = [item]
    return FoodEstimate(
        dish=dish.key,
        category=dish.category,
        foods=foods,
        total=NutritionTotal(
            calories=sum(f.calories for f in foods),
            protein=round(sum(f.protein for f in foods), 1),
            fat=round(sum(f.fat for f in foods), 1),
            carbs=round(sum(f.carbs for f in foods), 1),
        ),
        confidence=CONFIDENCE,
        timestamp=now or utc_now(),
    )


def food_categories() -> list[str]:
    return [category.value for category in MealCategory]


def popular_foods(category: MealCategory | str, lang: str | None = "RU") -> list[dict]:
    """Dishes of *category* with their keywords (the default dish excluded)."""
    category = MealCategory(category)
    return [
        {"key": dish.key, "name": t(f"food_{dish.key}", lang), "keywords": list(dish.keywords)}
        for dish in FOOD_TABLE
        if dish.category is category
    ]


def format_estimate(estimate: FoodEstimate, lang: str | None = "RU") -> str:
    """Multi-line, human-readable summary of *estimate*."""
    lines = [t("est_header", lang), ""]
    for index, food in enumerate(estimate.foods, start=1):
        lines.append(t("est_item", lang).format(index=index, name=food.name))
        lines.append("   " + t("est_weight", lang).format(grams=food.weight_grams))
        lines.append("   " + t("est_calories", lang).format(calories=food.calories))
        lines.append(
            "   "
            + t("est_macros", lang).format(protein=food.protein, fat=food.fat, carbs=food.carbs)
        )
        lines.append("")

    total = estimate.total
    lines.append(t("est_total", lang))
    lines.append(t("est_calories", lang).format(calories=total.calories))
    lines.append(
        t("est_macros", lang).format(protein=total.protein, fat=total.fat, carbs=total.carbs)
    )
    lines.append("")
    lines.append(t("est_confidence", lang).format(percent=round(estimate.confidence * 100)))
    lines.append("")
    lines.append(t("est_hint", lang))
    return "\n".join(lines)
