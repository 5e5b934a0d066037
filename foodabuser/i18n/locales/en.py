"""English locale strings.

Keys are grouped by functional area matching the module structure.
"""

STRINGS: dict[str, str] = {
    # ---------------------------------------------------------------------------
    # Errors (core/errors.py, services/guard.py, services/store.py)
    # ---------------------------------------------------------------------------
    "err_invalid_input": "Invalid input: {detail}",
    "err_pin_length": "PIN must contain 4 to 6 digits",
    "err_pin_digits": "PIN must contain digits only",
    "err_pin_mismatch": "PINs do not match",
    "err_pin_not_set": "PIN is not set",
    "err_pin_wrong": "Wrong PIN. Attempts left: {remaining}",
    "err_pin_locked_now": "Wrong PIN. Too many attempts. The app is locked for {minutes} min.",
    "err_locked": "Too many attempts. Try again in {minutes} min.",
    "err_biometric_unavailable": "Biometrics are not available on this device",
    "err_biometric_failed": "Biometric authentication failed",
    "err_reset_not_allowed": "Reset becomes available after {attempts} failed attempts",
    "err_not_authenticated": "Enter your PIN to continue",
    "err_storage": "Storage error: {detail}",
    "err_not_found": "No {collection} record with id {record_id}",
    "err_backup_invalid": "Not a valid backup file: {detail}",

    # ---------------------------------------------------------------------------
    # Meal recommendations (reports/recommendations.py)
    # ---------------------------------------------------------------------------
    "rec_calories_low": "Average calorie intake is too low. Consider larger portions.",
    "rec_calories_high": "Average calorie intake is above the norm. Consider smaller portions.",
    "rec_protein_low": "Not enough protein in your diet. Add more meat and dairy products.",
    "rec_drink_water": "Drink more water: it matters for metabolism and appetite control.",
    "rec_balanced": "Great nutrition balance! Keep it up.",

    # ---------------------------------------------------------------------------
    # Weight recommendations
    # ---------------------------------------------------------------------------
    "rec_weight_goal_reached": "Congratulations! You have reached your weight goal!",
    "rec_weight_almost": "Excellent progress! You have almost reached your weight goal.",
    "rec_weight_good": "Good progress! Keep watching your diet.",
    "rec_weight_can_accelerate": "There is progress, but you can reach the goal faster.",
    "rec_weight_adjust": "Adjust your meal plan to reach your goal.",
    "rec_weight_gained": "Your weight went up. Consider revising your diet.",
    "rec_weight_great_loss": "Great weight loss trend! Keep it up.",

    # ---------------------------------------------------------------------------
    # Chart labels (reports/charts.py); weekdays start on Sunday
    # ---------------------------------------------------------------------------
    "weekday_0": "Sun",
    "weekday_1": "Mon",
    "weekday_2": "Tue",
    "weekday_3": "Wed",
    "weekday_4": "Thu",
    "weekday_5": "Fri",
    "weekday_6": "Sat",
    "month_1": "Jan",
    "month_2": "Feb",
    "month_3": "Mar",
    "month_4": "Apr",
    "month_5": "May",
    "month_6": "Jun",
    "month_7": "Jul",
    "month_8": "Aug",
    "month_9": "Sep",
    "month_10": "Oct",
    "month_11": "Nov",
    "month_12": "Dec",

    # ---------------------------------------------------------------------------
    # Food estimator (services/food_estimate.py)
    # ---------------------------------------------------------------------------
    "food_omelette": "Omelette",
    "food_porridge": "Oatmeal porridge",
    "food_pancakes": "Pancakes",
    "food_chicken_rice": "Chicken with rice",
    "food_pasta": "Pasta",
    "food_soup": "Soup",
    "food_fish": "Fish with vegetables",
    "food_salad": "Salad",
    "food_steak": "Steak",
    "food_fruits": "Fruit",
    "food_nuts": "Nuts",
    "food_yogurt": "Yogurt",
    "food_sandwich": "Sandwich",
    "food_default": "Mixed dish",
    "est_header": "📊 Analysis result:",
    "est_item": "{index}. {name}",
    "est_weight": "Weight: {grams} g",
    "est_calories": "Calories: {calories} kcal",
    "est_macros": "Protein: {protein} g | Fat: {fat} g | Carbs: {carbs} g",
    "est_total": "Total:",
    "est_confidence": "Confidence: {percent}%",
    "est_hint": "💡 Tip: you can edit these values manually",
}
