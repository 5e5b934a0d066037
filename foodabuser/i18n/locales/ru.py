"""Russian locale strings.

Keys mirror ``en.py``; anything missing here falls back to English.
"""

STRINGS: dict[str, str] = {
    # ---------------------------------------------------------------------------
    # Errors
    # ---------------------------------------------------------------------------
    "err_invalid_input": "Некорректные данные: {detail}",
    "err_pin_length": "PIN-код должен содержать от 4 до 6 цифр",
    "err_pin_digits": "PIN-код должен содержать только цифры",
    "err_pin_mismatch": "PIN-коды не совпадают",
    "err_pin_not_set": "PIN-код не установлен",
    "err_pin_wrong": "Неверный PIN-код. Осталось попыток: {remaining}",
    "err_pin_locked_now": (
        "Неверный PIN-код. Превышено количество попыток. "
        "Приложение заблокировано на {minutes} минут."
    ),
    "err_locked": "Превышено количество попыток. Попробуйте через {minutes} минут.",
    "err_biometric_unavailable": "Биометрия недоступна на этом устройстве",
    "err_biometric_failed": "Биометрическая аутентификация не удалась",
    "err_reset_not_allowed": "Сброс доступен после {attempts} неудачных попыток",
    "err_not_authenticated": "Введите PIN-код для входа в приложение",
    "err_storage": "Ошибка хранилища: {detail}",
    "err_not_found": "Запись {collection} с id {record_id} не найдена",
    "err_backup_invalid": "Файл не является резервной копией: {detail}",

    # ---------------------------------------------------------------------------
    # Meal recommendations
    # ---------------------------------------------------------------------------
    "rec_calories_low": "Среднее потребление калорий слишком низкое. Рекомендуется увеличить порции.",
    "rec_calories_high": "Среднее потребление калорий превышает норму. Рекомендуется уменьшить порции.",
    "rec_protein_low": "Недостаточно белка в рационе. Добавьте больше мясных и молочных продуктов.",
    "rec_drink_water": "Пейте больше воды: это важно для обмена веществ и контроля аппетита.",
    "rec_balanced": "Отличный баланс питания! Продолжайте в том же духе.",

    # ---------------------------------------------------------------------------
    # Weight recommendations
    # ---------------------------------------------------------------------------
    "rec_weight_goal_reached": "Поздравляем! Вы достигли своей цели по весу!",
    "rec_weight_almost": "Отличный прогресс! Вы почти достигли цели по весу.",
    "rec_weight_good": "Хороший прогресс! Продолжайте следить за питанием.",
    "rec_weight_can_accelerate": "Прогресс есть, но можно ускорить достижение цели.",
    "rec_weight_adjust": "Необходимо скорректировать план питания для достижения цели.",
    "rec_weight_gained": "Вес увеличился. Рекомендуется пересмотреть рацион питания.",
    "rec_weight_great_loss": "Отличная динамика снижения веса! Продолжайте в том же духе.",

    # ---------------------------------------------------------------------------
    # Chart labels
    # ---------------------------------------------------------------------------
    "weekday_0": "Вс",
    "weekday_1": "Пн",
    "weekday_2": "Вт",
    "weekday_3": "Ср",
    "weekday_4": "Чт",
    "weekday_5": "Пт",
    "weekday_6": "Сб",
    "month_1": "Янв",
    "month_2": "Фев",
    "month_3": "Мар",
    "month_4": "Апр",
    "month_5": "Май",
    "month_6": "Июн",
    "month_7": "Июл",
    "month_8": "Авг",
    "month_9": "Сен",
    "month_10": "Окт",
    "month_11": "Ноя",
    "month_12": "Дек",

    # ---------------------------------------------------------------------------
    # Food estimator
    # ---------------------------------------------------------------------------
    "food_omelette": "Омлет",
    "food_porridge": "Овсяная каша",
    "food_pancakes": "Блины",
    "food_chicken_rice": "Курица с рисом",
    "food_pasta": "Паста",
    "food_soup": "Суп",
    "food_fish": "Рыба с овощами",
    "food_salad": "Салат",
    "food_steak": "Стейк",
    "food_fruits": "Фрукты",
    "food_nuts": "Орехи",
    "food_yogurt": "Йогурт",
    "food_sandwich": "Сэндвич",
    "food_default": "Смешанное блюдо",
    "est_header": "📊 Результаты анализа:",
    "est_item": "{index}. {name}",
    "est_weight": "Вес: {grams}г",
    "est_calories": "Калории: {calories} ккал",
    "est_macros": "Белки: {protein}г | Жиры: {fat}г | Углеводы: {carbs}г",
    "est_total": "Итого:",
    "est_confidence": "Уверенность: {percent}%",
    "est_hint": "💡 Подсказка: Вы можете отредактировать эти значения вручную",
}
