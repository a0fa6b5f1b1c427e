"""Free quota rules for AI edits.

``edit_count`` is always the number of successful edits of that action the
account already made, so the edit being priced is edit number
``edit_count + 1``.
"""

import math

from src.database.models import EditAction

FREE_TEXT_EDITS = 5
TEXT_EDIT_CHARGE_INTERVAL = 5
FREE_IMAGE_EDITS = 1


def is_chargeable(action: EditAction, edit_count: int) -> bool:
    """Text: first five free, then every fifth edit is charged. Image: first one free."""
    action = EditAction(action)
    if action == EditAction.TEXT_EDIT:
        if edit_count < FREE_TEXT_EDITS:
            return False
        return edit_count % TEXT_EDIT_CHARGE_INTERVAL == 0
    return edit_count >= FREE_IMAGE_EDITS


def free_edits_remaining(action: EditAction, edit_count: int) -> int:
    """Free edits left before the next charged one."""
    action = EditAction(action)
    if action == EditAction.TEXT_EDIT:
        if edit_count < FREE_TEXT_EDITS:
            return FREE_TEXT_EDITS - edit_count
        if is_chargeable(action, edit_count):
            return 0
        next_charged = (
            math.ceil(edit_count / TEXT_EDIT_CHARGE_INTERVAL)
            * TEXT_EDIT_CHARGE_INTERVAL
        )
        return next_charged - edit_count
    return max(FREE_IMAGE_EDITS - edit_count, 0)


def edit_count_message(action: EditAction, edit_count: int, unit_price: int) -> str:
    if is_chargeable(action, edit_count):
        return f"Next edit will cost {unit_price} credit{'s' if unit_price != 1 else ''}"

    remaining = free_edits_remaining(action, edit_count)
    return f"{remaining} free edit{'s' if remaining != 1 else ''} remaining"
