"""
Field Service Manager - Parts/Labour List
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Parts list editing with labour half-hour steps

Parts are stored on a job as parts_json: an ordered JSON list of
{"description": str, "qty": number}. Labour lines move in 0.5 steps,
everything else in whole units. Quantities are never negative.
"""

import json
import math
import re
from typing import List, Dict, Any

from services.errors import InvalidPartQuantityError

LABOUR_PATTERN = re.compile(r"labou?r", re.IGNORECASE)
LABOUR_STEP = 0.5
UNIT_STEP = 1


def is_labour(description: str) -> bool:
    return bool(LABOUR_PATTERN.search(description or ""))


def step_for(description: str):
    return LABOUR_STEP if is_labour(description) else UNIT_STEP


def round_to_step(qty, description: str):
    """Round a quantity to the nearest valid step for this part (halves round up)"""
    try:
        qty = float(qty)
    except (TypeError, ValueError):
        raise InvalidPartQuantityError(f"Quantity must be a number, got {qty!r}")
    if math.isnan(qty) or math.isinf(qty):
        raise InvalidPartQuantityError(f"Quantity must be finite, got {qty}")
    if qty < 0:
        raise InvalidPartQuantityError(f"Quantity cannot be negative ({qty})")

    step = step_for(description)
    rounded = math.floor(qty / step + 0.5) * step
    if step == UNIT_STEP:
        return int(rounded)
    return float(rounded)


def _part(description: str, qty) -> Dict[str, Any]:
    description = description or ""
    return {"description": description, "qty": round_to_step(qty, description)}


def normalize_parts(parts) -> List[Dict[str, Any]]:
    """Validate a parts payload and round every quantity to its step"""
    normalized = []
    for item in parts or []:
        if hasattr(item, "model_dump"):
            item = item.model_dump()
        normalized.append(_part(item.get("description", ""), item.get("qty", 1)))
    return normalized


def add_part(parts, description: str = "") -> List[Dict[str, Any]]:
    """Append a new line with the default quantity of 1"""
    return normalize_parts(parts) + [_part(description, 1)]


def remove_part(parts, index: int) -> List[Dict[str, Any]]:
    parts = normalize_parts(parts)
    if not 0 <= index < len(parts):
        raise IndexError(f"No part at index {index}")
    return parts[:index] + parts[index + 1:]


def set_quantity(parts, index: int, qty) -> List[Dict[str, Any]]:
    """Set a line's quantity; negatives are rejected, others rounded to step"""
    parts = normalize_parts(parts)
    if not 0 <= index < len(parts):
        raise IndexError(f"No part at index {index}")
    parts[index] = _part(parts[index]["description"], qty)
    return parts


def increment(parts, index: int) -> List[Dict[str, Any]]:
    parts = normalize_parts(parts)
    if not 0 <= index < len(parts):
        raise IndexError(f"No part at index {index}")
    line = parts[index]
    return set_quantity(parts, index, line["qty"] + step_for(line["description"]))


def decrement(parts, index: int) -> List[Dict[str, Any]]:
    """Move one step down, stopping at 0"""
    parts = normalize_parts(parts)
    if not 0 <= index < len(parts):
        raise IndexError(f"No part at index {index}")
    line = parts[index]
    return set_quantity(parts, index, max(0, line["qty"] - step_for(line["description"])))


def dump_parts(parts) -> str:
    return json.dumps(normalize_parts(parts))


def load_parts(text: str) -> List[Dict[str, Any]]:
    """Parse parts_json; anything unreadable is treated as an empty list"""
    if not text:
        return []
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return []
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]
