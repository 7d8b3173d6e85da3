from __future__ import annotations

import copy
from typing import Any

# View settings shared with the browser UI and included in exported bases.
# dec: show 2 decimals; simple: "N Millones M Mil" style; font: UI scale;
# hidden: hidden columns; col: column widths in px.
DEFAULT_PREFERENCIAS: dict[str, Any] = {
    "dec": True,
    "simple": False,
    "font": 1,
    "hidden": {
        "categoria": False,
        "codigo": False,
    },
    "col": {},
}

FONT_MIN = 0.8
FONT_MAX = 1.4


def merge_deep(target: dict[str, Any], source: Any) -> dict[str, Any]:
    if not isinstance(source, dict):
        return target
    for key, value in source.items():
        if isinstance(value, list):
            target[key] = list(value)
        elif isinstance(value, dict):
            if not isinstance(target.get(key), dict):
                target[key] = {}
            merge_deep(target[key], value)
        else:
            target[key] = value
    return target


def merge_preferencias(stored: Any) -> dict[str, Any]:
    prefs = merge_deep(copy.deepcopy(DEFAULT_PREFERENCIAS), stored)
    try:
        font = float(prefs.get("font", 1))
    except (TypeError, ValueError):
        font = 1.0
    prefs["font"] = round(min(max(FONT_MIN, font), FONT_MAX), 2)
    return prefs
