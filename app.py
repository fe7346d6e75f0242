#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import datetime as dt
import json
import os
import re
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

# ------------------------------------------------------------
# 1) DATA PATHS (ENV overridable)
# ------------------------------------------------------------

DEFAULT_DATA_JSON_PATH = os.path.join("src", "components", "operators.json")

DATA_JSON_PATH = os.getenv("DATA_JSON_PATH", DEFAULT_DATA_JSON_PATH)

# Daily target switches at 11:00 UTC (04:00 UTC-7)
DAILY_RESET_HOUR_UTC = int(os.getenv("DAILY_RESET_HOUR_UTC", "11"))

# ------------------------------------------------------------
# 2) RECORD SHAPE
# ------------------------------------------------------------

TEXT_FIELDS = ("name", "gender", "class", "archetype", "faction", "race", "region", "source")
DATE_RE = re.compile(r"^(\d{4})(?:-(\d{2})-(\d{2}))?$")
MAX_OFFSET_DAYS = 366


def _str_or_empty(v: Any) -> str:
    return v.strip() if isinstance(v, str) else ""


def normalize_operator(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Same shape for every record: missing or null fields become "" so callers
    never have to check for absent keys.
    """
    out: Dict[str, Any] = {k: _str_or_empty(raw.get(k)) for k in TEXT_FIELDS}

    rarity = raw.get("rarity")
    out["rarity"] = rarity if isinstance(rarity, int) and not isinstance(rarity, bool) else ""

    release = raw.get("release") if isinstance(raw.get("release"), dict) else {}
    out["release"] = {
        "date_global": _str_or_empty(release.get("date_global")),
        "event_name": _str_or_empty(release.get("event_name")),
    }

    image = raw.get("image") if isinstance(raw.get("image"), dict) else {}
    out["image"] = {
        "portrait": _str_or_empty(image.get("portrait")),
        "full": _str_or_empty(image.get("full")),
    }
    return out


# ------------------------------------------------------------
# 3) LOAD + CACHE DATASET
# ------------------------------------------------------------


def _load_json_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=1)
def load_dataset() -> Dict[str, Any]:
    """
    Load once per process and keep in memory. The order of the file is kept:
    daily picks index into it.
    """
    if not os.path.exists(DATA_JSON_PATH):
        raise FileNotFoundError(
            f"Dataset not found: {DATA_JSON_PATH}. Run fetch_operators.py first or set DATA_JSON_PATH."
        )

    raw = _load_json_file(DATA_JSON_PATH)
    if not isinstance(raw, list):
        raise ValueError("Invalid JSON format: root must be a list of operators.")

    operators: List[Dict[str, Any]] = []
    by_name: Dict[str, Dict[str, Any]] = {}

    for item in raw:
        if not isinstance(item, dict):
            continue
        op = normalize_operator(item)
        if not op["name"]:
            continue
        key = op["name"].lower()
        operators.append(op)
        by_name.setdefault(key, op)

    return {"operators": operators, "by_name": by_name}


# ------------------------------------------------------------
# 4) DAILY PICK + GUESS FEEDBACK
# ------------------------------------------------------------


def daily_index(now: dt.datetime, count: int, offset_days: int = 0) -> int:
    """
    Index of the daily operator. Before the reset hour the previous UTC day
    still counts; offset_days=1 gives yesterday's operator.
    """
    if count <= 0:
        raise ValueError("empty dataset")
    if now.tzinfo is not None:
        now = now.astimezone(dt.timezone.utc).replace(tzinfo=None)
    if now.hour < DAILY_RESET_HOUR_UTC:
        now -= dt.timedelta(days=1)
    now -= dt.timedelta(days=offset_days)
    day_seed = (now - dt.datetime(1970, 1, 1)) // dt.timedelta(days=1)
    return day_seed % count


def _parse_release_date(value: str) -> Optional[dt.date]:
    m = DATE_RE.match(value or "")
    if not m:
        return None
    year, month, day = m.groups()
    try:
        return dt.date(int(year), int(month or 1), int(day or 1))
    except ValueError:
        return None


def _order_status(guess: Any, target: Any) -> str:
    if guess == target:
        return "green"
    return "up" if guess < target else "down"


def _rarity_status(guess: Any, target: Any) -> str:
    # unknown rarity ("") ranks as 0
    return _order_status(guess or 0, target or 0)


def _enum_status(guess: str, target: str) -> str:
    return "green" if guess == target else "red"


def _class_status(guess: Dict[str, Any], target: Dict[str, Any]) -> str:
    if guess["archetype"] == target["archetype"]:
        return "green"
    if guess["class"] == target["class"]:
        return "orange"
    return "red"


def compare_operators(guess: Dict[str, Any], target: Dict[str, Any]) -> Dict[str, Any]:
    """
    Feedback for one guess: green = same, red = different, orange = same class
    but other archetype, up/down = target is higher/later than the guess.
    """
    g_date = _parse_release_date(guess["release"]["date_global"])
    t_date = _parse_release_date(target["release"]["date_global"])
    date_status = "red" if g_date is None or t_date is None else _order_status(g_date, t_date)
    date_label = f'{guess["release"]["date_global"]} ({guess["release"]["event_name"] or "Unknown Event"})'

    return {
        "name": guess["name"],
        "gender": {"value": guess["gender"], "status": _enum_status(guess["gender"], target["gender"])},
        "rarity": {"value": guess["rarity"], "status": _rarity_status(guess["rarity"], target["rarity"])},
        "class_archetype": {
            "value": f'{guess["class"]} / {guess["archetype"]}',
            "status": _class_status(guess, target),
        },
        "faction": {"value": guess["faction"], "status": _enum_status(guess["faction"], target["faction"])},
        "race": {"value": guess["race"], "status": _enum_status(guess["race"], target["race"])},
        "region": {"value": guess["region"], "status": _enum_status(guess["region"], target["region"])},
        "release_date": {"value": date_label, "status": date_status},
        "image": guess["image"],
        "correct": guess["name"] == target["name"],
    }


def _daily_operator(offset_days: int = 0) -> Tuple[int, Dict[str, Any]]:
    ops = load_dataset()["operators"]
    idx = daily_index(dt.datetime.now(dt.timezone.utc), len(ops), offset_days)
    return idx, ops[idx]


# ------------------------------------------------------------
# 5) FLASK APP
# ------------------------------------------------------------

app = Flask(__name__)


@app.get("/healthz")
def healthz():
    return jsonify({"ok": True})


@app.get("/api/operators")
def api_operators():
    try:
        ops = load_dataset()["operators"]
        return jsonify({"ok": True, "count": len(ops), "operators": ops})
    except Exception:
        return jsonify({"ok": False, "error": "dataset not available"}), 500


@app.get("/api/operators/<name>")
def api_operator(name: str):
    key = (name or "").strip().lower()
    if not key:
        return jsonify({"ok": False, "error": "invalid name"}), 400
    try:
        op = load_dataset()["by_name"].get(key)
    except Exception:
        return jsonify({"ok": False, "error": "dataset not available"}), 500
    if not op:
        return jsonify({"ok": False, "error": "not found"}), 404
    return jsonify({"ok": True, "operator": op})


@app.get("/api/daily")
def api_daily():
    offset = request.args.get("offset", "0")
    if not offset.isdecimal() or int(offset) > MAX_OFFSET_DAYS:
        return jsonify({"ok": False, "error": "invalid offset"}), 400
    try:
        idx, op = _daily_operator(int(offset))
    except Exception:
        return jsonify({"ok": False, "error": "dataset not available"}), 500
    return jsonify({"ok": True, "index": idx, "operator": op})


@app.get("/api/guess")
def api_guess():
    key = (request.args.get("name") or "").strip().lower()
    if not key:
        return jsonify({"ok": False, "error": "missing name"}), 400
    try:
        guess = load_dataset()["by_name"].get(key)
        _, target = _daily_operator()
    except Exception:
        return jsonify({"ok": False, "error": "dataset not available"}), 500
    if not guess:
        return jsonify({"ok": False, "error": "unknown operator"}), 404
    return jsonify({"ok": True, "feedback": compare_operators(guess, target)})


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8080"))
    app.run(host="0.0.0.0", port=port, debug=False)
