from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd

from src.resolution.entity_resolver import UNKNOWN


LOG = logging.getLogger("f1_ingest.positions")


@dataclass(frozen=True)
class PositionEntry:
    position: int
    driver_id: Any
    constructor_id: Any


def find_session(sessions: Iterable[Mapping[str, Any]], label: str) -> Optional[Mapping[str, Any]]:
    for session in sessions:
        if label in (session.get("session_name") or ""):
            return session
    return None


def _timestamp(value: Any) -> Optional[pd.Timestamp]:
    if value is None:
        return None
    try:
        stamp = pd.to_datetime(value, utc=True)
    except (TypeError, ValueError):
        return None
    return None if pd.isna(stamp) else stamp


def _fold(records: Iterable[Mapping[str, Any]]) -> Dict[Any, Tuple[Optional[pd.Timestamp], int, int]]:
    latest: Dict[Any, Tuple[Optional[pd.Timestamp], int, int]] = {}
    for order, record in enumerate(records):
        driver = record.get("driver_number")
        position = record.get("position")
        if driver is None or position is None:
            continue
        stamp = _timestamp(record.get("date"))
        current = latest.get(driver)
        # Later timestamps win; equal or missing timestamps fall back to arrival order.
        if current is not None and stamp is not None and current[0] is not None and stamp < current[0]:
            continue
        latest[driver] = (stamp, order, int(position))
    return latest


def _recency(folded: Tuple[Optional[pd.Timestamp], int, int]) -> Tuple[bool, int, int]:
    stamp, order, _ = folded
    return (stamp is not None, stamp.value if stamp is not None else 0, order)


def terminal_positions(records: Iterable[Mapping[str, Any]]) -> Dict[Any, int]:
    """Fold a position stream to one final position per driver number."""
    return {driver: position for driver, (_, _, position) in _fold(records).items()}


def rank_drivers(records: Iterable[Mapping[str, Any]]) -> Dict[int, Any]:
    """Map 1-based rank -> driver number using each driver's terminal position."""
    folded = sorted(_fold(records).items(), key=lambda item: _recency(item[1]))
    ranked: Dict[int, Any] = {}
    for driver, (_, _, position) in folded:
        if position < 1:
            LOG.warning("Ignoring invalid position %s for driver %s", position, driver)
            continue
        if position in ranked:
            LOG.warning(
                "Drivers %s and %s both finished at position %s; keeping %s",
                ranked[position],
                driver,
                position,
                driver,
            )
        ranked[position] = driver
    return dict(sorted(ranked.items()))


def merge_positions(
    ranked: Mapping[int, Any],
    driver_teams: Mapping[Any, Optional[str]],
    constructor_ids: Mapping[str, Any],
) -> Dict[int, PositionEntry]:
    merged: Dict[int, PositionEntry] = {}
    for position, driver in sorted(ranked.items()):
        team_name = driver_teams.get(driver)
        constructor_id = constructor_ids.get(team_name, UNKNOWN) if team_name else UNKNOWN
        merged[position] = PositionEntry(position=position, driver_id=driver, constructor_id=constructor_id)
    return merged


def session_positions(
    client,
    meeting_key: Any,
    label: str,
    driver_teams: Mapping[Any, Optional[str]],
    constructor_ids: Mapping[str, Any],
) -> Dict[int, PositionEntry]:
    session = find_session(client.sessions(meeting_key), label)
    if session is None:
        LOG.info("No %s session for meeting %s", label, meeting_key)
        return {}
    records = client.positions(session["session_key"])
    return merge_positions(rank_drivers(records), driver_teams, constructor_ids)


def serialize_positions(merged: Mapping[int, PositionEntry]) -> str:
    """Position p is stored at index p - 1; empty ranks are null."""
    return json.dumps(
        [
            asdict(merged[position]) if position in merged else None
            for position in range(1, max(merged, default=0) + 1)
        ]
    )


def build_snapshot_row(
    meeting: Mapping[str, Any],
    qualifying: Mapping[int, PositionEntry],
    race: Mapping[int, PositionEntry],
) -> Dict[str, Any]:
    return {
        "meeting_key": meeting.get("meeting_key"),
        "circuit_key": meeting.get("circuit_key"),
        "date": meeting.get("date_start"),
        "year": meeting.get("year"),
        "quali_positions": serialize_positions(qualifying),
        "race_positions": serialize_positions(race),
    }
