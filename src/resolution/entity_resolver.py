"""Name -> code resolution for drivers, constructors and tracks.

Spreadsheet rows are resolved through lookup tables keyed by the exact
upstream name. OpenF1 carries no constructor or track identity, so those ids
come from a ``SurrogateRegistry`` instead.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

UNKNOWN = "UNKNOWN"

YEAR_PATTERN = re.compile(r"Formula1_(\d{4})")


def build_lookup(rows: Iterable[Mapping[str, Any]], name_column: str, code_column: str) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for row in rows:
        name = row.get(name_column)
        code = row.get(code_column)
        if name is None or code is None:
            continue
        lookup[str(name)] = code
    return lookup


def resolve(name: Any, mapping: Mapping[str, Any]) -> Any:
    if name is None:
        return UNKNOWN
    return mapping.get(str(name), UNKNOWN)


@dataclass
class LookupTables:
    drivers: Dict[str, str] = field(default_factory=dict)
    constructors: Dict[str, str] = field(default_factory=dict)
    tracks: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_rows(
        cls,
        driver_rows: Iterable[Mapping[str, Any]],
        constructor_rows: Iterable[Mapping[str, Any]],
        track_rows: Iterable[Mapping[str, Any]],
    ) -> "LookupTables":
        return cls(
            drivers=build_lookup(driver_rows, "Driver Name", "Unique Code"),
            constructors=build_lookup(constructor_rows, "Constructor Name", "Unique Code"),
            tracks=build_lookup(track_rows, "Track Name", "Unique Code"),
        )

    def driver_rows(self) -> List[Dict[str, Any]]:
        return [{"driver_id": code, "driver_name": name} for name, code in self.drivers.items()]

    def constructor_rows(self) -> List[Dict[str, Any]]:
        return [
            {"constructor_id": code, "constructor_name": name}
            for name, code in self.constructors.items()
        ]

    def track_rows(self) -> List[Dict[str, Any]]:
        return [{"track_id": code, "track_name": name} for name, code in self.tracks.items()]


class SurrogateRegistry:
    """Assigns integer ids to names and never reassigns them."""

    def __init__(self, known: Optional[Mapping[str, int]] = None) -> None:
        self._ids: Dict[str, int] = dict(known or {})
        self._next = max(self._ids.values(), default=0) + 1

    def __contains__(self, name: str) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def get(self, name: str) -> Optional[int]:
        return self._ids.get(name)

    def register(self, name: str) -> int:
        if name not in self._ids:
            self._ids[name] = self._next
            self._next += 1
        return self._ids[name]

    def register_all(self, names: Iterable[Optional[str]]) -> Dict[str, int]:
        # Sorted so new ids do not depend on upstream response order.
        distinct = sorted({name for name in names if name})
        return {name: self.register(name) for name in distinct}

    def as_dict(self) -> Dict[str, int]:
        return dict(self._ids)


def extract_year(filename: str) -> Optional[int]:
    match = YEAR_PATTERN.search(filename)
    return int(match.group(1)) if match else None


def to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or not number.is_integer():
        return None
    return int(number)


def clean_position(value: Any) -> Any:
    """Normalize spreadsheet positions: 3.0 -> 3, 'NC' stays 'NC'."""
    number = to_int(value)
    if number is not None:
        return number
    if value is None:
        return None
    return str(value).strip() or None


def build_result_records(
    rows: Iterable[Mapping[str, Any]],
    year: Optional[int],
    lookups: LookupTables,
    with_grid: bool = False,
) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for row in rows:
        record = {
            "year": year,
            "track_code": resolve(row.get("Track"), lookups.tracks),
            "driver_code": resolve(row.get("Driver"), lookups.drivers),
            "constructor_code": resolve(row.get("Team"), lookups.constructors),
            "position": clean_position(row.get("Position")),
        }
        if with_grid:
            record["starting_grid"] = to_int(row.get("Starting Grid"))
        records.append(record)
    return records


def build_driver_rows(driver_records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    rows: Dict[Any, Dict[str, Any]] = {}
    for driver in driver_records:
        number = driver.get("driver_number")
        name = driver.get("full_name")
        if number is None or not name:
            continue
        rows[number] = {
            "driver_id": number,
            "driver_name": name,
            "team_name": driver.get("team_name"),
            "country_code": driver.get("country_code"),
        }
    return list(rows.values())


def driver_team_map(driver_records: Iterable[Mapping[str, Any]]) -> Dict[Any, Optional[str]]:
    teams: Dict[Any, Optional[str]] = {}
    for driver in driver_records:
        number = driver.get("driver_number")
        if number is not None:
            teams[number] = driver.get("team_name")
    return teams


def build_constructor_rows(
    driver_records: Iterable[Mapping[str, Any]],
    registry: SurrogateRegistry,
) -> List[Dict[str, Any]]:
    assigned = registry.register_all(driver.get("team_name") for driver in driver_records)
    return [
        {"constructor_id": constructor_id, "constructor_name": name}
        for name, constructor_id in sorted(assigned.items(), key=lambda item: item[1])
    ]


def build_track_rows(
    meetings: Iterable[Mapping[str, Any]],
    registry: SurrogateRegistry,
) -> List[Dict[str, Any]]:
    meetings = [meeting for meeting in meetings if meeting.get("circuit_short_name")]
    registry.register_all(meeting["circuit_short_name"] for meeting in meetings)
    rows: Dict[str, Dict[str, Any]] = {}
    for meeting in meetings:
        name = meeting["circuit_short_name"]
        rows.setdefault(
            name,
            {
                "track_id": registry.get(name),
                "track_name": name,
                "circuit_key": meeting.get("circuit_key"),
                "country_name": meeting.get("country_name"),
                "location": meeting.get("location"),
            },
        )
    return list(rows.values())
