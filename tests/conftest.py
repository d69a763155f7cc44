from typing import Any, Dict, List

import pytest
import sqlalchemy as sa

from src.database.schema import metadata


@pytest.fixture
def engine(tmp_path) -> sa.Engine:
    db_path = tmp_path / "test.db"
    engine = sa.create_engine(f"sqlite:///{db_path}", future=True)
    metadata.create_all(engine)
    yield engine
    engine.dispose()


class FakeOpenF1:
    """In-memory stand-in for OpenF1Client."""

    def __init__(
        self,
        drivers: List[Dict[str, Any]],
        meetings: List[Dict[str, Any]],
        sessions: Dict[Any, List[Dict[str, Any]]],
        positions: Dict[Any, List[Dict[str, Any]]],
    ) -> None:
        self._drivers = drivers
        self._meetings = meetings
        self._sessions = sessions
        self._positions = positions

    def drivers(self, year: int) -> List[Dict[str, Any]]:
        return [driver for driver in self._drivers if driver.get("year", year) == year]

    def meetings(self, year: int) -> List[Dict[str, Any]]:
        return [meeting for meeting in self._meetings if meeting["year"] == year]

    def sessions(self, meeting_key: Any) -> List[Dict[str, Any]]:
        return self._sessions.get(meeting_key, [])

    def positions(self, session_key: Any) -> List[Dict[str, Any]]:
        return self._positions.get(session_key, [])


class FakeFileStore:
    def __init__(self, files: Dict[str, List[Dict[str, Any]]]) -> None:
        self.files = files
        self.requested: List[str] = []

    def read_rows(self, filename: str) -> List[Dict[str, Any]]:
        self.requested.append(filename)
        return self.files.get(filename, [])


@pytest.fixture
def openf1() -> FakeOpenF1:
    return FakeOpenF1(
        drivers=[
            {"driver_number": 1, "full_name": "Max Verstappen", "team_name": "Red Bull Racing", "country_code": "NED"},
            {"driver_number": 11, "full_name": "Sergio Perez", "team_name": "Red Bull Racing", "country_code": "MEX"},
            {"driver_number": 44, "full_name": "Lewis Hamilton", "team_name": "Mercedes", "country_code": "GBR"},
            {"driver_number": 99, "full_name": "Test Driver", "team_name": None, "country_code": None},
        ],
        meetings=[
            {
                "meeting_key": 1140,
                "circuit_key": 63,
                "circuit_short_name": "Sakhir",
                "country_name": "Bahrain",
                "location": "Sakhir",
                "date_start": "2023-03-03T11:30:00+00:00",
                "year": 2023,
            },
            {
                "meeting_key": 1141,
                "circuit_key": 149,
                "circuit_short_name": "Jeddah",
                "country_name": "Saudi Arabia",
                "location": "Jeddah",
                "date_start": "2023-03-17T13:30:00+00:00",
                "year": 2023,
            },
        ],
        sessions={
            1140: [
                {"session_key": 7762, "session_name": "Practice 1"},
                {"session_key": 7763, "session_name": "Qualifying"},
                {"session_key": 7953, "session_name": "Race"},
            ],
            1141: [{"session_key": 7770, "session_name": "Practice 1"}],
        },
        positions={
            7763: [
                {"driver_number": 1, "position": 2, "date": "2023-03-04T15:00:00+00:00"},
                {"driver_number": 11, "position": 1, "date": "2023-03-04T15:00:00+00:00"},
                {"driver_number": 1, "position": 1, "date": "2023-03-04T16:00:00+00:00"},
                {"driver_number": 11, "position": 2, "date": "2023-03-04T16:00:00+00:00"},
            ],
            7953: [
                {"driver_number": 1, "position": 1, "date": "2023-03-05T15:00:00+00:00"},
                {"driver_number": 44, "position": 5, "date": "2023-03-05T15:00:00+00:00"},
                {"driver_number": 99, "position": 3, "date": "2023-03-05T15:00:00+00:00"},
            ],
        },
    )


@pytest.fixture
def file_store() -> FakeFileStore:
    return FakeFileStore(
        {
            "Unique codes Drivers.csv": [
                {"Driver Name": "Max Verstappen", "Unique Code": "VER"},
                {"Driver Name": "Lewis Hamilton", "Unique Code": "HAM"},
            ],
            "Unique codes Constructors.csv": [
                {"Constructor Name": "Red Bull Racing Honda RBPT", "Unique Code": "RBR"},
                {"Constructor Name": "Mercedes", "Unique Code": "MER"},
            ],
            "Unique codes Tracks.csv": [
                {"Track Name": "Bahrain", "Unique Code": "BHR"},
            ],
            "Formula1_2023season_qualifyingResults.csv": [
                {"Track": "Bahrain", "Position": 1, "Driver": "Max Verstappen", "Team": "Red Bull Racing Honda RBPT"},
                {"Track": "Bahrain", "Position": 2, "Driver": "Lewis Hamilton", "Team": "Mercedes"},
                {"Track": "Bahrain", "Position": 3, "Driver": "Nobody", "Team": "Unknown Racing"},
            ],
            "Formula1_2023season_raceResults.csv": [
                {"Track": "Bahrain", "Position": 1, "Driver": "Max Verstappen", "Team": "Red Bull Racing Honda RBPT", "Starting Grid": 1},
                {"Track": "Bahrain", "Position": "NC", "Driver": "Lewis Hamilton", "Team": "Mercedes", "Starting Grid": 2.0},
            ],
        }
    )
