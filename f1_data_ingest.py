import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import sqlalchemy as sa
from tqdm import tqdm

from config.config import Settings, get_settings
from src.data.file_store import FileStore
from src.data.openf1_client import OpenF1Client
from src.database.connection import get_engine, wait_for_database
from src.database.schema import create_schema, metadata
from src.database.writer import RecordWriter, WriteResult
from src.resolution.entity_resolver import (
    LookupTables,
    SurrogateRegistry,
    build_constructor_rows,
    build_driver_rows,
    build_result_records,
    build_track_rows,
    driver_team_map,
    extract_year,
)
from src.resolution.position_merger import build_snapshot_row, session_positions


LOG = logging.getLogger("f1_ingest")


@dataclass
class IngestReport:
    results: List[WriteResult] = field(default_factory=list)

    def add(self, result: WriteResult) -> WriteResult:
        self.results.append(result)
        return result

    def totals(self) -> Dict[str, Dict[str, int]]:
        totals: Dict[str, Dict[str, int]] = {}
        for result in self.results:
            entry = totals.setdefault(result.table, {"inserted": 0, "skipped": 0, "failed": 0})
            entry["inserted"] += result.inserted
            entry["skipped"] += result.skipped
            entry["failed"] += result.failed
        return totals

    @property
    def failed(self) -> int:
        return sum(result.failed for result in self.results)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def load_lookups(files: FileStore, settings: Settings) -> LookupTables:
    LOG.info("Loading mapping data...")
    return LookupTables.from_rows(
        files.read_rows(settings.driver_lookup_file),
        files.read_rows(settings.constructor_lookup_file),
        files.read_rows(settings.track_lookup_file),
    )


def ingest_result_file(
    files: FileStore,
    writer: RecordWriter,
    filename: str,
    table_name: str,
    lookups: LookupTables,
) -> WriteResult:
    year = extract_year(filename)
    if year is None:
        LOG.warning("Could not determine season year from %s", filename)
    rows = files.read_rows(filename)
    records = build_result_records(rows, year, lookups, with_grid=table_name == "race_results")
    return writer.insert_if_absent(table_name, records)


def ingest_files(
    files: FileStore,
    writer: RecordWriter,
    settings: Settings,
    report: IngestReport,
) -> LookupTables:
    lookups = load_lookups(files, settings)
    for filename in settings.qualifying_files:
        LOG.info("Processing qualifying file: %s", filename)
        report.add(ingest_result_file(files, writer, filename, "qualifying_results", lookups))
    for filename in settings.race_files:
        LOG.info("Processing race file: %s", filename)
        report.add(ingest_result_file(files, writer, filename, "race_results", lookups))

    report.add(writer.insert_if_absent("constructors", lookups.constructor_rows()))
    report.add(writer.insert_if_absent("drivers", lookups.driver_rows()))
    report.add(writer.insert_if_absent("tracks", lookups.track_rows()))
    return lookups


def ingest_api_season(
    client: OpenF1Client,
    writer: RecordWriter,
    year: int,
    report: IngestReport,
) -> None:
    driver_records = client.drivers(year)
    meetings = client.meetings(year)
    if not driver_records and not meetings:
        LOG.warning("No OpenF1 data found for %s", year)
        return

    constructor_registry = SurrogateRegistry(
        writer.known_surrogates("constructors", "constructor_id", "constructor_name")
    )
    track_registry = SurrogateRegistry(writer.known_surrogates("tracks", "track_id", "track_name"))

    report.add(writer.insert_if_absent("constructors", build_constructor_rows(driver_records, constructor_registry)))
    report.add(writer.insert_if_absent("drivers", build_driver_rows(driver_records)))
    report.add(writer.insert_if_absent("tracks", build_track_rows(meetings, track_registry)))

    driver_teams = driver_team_map(driver_records)
    constructor_ids = constructor_registry.as_dict()
    snapshots = []
    for meeting in tqdm(meetings, desc=f"Season {year}", unit="meeting"):
        meeting_key = meeting.get("meeting_key")
        qualifying = session_positions(client, meeting_key, "Qualifying", driver_teams, constructor_ids)
        race = session_positions(client, meeting_key, "Race", driver_teams, constructor_ids)
        snapshots.append(build_snapshot_row(meeting, qualifying, race))
    report.add(writer.insert_if_absent("race_results_raw", snapshots))


def run_pipeline(
    engine: sa.Engine,
    settings: Settings,
    files: Optional[FileStore] = None,
    client: Optional[OpenF1Client] = None,
) -> IngestReport:
    files = files or FileStore(settings.files_base_url, timeout=settings.request_timeout)
    client = client or OpenF1Client(
        settings.openf1_base_url,
        timeout=settings.request_timeout,
        retries=settings.request_retries,
    )
    writer = RecordWriter(engine)
    report = IngestReport()

    create_schema(engine)
    LOG.info("Database tables ready: %s", ", ".join(sorted(metadata.tables)))

    ingest_files(files, writer, settings, report)
    for year in settings.api_seasons:
        LOG.info("Starting OpenF1 ingestion for season %s", year)
        ingest_api_season(client, writer, year, report)

    for table, counts in sorted(report.totals().items()):
        LOG.info(
            "%s: %s inserted, %s already present, %s failed",
            table,
            counts["inserted"],
            counts["skipped"],
            counts["failed"],
        )
    LOG.info("F1 data processing complete!")
    return report


def main(settings: Optional[Settings] = None) -> int:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    engine = get_engine(settings.database_url)
    try:
        if not wait_for_database(engine, settings.db_connect_attempts, settings.db_connect_interval):
            LOG.error("Failed to connect to the database after %s attempts. Exiting.", settings.db_connect_attempts)
            return 1
        try:
            run_pipeline(engine, settings)
        except Exception:  # noqa: BLE001
            LOG.exception("Fatal error while processing F1 data")
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
