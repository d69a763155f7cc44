from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from src.database.schema import metadata


LOG = logging.getLogger("f1_ingest.writer")


@dataclass
class WriteFailure:
    record: Dict[str, Any]
    error: str
    statement: str = ""


@dataclass
class WriteResult:
    """Outcome of one insert-if-absent batch."""

    table: str
    inserted: int = 0
    skipped: int = 0
    failures: List[WriteFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def attempted(self) -> int:
        return self.inserted + self.skipped + self.failed


class RecordWriter:
    """Writes uniform record batches one row at a time.

    A record is inserted only when no row with the same values in every
    column of the batch already exists. Each record runs in its own
    transaction, so a failing record is logged and skipped without
    touching the rows written before or after it.
    """

    def __init__(self, engine: sa.Engine) -> None:
        self.engine = engine

    def _table(self, table_name: str) -> sa.Table:
        try:
            return metadata.tables[table_name]
        except KeyError:
            raise ValueError(f"Unknown table: {table_name}") from None

    def _insert(self, table: sa.Table):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            return pg_insert(table).on_conflict_do_nothing()
        if dialect == "sqlite":
            return sqlite_insert(table).on_conflict_do_nothing()
        return sa.insert(table)

    @staticmethod
    def _exists(table: sa.Table, values: Dict[str, Any]) -> sa.Select:
        conditions = [
            table.c[column].is_(None) if value is None else table.c[column] == value
            for column, value in values.items()
        ]
        return sa.select(sa.literal(1)).select_from(table).where(*conditions).limit(1)

    def insert_if_absent(self, table_name: str, records: Sequence[Dict[str, Any]]) -> WriteResult:
        result = WriteResult(table=table_name)
        if not records:
            LOG.info("No data to insert into %s", table_name)
            return result

        table = self._table(table_name)
        columns = list(records[0].keys())
        unknown = [column for column in columns if column not in table.c]
        if unknown:
            raise ValueError(f"Unknown columns for {table_name}: {', '.join(unknown)}")

        for record in records:
            if set(record) != set(columns):
                LOG.error(
                    "Skipping record for %s with columns %s (expected %s)",
                    table_name,
                    sorted(record),
                    columns,
                )
                result.failures.append(WriteFailure(dict(record), "record columns differ from batch"))
                continue
            values = {column: record[column] for column in columns}
            stmt = self._insert(table).values(values)
            try:
                with self.engine.begin() as conn:
                    if conn.execute(self._exists(table, values)).first() is not None:
                        result.skipped += 1
                        continue
                    outcome = conn.execute(stmt)
            except SQLAlchemyError as exc:
                statement = str(stmt.compile(dialect=self.engine.dialect))
                LOG.error("Error inserting into %s: %s", table_name, exc)
                LOG.error("Query: %s | values: %s", statement, values)
                result.failures.append(WriteFailure(values, str(exc), statement))
                continue
            if outcome.rowcount == 0:
                result.skipped += 1
            else:
                result.inserted += 1

        LOG.info(
            "Inserted %s rows into %s (%s already present, %s failed)",
            result.inserted,
            table_name,
            result.skipped,
            result.failed,
        )
        return result

    def known_surrogates(self, table_name: str, id_column: str, name_column: str) -> Dict[str, int]:
        """Return name -> integer id for rows whose id is numeric."""
        table = self._table(table_name)
        stmt = sa.select(table.c[id_column], table.c[name_column])
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return {
            name: int(identifier)
            for identifier, name in rows
            if identifier is not None and str(identifier).isdigit()
        }
