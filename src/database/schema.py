from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Engine


class Code(sa.types.TypeDecorator):
    """Text identifier column that accepts integer ids as well as codes."""

    impl = sa.String
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None
        return str(value)


metadata = sa.MetaData()

constructors = sa.Table(
    "constructors",
    metadata,
    sa.Column("constructor_id", Code, primary_key=True),
    sa.Column("constructor_name", sa.String, nullable=False),
)

drivers = sa.Table(
    "drivers",
    metadata,
    sa.Column("driver_id", Code, primary_key=True),
    sa.Column("driver_name", sa.String, nullable=False),
    sa.Column("team_name", sa.String),
    sa.Column("country_code", sa.String),
)

tracks = sa.Table(
    "tracks",
    metadata,
    sa.Column("track_id", Code, primary_key=True),
    sa.Column("track_name", sa.String, nullable=False),
    sa.Column("circuit_key", Code),
    sa.Column("country_name", sa.String),
    sa.Column("location", sa.String),
)

qualifying_results = sa.Table(
    "qualifying_results",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("year", sa.Integer),
    sa.Column("track_code", Code),
    sa.Column("driver_code", Code),
    sa.Column("constructor_code", Code),
    sa.Column("position", Code),
)

race_results = sa.Table(
    "race_results",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("year", sa.Integer),
    sa.Column("track_code", Code),
    sa.Column("driver_code", Code),
    sa.Column("constructor_code", Code),
    sa.Column("position", Code),
    sa.Column("starting_grid", sa.Integer),
)

race_results_raw = sa.Table(
    "race_results_raw",
    metadata,
    sa.Column("race_id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("meeting_key", Code, nullable=False),
    sa.Column("circuit_key", Code, nullable=False),
    sa.Column("date", sa.String, nullable=False),
    sa.Column("year", sa.Integer, nullable=False),
    sa.Column("quali_positions", sa.Text, nullable=False),
    sa.Column("race_positions", sa.Text, nullable=False),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)
