from __future__ import annotations

import io
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pandas as pd
import requests


LOG = logging.getLogger("f1_ingest.files")


def frame_to_rows(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a sheet to row dicts keyed by header, with blanks as None."""
    frame = frame.dropna(how="all")
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")


def parse_sheet(content: bytes, filename: str) -> pd.DataFrame:
    if filename.lower().endswith(".csv"):
        try:
            return pd.read_csv(io.BytesIO(content), encoding="utf-8-sig")
        except UnicodeDecodeError:
            LOG.info("%s is not UTF-8, reading it as cp1252", filename)
            return pd.read_csv(io.BytesIO(content), encoding="cp1252", encoding_errors="replace")
    return pd.read_excel(io.BytesIO(content), sheet_name=0)


class FileStore:
    """Reads season spreadsheets and lookup tables from a raw file host."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, filename: str) -> Optional[bytes]:
        url = self.base_url + quote(filename)
        LOG.info("Fetching %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            LOG.warning("Failed to fetch %s: %s", filename, exc)
            return None
        return response.content

    def read_rows(self, filename: str) -> List[Dict[str, Any]]:
        content = self.fetch(filename)
        if content is None:
            return []
        try:
            frame = parse_sheet(content, filename)
        except (ValueError, pd.errors.ParserError) as exc:
            LOG.warning("Could not parse %s: %s", filename, exc)
            return []
        rows = frame_to_rows(frame)
        LOG.info("Read %s rows from %s", len(rows), filename)
        return rows
