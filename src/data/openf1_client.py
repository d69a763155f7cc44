from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


LOG = logging.getLogger("f1_ingest.openf1")


class OpenF1Client:
    """Thin client for the OpenF1 REST API.

    Every request degrades to an empty list on HTTP or network errors so a
    single missing endpoint never stops an ingestion run.
    """

    def __init__(
        self,
        base_url: str = "https://api.openf1.org/v1",
        timeout: float = 30.0,
        retries: int = 3,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(
                max_retries=Retry(
                    total=retries,
                    backoff_factor=1.0,
                    status_forcelist=[429, 500, 502, 503, 504],
                    allowed_methods=["GET"],
                )
            )
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            session.headers.update({"Accept": "application/json"})
        self.session = session

    def get(self, endpoint: str, **params: Any) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = {key: value for key, value in params.items() if value is not None}
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            LOG.warning("OpenF1 request failed for %s %s: %s", endpoint, query, exc)
            return []
        if not isinstance(payload, list):
            LOG.warning("Unexpected OpenF1 payload for %s %s: %r", endpoint, query, payload)
            return []
        return payload

    def drivers(self, year: int) -> List[Dict[str, Any]]:
        return self.get("drivers", year=year)

    def meetings(self, year: int) -> List[Dict[str, Any]]:
        return self.get("meetings", year=year)

    def sessions(self, meeting_key: Any) -> List[Dict[str, Any]]:
        return self.get("sessions", meeting_key=meeting_key)

    def positions(self, session_key: Any) -> List[Dict[str, Any]]:
        return self.get("position", session_key=session_key)
