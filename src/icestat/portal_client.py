"""Fetches live data from the on-board portal."""

import logging
from typing import Any, Optional

import requests
import urllib3

from .config import Settings
from .exceptions import DecodeError, PortalError
from .models import Connectivity, Position, Status, Trip
from .wire import (
    decode_connectivity,
    decode_position,
    decode_status,
    decode_trip,
    unwrap_jsonp,
)

logger = logging.getLogger(__name__)


class PortalClient:
    """Fetches and decodes the portal's trip, status, position and connectivity feeds."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            settings: Endpoint URLs and timeouts. Defaults to Settings().
            session: Optional requests session to reuse.
        """
        self.settings = settings or Settings()
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")
        self._session.verify = self.settings.verify_tls

        if not self.settings.verify_tls:
            # The portal serves its content with a certificate for a different
            # host, so verification is off unless explicitly requested.
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.info("disabled TLS certificate verification")

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "PortalClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def trip_info(self) -> Trip:
        """Fetch the train's schedule and current position along the route."""
        return decode_trip(self._get_json(self.settings.trip_url))

    def status_info(self) -> Status:
        """Fetch the train's status, including its current speed in km/h."""
        return decode_status(self._get_json(self.settings.status_url))

    def position_info(self) -> Position:
        """Fetch the GPS position and speed of the train."""
        return decode_position(self._get_jsonp(self.settings.position_url))

    def connectivity_info(self) -> Connectivity:
        """Fetch information about the train's upstream internet connections."""
        return decode_connectivity(self._get_jsonp(self.settings.connectivity_url))

    def _get(self, url: str) -> requests.Response:
        logger.debug(f"Fetching {url}")
        try:
            response = self._session.get(url, timeout=self.settings.request_timeout)
        except requests.RequestException as e:
            logger.debug(f"Failed to fetch {url}: {e}")
            raise PortalError(f"failed to fetch {url}: {e}") from e

        if response.status_code >= 400:
            raise PortalError(
                f"portal error {response.status_code} for {url}: {response.text[:200]}"
            )
        return response

    def _get_json(self, url: str) -> Any:
        response = self._get(url)
        try:
            return response.json()
        except ValueError as e:
            snippet = response.text[:200] or "<empty body>"
            raise DecodeError(f"non-JSON response from {url}: {snippet}") from e

    def _get_jsonp(self, url: str) -> Any:
        return unwrap_jsonp(self._get(url).text)
