"""HTTP client for the directions (distance matrix) service."""

import logging
import math
from typing import Protocol

import requests

from ..config import DISTANCE_MATRIX_URL
from ..constants import TransportMode
from ..exceptions import DirectionsServiceError
from ..models import Coordinates

logger = logging.getLogger(__name__)


class DirectionsProvider(Protocol):
    """Anything that can estimate travel minutes from one origin to many destinations."""

    def travel_times(
        self, origin: Coordinates, destinations: list[Coordinates], mode: TransportMode
    ) -> list[int | None]:
        """Return minutes per destination, None where no route exists."""
        ...


class DirectionsClient:
    """Client for the Google Distance Matrix API.

    One request covers one origin and up to a batch of destinations.
    """

    def __init__(
        self,
        api_key: str,
        url: str = DISTANCE_MATRIX_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def travel_times(
        self, origin: Coordinates, destinations: list[Coordinates], mode: TransportMode
    ) -> list[int | None]:
        """Fetch travel times in minutes.

        Args:
            origin: Starting point
            destinations: Destinations, one matrix column each
            mode: Transport mode

        Returns:
            Minutes per destination (rounded up), None where the element has no route

        Raises:
            DirectionsServiceError: On transport failure or a non-OK response
        """
        if not destinations:
            return []

        params = {
            "origins": origin.as_param(),
            "destinations": "|".join(d.as_param() for d in destinations),
            "mode": mode.value,
            "key": self.api_key,
        }

        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            raise DirectionsServiceError(f"Directions request failed: {e}") from e
        except ValueError as e:
            raise DirectionsServiceError(f"Directions response is not JSON: {e}") from e

        status = result.get("status")
        if status != "OK":
            raise DirectionsServiceError(
                result.get("error_message", "Directions service error"), status=status
            )

        rows = result.get("rows") or []
        elements = rows[0].get("elements", []) if rows else []
        if len(elements) != len(destinations):
            raise DirectionsServiceError(
                f"Expected {len(destinations)} elements, got {len(elements)}"
            )

        minutes: list[int | None] = []
        for element in elements:
            if element.get("status") == "OK" and "duration" in element:
                minutes.append(math.ceil(element["duration"]["value"] / 60))
            else:
                logger.debug(f"No route for element: {element.get('status')}")
                minutes.append(None)
        return minutes
