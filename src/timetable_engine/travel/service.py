"""Travel time estimation with caching, batching and fallbacks."""

import logging

from ..config import EngineConfig
from ..constants import DEFAULT_TRAVEL_MINUTES, DIRECTIONS_BATCH_SIZE, TransportMode
from ..exceptions import DirectionsServiceError
from ..models import Coordinates
from .cache import TravelTimeCache
from .client import DirectionsClient, DirectionsProvider

logger = logging.getLogger(__name__)


class TravelTimeService:
    """Estimates travel minutes between locations.

    Lookups go to the cache first. Misses are sent to the provider in
    batches. When the provider fails, a value cached under another mode is
    used, and failing that a fixed default.
    """

    def __init__(
        self,
        provider: DirectionsProvider,
        cache: TravelTimeCache | None = None,
        default_minutes: int = DEFAULT_TRAVEL_MINUTES,
        batch_size: int = DIRECTIONS_BATCH_SIZE,
    ):
        self.provider = provider
        self.cache = cache if cache is not None else TravelTimeCache()
        self.default_minutes = default_minutes
        self.batch_size = batch_size
        self.provider_calls = 0
        self.fallbacks = 0

    @classmethod
    def from_config(
        cls, config: EngineConfig, cache: TravelTimeCache | None = None
    ) -> "TravelTimeService":
        """Build a service backed by the HTTP directions client."""
        client = DirectionsClient(
            api_key=config.directions_api_key,
            url=config.directions_url,
            timeout=config.request_timeout_seconds,
        )
        if cache is None:
            cache = TravelTimeCache(
                ttl_seconds=config.cache_ttl_seconds, max_size=config.cache_max_size
            )
        return cls(
            provider=client,
            cache=cache,
            default_minutes=config.default_travel_minutes,
            batch_size=config.batch_size,
        )

    def estimate_travel_time(
        self, origin: Coordinates, destination: Coordinates, mode: TransportMode
    ) -> int:
        """Travel minutes from origin to destination."""
        return self.estimate_travel_times_batch(origin, [destination], mode)[0]

    def estimate_travel_times_batch(
        self, origin: Coordinates, destinations: list[Coordinates], mode: TransportMode
    ) -> list[int]:
        """Travel minutes from one origin to each destination.

        Args:
            origin: Starting point
            destinations: Destinations in caller order
            mode: Transport mode

        Returns:
            Minutes per destination, in the same order
        """
        results: list[int | None] = [self.cache.get(origin, d, mode) for d in destinations]
        missing = [i for i, minutes in enumerate(results) if minutes is None]

        for start in range(0, len(missing), self.batch_size):
            chunk = missing[start : start + self.batch_size]
            fetched = self._fetch(origin, [destinations[i] for i in chunk], mode)
            for i, minutes in zip(chunk, fetched):
                if minutes is not None:
                    self.cache.set(origin, destinations[i], mode, minutes)
                    results[i] = minutes
                else:
                    results[i] = self._fallback(origin, destinations[i], mode)

        return [int(minutes) for minutes in results]

    def _fetch(
        self, origin: Coordinates, destinations: list[Coordinates], mode: TransportMode
    ) -> list[int | None]:
        self.provider_calls += 1
        try:
            return self.provider.travel_times(origin, destinations, mode)
        except DirectionsServiceError as e:
            logger.warning(
                f"Directions lookup for {len(destinations)} destination(s) failed, "
                f"using fallback estimates: {e}"
            )
            return [None] * len(destinations)

    def _fallback(self, origin: Coordinates, destination: Coordinates, mode: TransportMode) -> int:
        self.fallbacks += 1
        cached = self.cache.get_from_any_mode(origin, destination, exclude=mode)
        if cached is not None:
            return cached
        logger.debug(
            f"No travel time for {destination.as_param()} ({mode.value}), "
            f"assuming {self.default_minutes}min"
        )
        return self.default_minutes
