"""Travel time estimation for the travel-aware assignment mode."""

from .cache import TravelTimeCache
from .client import DirectionsClient, DirectionsProvider
from .service import TravelTimeService

__all__ = [
    "DirectionsClient",
    "DirectionsProvider",
    "TravelTimeCache",
    "TravelTimeService",
]
