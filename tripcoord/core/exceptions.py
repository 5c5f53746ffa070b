class TripCoordError(Exception):
    """Base exception for the trip coordination engine."""

    pass


class StoreError(TripCoordError):
    """Raised when document store operations fail."""

    pass


class TripNotFoundError(TripCoordError):
    """Raised when a service is asked about a trip that does not exist."""

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"Trip '{trip_id}' not found")
