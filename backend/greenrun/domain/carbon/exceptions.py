from greenrun.domain.exceptions import ServiceUnavailableError


class CarbonDataUnavailableError(ServiceUnavailableError):
    """Raised when no configured region produced carbon-intensity data."""

    def __init__(self) -> None:
        super().__init__("Carbon intensity data is unavailable for all configured regions")
