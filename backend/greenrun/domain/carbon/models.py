from pydantic.dataclasses import dataclass


@dataclass
class CarbonIntensityPoint:
    """One carbon-intensity sample (gCO2eq/kWh) for a compute region."""

    region: str
    created_at: str
    intensity: float


@dataclass
class RegionRecommendation:
    region: str
    zone: str
    intensity: float
    created_at: str
