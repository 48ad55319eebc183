from greenrun.domain.carbon.exceptions import CarbonDataUnavailableError
from greenrun.domain.carbon.models import CarbonIntensityPoint, RegionRecommendation

__all__ = ["CarbonDataUnavailableError", "CarbonIntensityPoint", "RegionRecommendation"]
