from greenrun.services.carbon.carbon_service import CarbonIntensityService

__all__ = ["CarbonIntensityService"]
