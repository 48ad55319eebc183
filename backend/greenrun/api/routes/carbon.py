from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter

from greenrun.domain.carbon import CarbonIntensityPoint, RegionRecommendation
from greenrun.services.carbon import CarbonIntensityService

router = APIRouter(prefix="/carbon", tags=["carbon"], route_class=DishkaRoute)


@router.get("/intensity", response_model=list[CarbonIntensityPoint])
async def get_carbon_intensity(carbon_service: FromDishka[CarbonIntensityService]) -> list[CarbonIntensityPoint]:
    """Carbon-intensity history of every configured region."""
    return await carbon_service.get_intensity()


@router.get("/recommendation", response_model=RegionRecommendation)
async def get_region_recommendation(carbon_service: FromDishka[CarbonIntensityService]) -> RegionRecommendation:
    """The region with the lowest current carbon intensity."""
    return await carbon_service.recommend_region()
