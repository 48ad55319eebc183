import json

import fakeredis
import fakeredis.aioredis
import httpx
import pytest
import pytest_asyncio
import structlog

from greenrun.domain.carbon import CarbonDataUnavailableError, CarbonIntensityPoint
from greenrun.services.carbon import CarbonIntensityService
from greenrun.settings import Settings

pytestmark = pytest.mark.unit

_logger = structlog.get_logger("test.services.carbon")

HISTORY = {
    "US-MIDA-PJM": [
        {"datetime": "2026-01-01T00:00:00.000Z", "carbonIntensity": 300},
        {"datetime": "2026-01-01T01:00:00.000Z", "carbonIntensity": 420},
    ],
    "GB": [
        {"datetime": "2026-01-01T00:00:00.000Z", "carbonIntensity": 500},
        {"datetime": "2026-01-01T01:00:00.000Z", "carbonIntensity": 180},
        {"datetime": "2026-01-01T02:00:00.000Z", "carbonIntensity": None},
    ],
}


class CarbonApi:
    """Canned carbon history API; zones in `failing` answer 500."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.failing: set[str] = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        zone = request.url.params["zone"]
        if zone in self.failing:
            return httpx.Response(500, json={"error": "upstream"})
        return httpx.Response(200, json={"zone": zone, "history": HISTORY[zone]})


@pytest.fixture
def api() -> CarbonApi:
    return CarbonApi()


@pytest_asyncio.fixture
async def service(api: CarbonApi, test_settings: Settings):
    async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
        redis_client = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer())
        yield CarbonIntensityService(client, redis_client, test_settings, _logger)


@pytest.mark.asyncio
async def test_region_history_maps_points_and_skips_nulls(service: CarbonIntensityService, api: CarbonApi) -> None:
    points = await service.get_region_history("eu-west-2")

    assert points == [
        CarbonIntensityPoint(region="eu-west-2", created_at="2026-01-01T00:00:00.000Z", intensity=500),
        CarbonIntensityPoint(region="eu-west-2", created_at="2026-01-01T01:00:00.000Z", intensity=180),
    ]
    request = api.requests[0]
    assert request.url.path == "/v3/carbon-intensity/history"
    assert request.headers["auth-token"] == "token-gb"


@pytest.mark.asyncio
async def test_history_is_served_from_cache(service: CarbonIntensityService, api: CarbonApi) -> None:
    first = await service.get_region_history("us-east-1")
    second = await service.get_region_history("us-east-1")

    assert first == second
    assert len(api.requests) == 1


@pytest.mark.asyncio
async def test_corrupt_cache_entry_is_refetched(test_settings: Settings, api: CarbonApi) -> None:
    redis_client = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer())
    await redis_client.set("carbon_intensity:GB", json.dumps({"not": "a list"}))

    async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
        service = CarbonIntensityService(client, redis_client, test_settings, _logger)
        points = await service.get_region_history("eu-west-2")

    assert len(points) == 2
    assert len(api.requests) == 1


@pytest.mark.asyncio
async def test_intensity_flattens_all_regions(service: CarbonIntensityService) -> None:
    points = await service.get_intensity()

    assert {point.region for point in points} == {"us-east-1", "eu-west-2"}
    assert len(points) == 4


@pytest.mark.asyncio
async def test_failing_region_contributes_nothing(service: CarbonIntensityService, api: CarbonApi) -> None:
    api.failing.add("GB")

    points = await service.get_intensity()

    assert {point.region for point in points} == {"us-east-1"}


@pytest.mark.asyncio
async def test_recommendation_uses_latest_sample(service: CarbonIntensityService) -> None:
    recommendation = await service.recommend_region()

    assert recommendation.region == "eu-west-2"
    assert recommendation.zone == "GB"
    assert recommendation.intensity == 180
    assert recommendation.created_at == "2026-01-01T01:00:00.000Z"


@pytest.mark.asyncio
async def test_recommendation_unavailable_when_every_region_fails(
    service: CarbonIntensityService, api: CarbonApi
) -> None:
    api.failing.update({"GB", "US-MIDA-PJM"})

    with pytest.raises(CarbonDataUnavailableError):
        await service.recommend_region()
