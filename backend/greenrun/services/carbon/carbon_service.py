import asyncio
from typing import Any

import httpx
import redis.asyncio as redis
import structlog
from pydantic import TypeAdapter, ValidationError

from greenrun.domain.carbon import CarbonDataUnavailableError, CarbonIntensityPoint, RegionRecommendation
from greenrun.settings import Settings

_points_adapter = TypeAdapter(list[CarbonIntensityPoint])


class CarbonIntensityService:
    """Carbon-intensity history per compute region, cached in Redis.

    Each configured region maps to an electricity grid zone. A region whose data
    cannot be fetched contributes nothing rather than failing the whole request.
    """

    _PREFIX = "carbon_intensity"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        redis_client: redis.Redis,
        settings: Settings,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        self._http = http_client
        self._redis = redis_client
        self._settings = settings
        self._logger = logger

    def _cache_key(self, zone: str) -> str:
        return f"{self._PREFIX}:{zone}"

    async def get_region_history(self, region: str) -> list[CarbonIntensityPoint]:
        zone = self._settings.CARBON_ZONES[region]
        cached = await self._read_cache(zone)
        if cached is not None:
            self._logger.debug("Returning cached carbon intensity", region=region, zone=zone)
            return cached

        self._logger.info("Fetching carbon intensity history", region=region, zone=zone)
        payload = await self._fetch(zone)
        points = [
            CarbonIntensityPoint(region=region, created_at=item["datetime"], intensity=item["carbonIntensity"])
            for item in payload.get("history", [])
            if item.get("carbonIntensity") is not None
        ]
        await self._write_cache(zone, points)
        return points

    async def get_intensity(self) -> list[CarbonIntensityPoint]:
        """History of every configured region, flattened; failing regions are skipped."""
        regions = list(self._settings.CARBON_ZONES)
        results = await asyncio.gather(*(self._safe_history(region) for region in regions))
        return [point for points in results for point in points]

    async def recommend_region(self) -> RegionRecommendation:
        """Region whose most recent sample has the lowest carbon intensity."""
        latest: list[CarbonIntensityPoint] = []
        for points in await asyncio.gather(*(self._safe_history(r) for r in self._settings.CARBON_ZONES)):
            if points:
                latest.append(max(points, key=lambda p: p.created_at))
        if not latest:
            raise CarbonDataUnavailableError()

        best = min(latest, key=lambda p: p.intensity)
        return RegionRecommendation(
            region=best.region,
            zone=self._settings.CARBON_ZONES[best.region],
            intensity=best.intensity,
            created_at=best.created_at,
        )

    async def _safe_history(self, region: str) -> list[CarbonIntensityPoint]:
        try:
            return await self.get_region_history(region)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            self._logger.error("Failed to fetch carbon intensity", region=region, error=str(e))
            return []

    async def _fetch(self, zone: str) -> dict[str, Any]:
        headers = {}
        token = self._settings.CARBON_API_TOKENS.get(zone)
        if token:
            headers["auth-token"] = token
        response = await self._http.get(
            f"{self._settings.CARBON_API_BASE_URL}/carbon-intensity/history",
            params={"zone": zone},
            headers=headers,
            timeout=self._settings.CARBON_REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data

    async def _read_cache(self, zone: str) -> list[CarbonIntensityPoint] | None:
        try:
            raw = await self._redis.get(self._cache_key(zone))
        except redis.RedisError:
            self._logger.warning("Carbon cache read failed", zone=zone, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return _points_adapter.validate_json(raw)
        except ValidationError:
            self._logger.warning("Discarding unreadable carbon cache entry", zone=zone)
            return None

    async def _write_cache(self, zone: str, points: list[CarbonIntensityPoint]) -> None:
        try:
            await self._redis.set(
                self._cache_key(zone), _points_adapter.dump_json(points), ex=self._settings.CARBON_CACHE_TTL
            )
        except redis.RedisError:
            self._logger.warning("Carbon cache write failed", zone=zone, exc_info=True)
