"""
Cache Demo Route

GET {API_BASE_PATH}/test/cache simulates a slow query behind a 30 second
response cache. The first call takes about a second and answers with
``X-Cache: MISS``; repeats within 30 seconds return the identical body
(same timestamp, same random number) with ``X-Cache: HIT``.
"""

import asyncio
import random
from datetime import datetime, timezone

from fastapi import APIRouter

from listing_cache.application.api.cache_route import cached_route

DEMO_CACHE_TTL_SECONDS = 30
SIMULATED_LATENCY_SECONDS = 1.0

router = APIRouter(prefix="/test", tags=["Demo"], route_class=cached_route(DEMO_CACHE_TTL_SECONDS))


@router.get("/cache")
async def cached_demo():
    """Slow response that is cached for 30 seconds."""
    await asyncio.sleep(SIMULATED_LATENCY_SECONDS)
    return {
        "message": f"This response should be cached for {DEMO_CACHE_TTL_SECONDS} seconds",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "random": random.random(),
    }
