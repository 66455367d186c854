import asyncio
from typing import Optional
from celery import shared_task
from redis.asyncio import Redis
from loguru import logger

from app.core.config import settings
from app.core.database import DatabaseManager
from app.services.auction.settlement_service import SettlementService
from app.services.auction.sweep_lock import SweepLock


async def run_settlement_sweep(redis: Redis) -> Optional[dict]:
    """One settlement pass, skipped when another process holds the sweep lock"""
    lock = SweepLock(redis, ttl_seconds=settings.settlement_lock_ttl_seconds)
    if not await lock.acquire():
        logger.info("Settlement sweep already running elsewhere, skipping")
        return None

    try:
        report = await SettlementService.settle_expired_auctions()
        return report.as_dict()
    finally:
        await lock.release()


async def settlement_loop(redis: Redis, interval: Optional[int] = None):
    """In-process alternative to the Celery beat schedule"""
    interval = interval or settings.settlement_interval_seconds
    logger.info(f"Settlement loop started, every {interval}s")
    while True:
        await asyncio.sleep(interval)
        try:
            await run_settlement_sweep(redis)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Settlement sweep failed: {e}")


@shared_task(
    name="app.tasks.auction.settle_expired_auctions",
    soft_time_limit=settings.settlement_lock_ttl_seconds - 30,
    time_limit=settings.settlement_lock_ttl_seconds
)
def settle_expired_auctions():
    async def run():
        await DatabaseManager.init()
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        try:
            return await run_settlement_sweep(redis)
        finally:
            await redis.aclose()
            await DatabaseManager.close()

    return asyncio.run(run())
