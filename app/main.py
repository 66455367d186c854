import asyncio
import contextlib
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from loguru import logger
from app.core.config import settings
from app.core.config.redis import get_redis_client, close_redis_client
from app.core.exceptions import MarketplaceError
from app.api.routes import (
    auth_router, products_router, bids_router,
    wallet_router, feedback_router, notifications_router
)
from app.core.database import DatabaseManager
from app.services.init_service import InitService
from app.tasks.auction import run_settlement_sweep, settlement_loop


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.app_name} v{settings.version}...")

    await DatabaseManager.init()
    await InitService.create_default_admin()

    redis = await get_redis_client()
    if settings.settlement_on_startup:
        try:
            await run_settlement_sweep(redis)
        except Exception as e:
            logger.exception(f"Startup settlement sweep failed: {e}")

    sweep_task = None
    if settings.settlement_in_process:
        sweep_task = asyncio.create_task(settlement_loop(redis))

    try:
        yield
    finally:
        logger.info("Shutting down...")
        if sweep_task:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep_task
        await close_redis_client()
        await DatabaseManager.close()

app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan,
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"]
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(products_router, prefix="/products", tags=["Products"])
app.include_router(bids_router, prefix="/bids", tags=["Bids"])
app.include_router(wallet_router, prefix="/wallet", tags=["Wallet"])
app.include_router(feedback_router, prefix="/feedback", tags=["Feedback"])
app.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])

async def main():
    """ Main function to run FastAPI with multiple workers. """
    config = uvicorn.Config(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        reload=settings.debug
    )
    server = uvicorn.Server(config)
    await server.serve()

if __name__ == "__main__":
    asyncio.run(main())
