import asyncio
import sys
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from loguru import logger
from livebid.core.config import settings
from livebid.core.config.kafka import KafkaConfig
from livebid.core.database import DatabaseManager
from livebid.api.routes import (
    auctions_router, bids_router, admin_router, websocket_router
)
from livebid.services.auction.service import AuctionService
from livebid.services.kafka.producer import KafkaProducer

logger.remove()
logger.add(sys.stderr, level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.app_name} v{settings.version}...")

    db = DatabaseManager()
    await db.init()

    producer = KafkaProducer() if KafkaConfig.is_enabled() else None
    if producer is None:
        logger.info("Kafka activity feed disabled")

    service = AuctionService.build(producer=producer)
    app.state.auction_service = service
    if settings.scheduler_enabled:
        await service.scheduler.start()

    try:
        yield
    finally:
        logger.info("Shutting down...")
        await service.scheduler.stop()
        await service.broadcaster.drain()
        if producer is not None:
            producer.flush()
        await db.close()

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
)

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

app.include_router(
    auctions_router,
    prefix="/auctions",
    tags=["Auctions"]
)

app.include_router(
    bids_router,
    prefix="/bids",
    tags=["Bids"]
)

app.include_router(
    admin_router,
    prefix="/admin",
    tags=["Admin"]
)

app.include_router(
    websocket_router,
    tags=["Realtime"]
)

async def main():
    """Run the API; the scheduler and broadcaster are in-process, so one worker"""
    config = uvicorn.Config(
        "livebid.main:app",
        host=settings.host,
        port=settings.port,
        workers=1,
        reload=settings.debug
    )
    server = uvicorn.Server(config)
    await server.serve()

if __name__ == "__main__":
    asyncio.run(main())
