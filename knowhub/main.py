import logging
from fastapi import FastAPI
from knowhub.config import get_settings
from knowhub.api.routes import knowledge

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Set log level for knowhub modules
logger = logging.getLogger("knowhub")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(
    title=settings.app_name,
    description="People and expertise knowledge engine",
    version="0.1.0",
)

app.include_router(knowledge.router, prefix="/api/knowledge", tags=["Knowledge"])


@app.get("/")
async def root():
    return {
        "message": "Welcome to Knowhub - people and expertise knowledge engine",
        "version": "0.1.0",
        "endpoints": {
            "knowledge": "/api/knowledge",
            "health": "/health",
            "docs": "/docs",
            "redoc": "/redoc",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}
