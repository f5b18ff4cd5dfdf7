import logging
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from contextlib import asynccontextmanager

from app.config import settings
from app.database import init_db
from app.middleware import add_cors_middleware
from app.routes import auth, notifications, scores

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database tables ready")
    yield

app = FastAPI(title="School Records System",
              description="Academic score records for students, with notifications on change",
              version="1.0.0",
              lifespan=lifespan)
add_cors_middleware(app)


@app.get("/", include_in_schema=False)
async def root():
    """
    Root endpoint that redirects to the API documentation
    """
    return RedirectResponse(url="/docs")

app.include_router(auth.router)
app.include_router(scores.router)
app.include_router(notifications.router)
