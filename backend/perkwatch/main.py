import logging
import pathlib
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import perkwatch.models  # noqa: F401  (register tables on Base.metadata)
from perkwatch.config import settings
from perkwatch.database import Base, engine, get_db
from perkwatch.routers import cards, perks, preferences, prompts, reminders

logger = logging.getLogger(__name__)


def _ensure_sqlite_dir() -> None:
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        pathlib.Path(url.database).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _ensure_sqlite_dir()
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", make_url(settings.database_url).render_as_string(hide_password=True))
    yield


app = FastAPI(title="perkwatch API", version="1.0.0", lifespan=lifespan)


def _cors_kwargs() -> dict:
    """Build CORSMiddleware origin kwargs based on ALLOWED_ORIGINS setting."""
    raw = settings.allowed_origins.strip()
    if raw == "*" or not raw:
        return {"allow_origin_regex": ".*"}
    origins = []
    for origin in raw.split(","):
        origin = origin.strip()
        if not origin:
            continue
        parsed = urlparse(origin)
        if parsed.scheme and parsed.netloc:
            origins.append(origin)
        else:
            logger.warning("Skipping invalid ALLOWED_ORIGINS entry (missing scheme/host): %s", origin)
    return {"allow_origins": origins}


app.add_middleware(
    CORSMiddleware,
    **_cors_kwargs(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(cards.router)
app.include_router(perks.router)
app.include_router(preferences.router)
app.include_router(prompts.router)
app.include_router(reminders.router)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(status_code=503, content={"status": "error", "detail": "Database unreachable"})
    return {"status": "ok"}
