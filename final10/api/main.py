"""
FastAPI app assembly: logging, middleware, router wiring and the small
endpoints that span resource modules.
"""
import logging
import os

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from final10.api.auctions import router as auctions_router  # noqa: E402
from final10.api.audits import router as audits_router  # noqa: E402
from final10.api.auth import router as auth_router  # noqa: E402
from final10.api.feed import router as feed_router  # noqa: E402
from final10.api.levels import router as levels_router  # noqa: E402
from final10.api.points import leaderboard_router, router as points_router  # noqa: E402
from final10.api.promo_codes import router as promo_codes_router  # noqa: E402
from final10.api.shield import router as shield_router  # noqa: E402
from final10.api.tasks import router as tasks_router  # noqa: E402
from final10.api.users import router as users_router  # noqa: E402
from final10.db.database import init_sqlite_schema  # noqa: E402
from final10.services.points_service import public_config  # noqa: E402

app = FastAPI(
    title="Final10 Service",
    description="Auction marketplace API: listings, bidding, points, levels, promo codes and Shield fraud signals.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

_DEFAULT_ORIGINS = "http://localhost,http://localhost:3000,http://localhost:8000"
origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()]
client_url = (os.getenv("CLIENT_URL") or "").rstrip("/")
if client_url and client_url not in origins:
    origins.append(client_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error: method=%s path=%s", request.method, request.url.path)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


@app.on_event("startup")
def _ensure_sqlite_schema() -> None:
    init_sqlite_schema()


api = APIRouter(prefix="/api")


@api.get("/config")
def get_public_config():
    return public_config()


@api.get("/health")
def api_health_check():
    return {"status": "ok"}


for _router in (
    auth_router,
    users_router,
    auctions_router,
    points_router,
    leaderboard_router,
    levels_router,
    tasks_router,
    promo_codes_router,
    feed_router,
    shield_router,
    audits_router,
):
    api.include_router(_router)

app.include_router(api)


@app.get("/health")
def health_check():
    return {"status": "ok"}
