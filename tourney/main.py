import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from .core.clock import utcnow, isoformat_utc  # noqa: E402
from .core.config import settings  # noqa: E402
from .exception_handlers import register_exception_handlers  # noqa: E402
from .lifespan import lifespan  # noqa: E402
from .middleware.logging import LoggingMiddleware  # noqa: E402
from .middleware.request_id import RequestIDMiddleware  # noqa: E402
from .routers import otp, consent, tournaments, admin  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("tourney")

app = FastAPI(title="Tournament Registration API", version=settings.APP_VERSION, lifespan=lifespan)

# Order: the last added middleware runs first, so request ids exist before logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

cors_origins = settings.cors_origins or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials="*" not in cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(otp.router, prefix="/api")
app.include_router(consent.router, prefix="/api")
app.include_router(tournaments.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/health")
def health():
    return {
        "status": "OK",
        "timestamp": isoformat_utc(utcnow()),
        "version": settings.APP_VERSION,
    }
