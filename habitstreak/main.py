import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from habitstreak.core.config import settings, validate_config  # noqa: E402
from habitstreak.core.logging import configure_logging  # noqa: E402
from habitstreak.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from habitstreak.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from habitstreak.api import groups, habits, health, streaks  # noqa: E402
from habitstreak.features.store import get_store  # noqa: E402

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("habitstreak")
    logger.info(f"Starting habitstreak backend (store={type(get_store()).__name__}, tz={settings.STREAK_TIMEZONE})")
    try:
        yield
    finally:
        logging.getLogger("habitstreak").info("Stopping habitstreak backend...")


app = FastAPI(title="habitstreak", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(habits.router)
app.include_router(streaks.router)
app.include_router(groups.router)
app.include_router(health.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("habitstreak.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
