import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accessgate.core.config import cors_origins, settings, validate_config
from accessgate.core.logging import configure_logging
from accessgate.core.middleware.request_id import RequestIdMiddleware
from accessgate.core.validation import validate_env
from accessgate.core.errors import register_error_handlers
from accessgate.api import access, health

configure_logging(settings.ENV)
validate_env()
validate_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("accessgate")
    logger.info("Starting accessgate...")
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logging.getLogger("accessgate").info("Stopping accessgate...")


app = FastAPI(title="accessgate", version="0.1.0", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(access.router)
app.include_router(health.root_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("accessgate.main:app", host="0.0.0.0", port=8000, reload=settings.ENV == "development")
