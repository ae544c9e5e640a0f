import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shopfloor.core.config import settings
from shopfloor.core.errors import ShopFloorError
from shopfloor.core.logging_config import configure_logging
from shopfloor.api.v1.api import api_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# CORS: use CORS_ORIGINS from env for the desktop shell; default to localhost for dev
_default_origins = [
    "http://127.0.0.1:1420", "http://localhost:1420",
    "tauri://localhost",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShopFloorError)
def shopfloor_error_handler(request: Request, exc: ShopFloorError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}
