import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nikovplan.api import admin, auth, guest
from nikovplan.config.settings import configure_logging, get_app_config
from nikovplan.config.supabase import get_supabase_config, test_connection
from nikovplan.services.exceptions import (
    BatchApplyError,
    StoreError,
    StoreNotConfiguredError,
)

configure_logging()
logger = logging.getLogger(__name__)

config = get_app_config()

# Create FastAPI app
app = FastAPI(title="Nikov Plan API", debug=config.debug)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(admin.page_router)
app.include_router(admin.router)
app.include_router(guest.router)


@app.on_event("startup")
async def startup_db_client():
    # The app keeps running on demo data when Supabase is unreachable
    if await test_connection():
        logger.info("Supabase connection initialized successfully")
    else:
        logger.warning("Running without a live Supabase connection")


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if isinstance(exc, StoreNotConfiguredError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_502_BAD_GATEWAY

    content = {"detail": exc.user_message}
    if isinstance(exc, BatchApplyError):
        content["written_hours"] = exc.written_hours
        content["failed_hour"] = exc.failed_hour

    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content=content)


@app.get("/")
async def health_check():
    return {
        "status": "healthy",
        "service": "Nikov Plan API",
        "store_configured": get_supabase_config().is_configured,
        "sign_in": "/api/auth/discord/login",
        "guest": "/api/guest",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("nikovplan.app:app", host="0.0.0.0", port=8000, reload=config.debug)
