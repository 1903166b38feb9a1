# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import ALLOWED_ORIGINS, LOG_LEVEL, TOKEN_SWEEPER_ENABLED
from database import init_db
from downloads import router as downloads_router
from errors import DownloadError, InvalidRequest
from subscriptions import router as subscriptions_router
from sweeper import TokenSweeper

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    logging.info("LUO FILM download service starting up...")
    init_db()
    sweeper = TokenSweeper()
    if TOKEN_SWEEPER_ENABLED:
        sweeper.start()
    else:
        logging.info("Token sweeper disabled (TOKEN_SWEEPER_ENABLED=false).")
    app.state.sweeper = sweeper
    yield
    # Shutdown logic
    await sweeper.stop()
    logging.info("LUO FILM download service shut down.")


app = FastAPI(title="LUO FILM Downloads", lifespan=lifespan)

# --- Middleware ---
logging.info(f"CORS middleware configured with origins: {ALLOWED_ORIGINS}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error rendering ---
@app.exception_handler(DownloadError)
async def download_error_handler(request: Request, exc: DownloadError):
    return JSONResponse(content=exc.to_dict(), status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logging.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    error = InvalidRequest()
    return JSONResponse(content=error.to_dict(), status_code=error.status_code)

app.include_router(downloads_router)
app.include_router(subscriptions_router)
