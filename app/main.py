"""
FastAPI app

- Local, single-practice data service (no auth, one user)
- One DataManager per process, stored on app.state and injected into routes
- CORS configured for a local frontend
- Basic health check
"""
import logging
from pathlib import Path
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file before reading config
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / '.env')

from app.api import router
from app.core.config import CORS_ORIGINS, DATA_DIR, LOG_LEVEL
from app.api.middleware import TimingMiddleware
from app.database.storage import StorageError
from app.services.data_manager import build_data_manager

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="DentalCare")
app.state.data_manager = build_data_manager(DATA_DIR)
logger.info(f"Using data directory {Path(DATA_DIR).resolve()}")

# Logs request duration and status for all requests
app.add_middleware(TimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    """
    Write failures are never retried; report them so the user can act
    """
    logger.error(f"Storage write failed for {exc.key} on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Failed to save data"})


@app.get("/")
async def root():
    """
    Basic health check
    """
    return {"status": "ok"}
