"""
Basic configuration

- Data directory for the JSON key-value store
- Backup history capacity and export format version
- CORS origins for development and production
- Supports environment variables (loaded from .env by app.main)
"""
import os

# Default localhost origins for development
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]

# Get additional CORS origins from environment variable
ADDITIONAL_CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []

# Filter out empty strings from split
ADDITIONAL_CORS_ORIGINS = [origin.strip() for origin in ADDITIONAL_CORS_ORIGINS if origin.strip()]

# Combine default and additional origins
CORS_ORIGINS = DEFAULT_CORS_ORIGINS + ADDITIONAL_CORS_ORIGINS

# Directory holding one JSON file per storage key
DATA_DIR = os.getenv("DENTALCARE_DATA_DIR", "data")

# Number of snapshots kept in backup history (most recent first)
BACKUP_HISTORY_LIMIT = int(os.getenv("BACKUP_HISTORY_LIMIT", "10"))

# Read cache lifetime for the storage layer
STORAGE_CACHE_TTL_SECONDS = int(os.getenv("STORAGE_CACHE_TTL_SECONDS", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Written into every exported snapshot
EXPORT_VERSION = "1.0.0"
