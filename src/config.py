"""Configuration module for the school magazine portal.

This module provides centralized configuration management, including directory
paths, API server settings, offline cache settings, and workflow limits.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory (server database, local cache, uploaded images)
DATA_DIR = Path(os.getenv("MAGAZINE_DATA_DIR", str(ROOT_DIR / "data")))

# Public images directory; base64 uploads are written here
IMAGES_DIR_NAME = "images"
IMAGES_DIR = Path(os.getenv("IMAGES_DIR", str(DATA_DIR / IMAGES_DIR_NAME)))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/magazine.db")

# Seed the sample users and articles when the server database is empty
SEED_SAMPLE_DATA: bool = os.getenv("SEED_SAMPLE_DATA", "true").lower() == "true"

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "10000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5500,http://127.0.0.1:5500,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# POST /api/users is open in the deployed service. Setting this to "true"
# requires the "user-role: admin" header on user creation.
REQUIRE_ADMIN_FOR_USER_CREATION: bool = (
    os.getenv("REQUIRE_ADMIN_FOR_USER_CREATION", "false").lower() == "true"
)

# --- Client Configuration ---

# Base URL of the Remote Content Service, including the /api prefix
API_BASE_URL: str = os.getenv("API_BASE_URL", f"http://localhost:{API_PORT}/api")

# Seconds before a remote call is treated as unavailable
REMOTE_TIMEOUT: float = float(os.getenv("REMOTE_TIMEOUT", "5.0"))

# Per-device key/value store holding the mirrored snapshot
CACHE_DB_PATH = Path(os.getenv("CACHE_DB_PATH", str(DATA_DIR / "local_cache.db")))

# Snapshot keys written on every sync and every offline write
SNAPSHOT_KEYS = ("users", "articles", "notifications")

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- Workflow Configuration ---

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
CONTENT_MIN_LENGTH = 20
CONTENT_MAX_LENGTH = 2000
COMMENT_MAX_LENGTH = 500

# Pending articles waiting this many days or more are flagged as urgent
URGENT_REVIEW_DAYS = 7

# --- User Administration Configuration ---

NAME_MIN_LENGTH = 2
USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 3

# Password assigned by an administrator's reset action
DEFAULT_RESET_PASSWORD: str = os.getenv("DEFAULT_RESET_PASSWORD", "123")

# Where notifications about articles send the reader
ARTICLES_PAGE_LINK = "articles-page"
ARTICLE_DETAIL_LINK = "article-detail-page"
