"""
Runtime configuration read from environment variables.

A ``.env`` file in the working directory is loaded first (python-dotenv),
so local development can keep credentials out of the shell. Every value
has a default suitable for running the service against a local SQLite file.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _build_database_url() -> str:
    """
    Resolve the SQLAlchemy database URL.

    Priority:
    1. DATABASE_URL, used verbatim
    2. DB_HOST (+ DB_USER, DB_PASSWORD, DB_PORT, DB_NAME) -> PostgreSQL URL
    3. Local SQLite file fallback
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    host = os.getenv("DB_HOST")
    if host:
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "")
        port = os.getenv("DB_PORT", "5432")
        name = os.getenv("DB_NAME", "student_management")
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

    return "sqlite:///./student_records.db"


DATABASE_URL = _build_database_url()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Listing defaults
DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
DEFAULT_STATUS = "Enrolled"
