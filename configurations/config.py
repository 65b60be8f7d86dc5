"""Configuration settings for the route progress engine."""
import os
from typing import Dict

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Config:
    # Hosted table API (collection_schedules, truck_status, collection_status, accounts)
    DATA_API_BASE_URL: str = os.getenv("DATA_API_BASE_URL", "http://localhost:54321/rest/v1")
    DATA_API_KEY: str = os.getenv("DATA_API_KEY", "")
    DATA_API_TIMEOUT_SECONDS: int = int(os.getenv("DATA_API_TIMEOUT_SECONDS", "30"))

    # Proximity gate for "truck is on this route"
    PROXIMITY_THRESHOLD_KM: float = float(os.getenv("PROXIMITY_THRESHOLD_KM", "0.1"))

    # Refresh loop
    REFRESH_INTERVAL_SECONDS: int = int(os.getenv("REFRESH_INTERVAL_SECONDS", "30"))
    MAX_WORKERS: int = int(os.getenv("MAX_WORKERS", "8"))

    # Display colour per route state
    STATUS_COLORS: Dict[str, str] = {
        "done": "#10b981",         # green
        "skipped": "#ef4444",      # red
        "in-progress": "#f59e0b",  # amber
        "today": "#3b82f6",        # blue
        "scheduled": "#6b7280",    # grey
    }

    # API settings
    API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("API_PORT", "8080"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
