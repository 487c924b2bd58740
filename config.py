"""
Configuration settings for the connection finder search pipeline.
"""
import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Backend graph/path service configuration
API_CONFIG = {
    "base_url": os.environ.get("GRAPH_API_URL", "http://localhost:8080"),
    "search_path": os.environ.get("GRAPH_API_SEARCH_PATH", "/api/search-actors-graph"),
    "path_query_path": os.environ.get("GRAPH_API_PATH_QUERY_PATH", "/api/shortest-path"),
    "photo_path": os.environ.get("GRAPH_API_PHOTO_PATH", "/api/actor-photo"),
    "status_path": os.environ.get("GRAPH_API_STATUS_PATH", "/api/graph-status"),
    "photo_timeout": float(os.environ.get("PHOTO_TIMEOUT", "10")),  # in seconds
}

# Request cache configuration
CACHE_CONFIG = {
    "ttl": float(os.environ.get("CACHE_TTL", "60")),  # in seconds
    "capacity": int(os.environ.get("CACHE_CAPACITY", "100")),
    "sweep_interval": float(os.environ.get("CACHE_SWEEP_INTERVAL", "30")),  # in seconds
    "persist_path": os.environ.get("CACHE_PERSIST_PATH", ""),
}

# Typeahead and submission configuration
SEARCH_CONFIG = {
    "debounce_seconds": float(os.environ.get("DEBOUNCE_SECONDS", "0.3")),
    "min_query_length": int(os.environ.get("MIN_QUERY_LENGTH", "2")),
    "max_suggestions": int(os.environ.get("MAX_SUGGESTIONS", "20")),
    "resolution_timeout": float(os.environ.get("RESOLUTION_TIMEOUT", "8")),
    "path_query_timeout": float(os.environ.get("PATH_QUERY_TIMEOUT", "60")),
    "max_path_results": int(os.environ.get("MAX_PATH_RESULTS", "5")),
    "slow_loading_after": float(os.environ.get("SLOW_LOADING_AFTER", "5")),
}

# Application configuration
APP_CONFIG = {
    "debug": os.environ.get("DEBUG", "False").lower() == "true",
    "log_level": os.environ.get("LOG_LEVEL", "INFO"),
}

# Feature flags
FEATURES = {
    "fetch_photos": os.environ.get("FETCH_PHOTOS", "True").lower() == "true",
}

def get_config() -> Dict[str, Any]:
    """Return the complete configuration dictionary."""
    return {
        "api": API_CONFIG,
        "cache": CACHE_CONFIG,
        "search": SEARCH_CONFIG,
        "app": APP_CONFIG,
        "features": FEATURES
    }
