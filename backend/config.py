import os
from typing import List

from dotenv import load_dotenv


load_dotenv()

DEFAULT_DATA_DIR = "./data"


def get_env(key: str, default: str = "") -> str:
    return os.getenv(key, default).strip()


def waitlist_config() -> dict:
    return {
        "data_dir": get_env("WAITLIST_DATA_DIR", DEFAULT_DATA_DIR),
        "storage_key": get_env("WAITLIST_STORAGE_KEY", "waitlist_v1"),
    }


def app_config() -> dict:
    return {
        "title": get_env("APP_TITLE", "Waitlist"),
        "log_level": get_env("LOG_LEVEL", "INFO"),
        "cors_origins": cors_origins(),
    }


def cors_origins() -> List[str]:
    raw = get_env("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
