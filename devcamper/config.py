# devcamper/config.py
import os, json
import logging
from functools import lru_cache
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator
import firebase_admin
from firebase_admin import credentials, firestore

load_dotenv()


class Settings(BaseModel):
    file_upload_path: str = "./public/uploads"
    file_max_upload_limit: int = 1000000
    geocoder_provider: str = "mapquest"
    geocoder_api_key: Optional[str] = None
    geocoder_timeout: float = 10.0
    cors_origins: List[str] = ["http://localhost:5173"]
    log_level: str = "INFO"

    @field_validator("geocoder_provider")
    @classmethod
    def check_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in ("mapquest", "openstreetmap"):
            raise ValueError(f"Unsupported geocoder provider: {v}")
        return v

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "file_upload_path": os.getenv("FILE_UPLOAD_PATH"),
            # Pydantic coerces to int and rejects "1mb"-style values at startup
            "file_max_upload_limit": os.getenv("FILE_MAX_UPLOAD_LIMIT"),
            "geocoder_provider": os.getenv("GEOCODER_PROVIDER"),
            "geocoder_api_key": os.getenv("GEOCODER_API_KEY"),
            "geocoder_timeout": os.getenv("GEOCODER_TIMEOUT"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        if os.getenv("CORS_ORIGINS"):
            values["cors_origins"] = [o.strip() for o in os.getenv("CORS_ORIGINS").split(",") if o.strip()]
        return cls(**{k: v for k, v in values.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def setup_logging(level: str = "INFO"):
    logger = logging.getLogger("devcamper")
    logger.setLevel(level.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def init_firebase():
    if os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        cred = credentials.ApplicationDefault()
    elif os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON"):
        cred = credentials.Certificate(json.loads(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON")))
    elif os.path.exists("./serviceAccountKey.json"):
        cred = credentials.Certificate("./serviceAccountKey.json")
    else:
        raise RuntimeError("Firebase credentials not found.")

    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app(cred)
    return firestore.client()


@lru_cache
def get_db():
    return init_firebase()
