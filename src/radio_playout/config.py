"""Configuration management for the radio playout controller."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Application configuration."""

    # Base paths
    BASE_DIR = Path(__file__).resolve().parent.parent.parent
    DATA_DIR = BASE_DIR / "data"
    LOG_DIR = BASE_DIR / "logs"

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/radio.db")

    # Flask settings
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3001"))
    DEBUG = os.getenv("DEBUG", "False").lower() == "true"
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # GitHub release used as media storage
    GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "")
    GITHUB_OWNER = os.getenv("GITHUB_OWNER", "")
    GITHUB_REPO = os.getenv("GITHUB_REPO", "radio-media-files")
    GITHUB_RELEASE_TAG = os.getenv("GITHUB_RELEASE_TAG", "v1.0")

    # Uploads and duration probing
    FFPROBE_BIN = os.getenv("FFPROBE_BIN", "ffprobe")
    DEFAULT_SONG_DURATION = int(os.getenv("DEFAULT_SONG_DURATION", "180"))  # seconds
    DEFAULT_AD_DURATION = int(os.getenv("DEFAULT_AD_DURATION", "30"))  # seconds
    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "100"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = Path(os.getenv("LOG_FILE", str(LOG_DIR / "radio.log")))

    @classmethod
    def ensure_directories(cls):
        """Create necessary directories if they don't exist."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

config = Config()
