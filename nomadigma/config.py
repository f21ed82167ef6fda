# nomadigma/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

class Config:
    """Configuration settings for the web service"""

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")

    # Admin settings: "user_id:token" pairs, a bare token maps to user "admin"
    ADMIN_TOKENS: Dict[str, str] = {
        entry.strip().rpartition(":")[2]: entry.strip().rpartition(":")[0] or "admin"
        for entry in os.getenv("ADMIN_TOKENS", "").split(",")
        if entry.strip()
    }

    # Translation settings
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_API_URL: str = os.getenv(
        "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    TRANSLATION_TIMEOUT: float = float(os.getenv("TRANSLATION_TIMEOUT", "60"))

    # Storage settings
    STORAGE_CONTAINER: str = os.getenv("STORAGE_CONTAINER", "nomadigma")
    PUBLIC_URL: str = os.getenv("PUBLIC_URL", "http://localhost:8080/uploads").rstrip("/")
    SITE_URL: str = os.getenv("SITE_URL", "http://localhost:8080").rstrip("/")

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Other settings
    TIMEZONE: str = os.getenv("TZ", "America/Mexico_City")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    STATIC_DIR = BASE_DIR / "static"
    UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(STATIC_DIR / "uploads")))
    LOG_DIR = BASE_DIR / "logs"

def setup_logging():
    """Configure logging settings"""
    Config.LOG_DIR.mkdir(exist_ok=True)

    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_file = Config.LOG_DIR / "nomadigma.log"

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
