import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    # API Keys
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")

    # LLM Settings
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "5"))

    # Session store
    REDIS_URL = os.getenv("REDIS_URL")
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", str(60 * 60 * 24)))
    MAX_HISTORY_ENTRIES = int(os.getenv("MAX_HISTORY_ENTRIES", "15"))

    # Catalog
    # Blank means the bundled sample next to this file
    CATALOG_PATH = os.getenv("CATALOG_PATH") or str(Path(__file__).resolve().parent / "data" / "products.json")

    # Results
    DEFAULT_RESULT_COUNT = 4
    MAX_RESULT_COUNT = 5

    # Server
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGIN", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", "4000"))


def llm_enabled() -> bool:
    """The external extractor is only consulted when a key is configured"""
    return bool(Config.GEMINI_API_KEY)
