import os
from dotenv import load_dotenv

load_dotenv()

_DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")


class Settings:
    # Storage
    DB_PATH: str = os.getenv("JOURNAL_DB_PATH", os.path.join(_DATA_DIR, "journal.db"))
    PREFS_PATH: str = os.getenv("JOURNAL_PREFS_PATH", os.path.join(_DATA_DIR, "preferences.json"))

    # Journal
    TRADE_FETCH_LIMIT: int = int(os.getenv("TRADE_FETCH_LIMIT", "200"))
    DELETE_BATCH_SIZE: int = int(os.getenv("DELETE_BATCH_SIZE", "500"))
    DEFAULT_INITIAL_CAPITAL: float = float(os.getenv("DEFAULT_INITIAL_CAPITAL", "1000"))

    # Server
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def validate(self):
        errors = []
        if self.TRADE_FETCH_LIMIT <= 0:
            errors.append("TRADE_FETCH_LIMIT must be positive")
        if not 0 < self.DELETE_BATCH_SIZE <= 500:
            errors.append("DELETE_BATCH_SIZE must be between 1 and 500")
        return errors


settings = Settings()
