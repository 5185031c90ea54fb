from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List

from fuelsplit.core.participants import Participants

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Fuel Split API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Split fuel costs by km for two drivers"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "fuel_split"
    STATE_COLLECTION: str = "fuel_split_state"
    HISTORY_COLLECTION: str = "fuel_split_entries"
    # Transactions need a replica set
    MONGODB_TRANSACTIONS: bool = False

    # Participants
    PARTICIPANTS: List[str] = ["Amit", "John"]
    ACCESS_CODES: Dict[str, str] = {"1337": "Amit", "1234": "John"}

    # Ledger defaults
    DEFAULT_PRICE_PER_KM: float = 0.5

    # Settlement message formatting
    LOCALE: str = "he_IL"
    CURRENCY: str = "ILS"
    CURRENCY_SYMBOL: str = "₪"
    TIMEZONE: str = "Asia/Jerusalem"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

    def participants(self) -> Participants:
        """Build the validated participant pair from PARTICIPANTS and ACCESS_CODES."""
        return Participants.from_config(self.PARTICIPANTS, self.ACCESS_CODES)

settings = Settings()
