from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    SERVICE_NAME: str = "visa-eligibility-engine"
    LOG_LEVEL: str = "INFO"

    # Schema registry
    VISA_SCHEMA_PATH: str | None = None  # None -> bundled registry/data/visa_schemas.yaml
    VISA_SCHEMA_STRICT: bool = False  # raise for unregistered visa/application types

    # =================================================================
    # SCORING
    # =================================================================
    EVALUATION_RECOMMENDATION_LIMIT: int = 10
    CATEGORY_RECOMMENDATION_THRESHOLD: float = 60.0  # percent of category max
    STRENGTH_THRESHOLD: float = 80.0  # percent of category max

    # =================================================================
    # DOCUMENTS
    # =================================================================
    DOCUMENT_EXPIRING_SOON_DAYS: int = 30
    DOCUMENT_RENEWAL_WINDOW_DAYS: int = 90

    # =================================================================
    # REPRESENTATIVE MATCHING
    # =================================================================
    MATCH_RESULT_LIMIT: int = 3
    MATCH_BUDGET_TOLERANCE: float = 0.0  # 0.2 lets fee minimums run 20% over budget

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def schema_path(self) -> Path | None:
        """Registry file override, if one is configured."""
        if self.VISA_SCHEMA_PATH:
            return Path(self.VISA_SCHEMA_PATH).expanduser()
        return None

    def get_document_expiry_windows(self) -> dict:
        """Get document expiry warning windows in days."""
        return {
            "expiring_soon": self.DOCUMENT_EXPIRING_SOON_DAYS,
            "renewal_recommended": self.DOCUMENT_RENEWAL_WINDOW_DAYS,
        }


settings = Settings()
