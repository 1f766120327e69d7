from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    convert_workers: int = Field(4, alias="CONVERT_WORKERS", ge=1)
    gap_policy: str = Field("error", alias="GAP_POLICY", pattern="^(error|zero)$")
    strict_threshold_order: bool = Field(False, alias="STRICT_THRESHOLD_ORDER")
    gradient_width: int = Field(1000, alias="GRADIENT_WIDTH", gt=0)
    gradient_height: int = Field(1000, alias="GRADIENT_HEIGHT", gt=0)
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    max_upload_bytes: int = Field(64 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")


settings = Settings()
