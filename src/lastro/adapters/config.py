# src/lastro/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lastro.domain.money import MoneyContext
from lastro.domain.study import UserThresholds


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # Decimal arithmetic
    DECIMAL_PRECISION: int = Field(default=20)
    MONEY_PLACES: int = Field(default=2)
    PERCENT_PLACES: int = Field(default=4)

    # Viability defaults for users without saved settings
    DEFAULT_ROI_VIABLE_THRESHOLD: float = Field(default=30.0)
    DEFAULT_ROI_ATTENTION_THRESHOLD: float = Field(default=10.0)

    # -----------------------------
    # Planned value sync
    # -----------------------------
    PV_INSERT_CHUNK_SIZE: int = Field(default=500)

    model_config = SettingsConfigDict(
        env_prefix="LASTRO_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "DEFAULT_ROI_VIABLE_THRESHOLD",
        "DEFAULT_ROI_ATTENTION_THRESHOLD",
        mode="before",
    )
    @classmethod
    def _percent_like(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "").replace(",", ".")
        try:
            return float(v)
        except Exception as err:
            raise ValueError("threshold must be numeric or percent-like") from err

    @field_validator("DECIMAL_PRECISION", "PV_INSERT_CHUNK_SIZE")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("MONEY_PLACES", "PERCENT_PLACES")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


def money_context_from_config(cfg: AppConfig) -> MoneyContext:
    return MoneyContext(
        precision=cfg.DECIMAL_PRECISION,
        money_places=cfg.MONEY_PLACES,
        percent_places=cfg.PERCENT_PLACES,
    )


def default_thresholds_from_config(cfg: AppConfig) -> UserThresholds:
    return UserThresholds(
        roi_viable_threshold=cfg.DEFAULT_ROI_VIABLE_THRESHOLD,
        roi_attention_threshold=cfg.DEFAULT_ROI_ATTENTION_THRESHOLD,
    )


config = AppConfig()
