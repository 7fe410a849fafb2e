from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from flashstep.application.scheduler import SchedulingPolicy
from flashstep.domain.constants import (
    AGAIN_INTERVAL_MINUTES,
    DEFAULT_CARD_LIMIT,
    DEFAULT_DAILY_NEW_LIMIT,
    DEFAULT_DAILY_REVIEW_LIMIT,
    EASY_BONUS,
    HARD_FACTOR,
    MAX_INTERVAL_DAYS,
    STEP_INTERVALS_DAYS,
)


def config_file_path() -> Path:
    return Path.home() / ".config/flashstep/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for flashstep.
    Supports loading from:
    1. Environment variables (FLASHSTEP_*)
    2. Config file (~/.config/flashstep/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASHSTEP_",
        extra="ignore",
    )

    # Paths
    deck_path: Path | None = None

    # Daily limits
    daily_new_limit: int = Field(default=DEFAULT_DAILY_NEW_LIMIT, ge=0)
    daily_review_limit: int = Field(default=DEFAULT_DAILY_REVIEW_LIMIT, ge=0)
    card_limit: int | None = Field(default=DEFAULT_CARD_LIMIT, gt=0)
    shuffle: bool = True

    # Scheduling policy
    step_intervals_days: list[float] = Field(default_factory=lambda: list(STEP_INTERVALS_DAYS))
    again_interval_minutes: float = Field(default=AGAIN_INTERVAL_MINUTES, ge=0)
    hard_factor: float = Field(default=HARD_FACTOR, gt=0, le=1)
    easy_bonus: float = Field(default=EASY_BONUS, ge=1)
    max_interval_days: float = Field(default=MAX_INTERVAL_DAYS, gt=0)

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Later sources lose: CLI overrides beat env, env beats the file
        toml_file = config_file_path()
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("deck_path", mode="before")
    @classmethod
    def resolve_deck_path(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("step_intervals_days")
    @classmethod
    def check_step_intervals(cls, v: list[float]) -> list[float]:
        if not v:
            raise ValueError("step_intervals_days must not be empty")
        if any(b < a for a, b in zip(v, v[1:])):
            raise ValueError("step_intervals_days must be non-decreasing")
        return v

    def scheduling_policy(self) -> SchedulingPolicy:
        return SchedulingPolicy(
            step_intervals_days=tuple(self.step_intervals_days),
            again_interval=timedelta(minutes=self.again_interval_minutes),
            hard_factor=self.hard_factor,
            easy_bonus=self.easy_bonus,
            max_interval_days=self.max_interval_days,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/flashstep/config.toml (if exists)
    3. Environment variables (FLASHSTEP_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set; drop them so
    # lower layers still apply.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
