import json
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from anamnesis.domain.constants import (
    DEFAULT_LEARN_STEPS,
    DEFAULT_LEECH_THRESHOLD,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_RELEARN_STEPS,
    DEFAULT_ROLLOVER_HOUR,
    INITIAL_EASE_FACTOR,
)
from anamnesis.domain.scheduling.models import DeckConfig, NewCardOrder

CONFIG_FILES = [
    Path(".config/anamnesis/config.toml"),
    Path(".anamnesis.toml"),
]


def find_config_file() -> Path | None:
    """Return the first existing settings file under the user's home, if any."""
    for relative in CONFIG_FILES:
        candidate = Path.home() / relative
        if candidate.exists():
            return candidate
    return None


class DeckOptions(BaseModel):
    """Validated deck options, as read from settings files, env vars or JSON."""

    learn_steps: list[float] = Field(default_factory=lambda: list(DEFAULT_LEARN_STEPS))
    relearn_steps: list[float] = Field(default_factory=lambda: list(DEFAULT_RELEARN_STEPS))

    cap_answer_time: int = 60
    visible_time: int = 0
    new_per_day: int = Field(default=20, ge=0)
    reviews_per_day: int = Field(default=200, ge=0)
    bury_new: bool = False
    bury_reviews: bool = False

    initial_ease: float = INITIAL_EASE_FACTOR
    easy_multiplier: float = Field(default=1.3, gt=0)
    hard_multiplier: float = Field(default=1.2, gt=0)
    lapse_multiplier: float = Field(default=0.0, ge=0)
    interval_multiplier: float = Field(default=1.0, gt=0)

    maximum_review_interval: int = Field(default=DEFAULT_MAXIMUM_INTERVAL, ge=1)
    minimum_review_interval: int = Field(default=1, ge=1)
    graduating_interval_good: int = Field(default=1, ge=1)
    graduating_interval_easy: int = Field(default=4, ge=1)

    new_card_order: NewCardOrder = NewCardOrder.DUE
    leech_threshold: int = Field(default=DEFAULT_LEECH_THRESHOLD, ge=0)

    @field_validator("learn_steps", "relearn_steps")
    @classmethod
    def check_steps(cls, v: list[float]) -> list[float]:
        if any(step < 0 for step in v):
            raise ValueError("steps must be non-negative minute delays")
        return v

    @field_validator("new_card_order", mode="before")
    @classmethod
    def parse_order(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        if v.isdigit():
            return int(v)
        try:
            return NewCardOrder[v.upper()]
        except KeyError:
            raise ValueError(f"unknown new card order: {v!r}") from None

    @model_validator(mode="after")
    def check_interval_bounds(self) -> "DeckOptions":
        if self.minimum_review_interval > self.maximum_review_interval:
            raise ValueError("minimum_review_interval exceeds maximum_review_interval")
        return self

    def to_domain(self) -> DeckConfig:
        data = self.model_dump()
        data["learn_steps"] = tuple(self.learn_steps)
        data["relearn_steps"] = tuple(self.relearn_steps)
        return DeckConfig(**data)


class AppConfig(BaseSettings):
    """
    Configuration model for anamnesis.
    Supports loading from:
    1. Manual overrides (CLI)
    2. Environment variables (ANAMNESIS_*, nested with __)
    3. Config file (~/.config/anamnesis/config.toml or ~/.anamnesis.toml)
    """

    model_config = SettingsConfigDict(
        env_prefix="ANAMNESIS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Day context
    utc_offset_minutes: int | None = None
    rollover_hour: int = Field(default=DEFAULT_ROLLOVER_HOUR, ge=0, le=23)

    # Reproducible fuzzing
    seed: int | None = None

    log_level: str = "INFO"

    deck: DeckOptions = Field(default_factory=DeckOptions)

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

        toml_file = find_config_file()
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        return str(v).upper()


def load_deck_options(path: Path) -> DeckOptions:
    """Read deck options from a TOML or JSON file."""
    if path.suffix == ".toml":
        with path.open("rb") as f:
            data = tomllib.load(f)
        # Accept both a bare table and a settings-style [deck] table.
        data = data.get("deck", data)
    else:
        data = json.loads(path.read_text(encoding="utf-8"))
    return DeckOptions.model_validate(data)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/anamnesis/config.toml (if exists)
    3. Environment variables (ANAMNESIS_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
