from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UndeclaredPolicy(str, Enum):
    """Disposition of input keys matching neither a property nor the index."""
    IGNORE = "ignore"
    DELETE = "delete"
    REJECT = "reject"

    @property
    def strictness(self) -> int:
        return {"ignore": 0, "delete": 1, "reject": 2}[self.value]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHAPEGUARD_", env_file=".env", extra="ignore")

    # Schema defaults
    UNDECLARED_POLICY: UndeclaredPolicy = UndeclaredPolicy.IGNORE
    EXACT_OPTIONAL_PROPERTY_TYPES: bool = True
    DEFENSIVE_DEFAULTS: bool = False
    MAX_DEPTH: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


class SchemaConfig(BaseModel):
    """Configuration consumed by schema construction and validation.

    exact_optional_property_types: an optional key present with ``UNDEFINED``
    must satisfy its value schema; when False it counts as absent.
    defensive_defaults: validate values returned by default producers.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    undeclared_policy: UndeclaredPolicy = UndeclaredPolicy.IGNORE
    exact_optional_property_types: bool = True
    defensive_defaults: bool = False
    max_depth: int = Field(default=100, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SchemaConfig":
        settings = settings or get_settings()
        return cls(
            undeclared_policy=settings.UNDECLARED_POLICY,
            exact_optional_property_types=settings.EXACT_OPTIONAL_PROPERTY_TYPES,
            defensive_defaults=settings.DEFENSIVE_DEFAULTS,
            max_depth=settings.MAX_DEPTH,
        )
