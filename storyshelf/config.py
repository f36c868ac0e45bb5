from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, field_validator
import yaml

from .repository.base import ErrorPolicy, OrderingPolicy


class CacheConfig(BaseModel):
    characters_ttl: float = Field(default=180.0, gt=0)
    templates_ttl: float = Field(default=300.0, gt=0)
    user_stories_ttl: float = Field(default=180.0, gt=0)
    prewritten_ttl: float = Field(default=300.0, gt=0)
    favorites_ttl: float = Field(default=180.0, gt=0)
    transactions_ttl: float = Field(default=120.0, gt=0)
    error_policy: str = Field(default=ErrorPolicy.KEEP_STALE.value)
    ordering: str = Field(default=OrderingPolicy.COMPLETION_ORDER.value)

    @field_validator("error_policy")
    @classmethod
    def _known_error_policy(cls, value: str) -> str:
        return ErrorPolicy(value).value

    @field_validator("ordering")
    @classmethod
    def _known_ordering(cls, value: str) -> str:
        return OrderingPolicy(value).value


class BackendConfig(BaseModel):
    base_url: str = Field(default="http://localhost:3000")
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)


class SafetyConfig(BaseModel):
    blocklist_path: Optional[Path] = Field(default=None)
    default_language: str = Field(default="tr")


class Config(BaseModel):
    cache: CacheConfig = Field(default_factory=CacheConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
