"""
Configuration management for Enhanced Search system
Centralizes all tunables with environment variable and .env support
"""

import logging
import os
from typing import Optional
from pathlib import Path
import json

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "ENHANCED_SEARCH_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class RetrievalConfig(BaseModel):
    """Candidate retrieval configuration"""
    score_threshold: float = Field(default=0.65, ge=0.0, le=1.0)
    # Pre-filter floor is max(recall_floor, threshold - recall_margin)
    recall_floor: float = Field(default=0.5, ge=0.0, le=1.0)
    recall_margin: float = Field(default=0.2, ge=0.0, le=1.0)
    oversampling_factor: int = Field(default=3, ge=1)
    max_top_k: int = Field(default=100, ge=1)
    context_lines: int = Field(default=5, ge=0)


class RankingConfig(BaseModel):
    """Result ranking configuration"""
    tie_break_threshold: float = Field(default=0.05, ge=0.0)

    # Share of the composite taken by the strategy-specific signal
    quality_blend: float = Field(default=0.4, ge=0.0, le=1.0)
    recency_blend: float = Field(default=0.3, ge=0.0, le=1.0)
    usage_blend: float = Field(default=0.3, ge=0.0, le=1.0)

    # Condition thresholds
    high_quality_readability: float = Field(default=0.8)
    low_documentation_ratio: float = Field(default=0.2)
    well_documented_ratio: float = Field(default=0.6)
    recent_days: int = Field(default=30, ge=0)


class DiversificationConfig(BaseModel):
    """Post-rank diversification configuration"""
    max_results_per_file: int = Field(default=3, ge=1)
    max_results_per_function: int = Field(default=2, ge=1)
    pattern_lookahead: int = Field(default=5, ge=1)

    # Layer cap applies once more than layer_diversity_after results are accepted
    max_results_per_layer: int = Field(default=3, ge=1)
    layer_diversity_after: int = Field(default=8, ge=0)

    # Past complexity_diversity_after accepted results, once min_complexity_levels
    # levels are represented, a result must bring a new complexity level
    min_complexity_levels: int = Field(default=3, ge=1)
    complexity_diversity_after: int = Field(default=10, ge=0)


class ExplanationConfig(BaseModel):
    """Explanation and suggestion synthesis configuration"""
    readability_bar: float = Field(default=0.6)
    documentation_bar: float = Field(default=0.3)
    alternative_similarity_bar: float = Field(default=0.5)
    max_alternatives: int = Field(default=3, ge=0)
    max_key_features: int = Field(default=5, ge=1)


class Config(BaseSettings):
    """Main configuration container"""
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    diversification: DiversificationConfig = Field(default_factory=DiversificationConfig)
    explanation: ExplanationConfig = Field(default_factory=ExplanationConfig)

    # Global settings
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in _LOG_LEVELS:
                raise ValueError(f"Unknown log level: {v}")
        return v

    @classmethod
    def from_file(cls, path: str) -> "Config":
        """Load configuration from JSON file"""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls(**data)

    def save_to_file(self, path: str) -> None:
        """Save configuration to JSON file"""
        with open(path, 'w') as f:
            json.dump(self.model_dump(), f, indent=2)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables"""
        config_file = os.getenv(f"{ENV_PREFIX}CONFIG")
        if config_file and Path(config_file).exists():
            logger.debug(f"Loading configuration from {config_file}")
            return cls.from_file(config_file)
        return cls()


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global configuration instance"""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def set_config(config: Config) -> None:
    """Set global configuration instance"""
    global _config
    _config = config


def reset_config() -> None:
    """Drop the global instance so the next get_config() reloads it"""
    global _config
    _config = None
