"""
Centralized configuration with environment variable overrides.

Session lifetime, the retention offer sequence, the order catalog source
and the recognizer settings handed to the rendering layer are all
configurable here. Reordering offers is a configuration change, not a
code change.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_OFFERS = "BOGO:Buy One Get One|FREE_ACC:a free accessory|50_OFF:50% discount"


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SessionConfig:
    """Per-call session lifetime settings."""

    idle_timeout_sec: float = _safe_float("SESSION_IDLE_TIMEOUT_SEC", "900")
    sweep_interval_sec: float = _safe_float("SESSION_SWEEP_INTERVAL_SEC", "60")


@dataclass(frozen=True)
class OfferConfig:
    """Retention offers in priority order, as ``CODE:description`` pairs joined by ``|``."""

    retention_offers: str = os.getenv("RETENTION_OFFERS", DEFAULT_RETENTION_OFFERS)


@dataclass(frozen=True)
class CatalogConfig:
    """Order catalog source. Empty path means the built-in catalog."""

    catalog_path: str = os.getenv("ORDER_CATALOG_PATH", "")


@dataclass(frozen=True)
class VoiceConfig:
    """Recognizer and voice settings passed through to the rendering layer."""

    language: str = os.getenv("VOICE_LANGUAGE", "en-US")
    voice: str = os.getenv("VOICE_NAME", "Polly.Joanna")
    speech_timeout: str = os.getenv("SPEECH_TIMEOUT", "auto")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    session: SessionConfig = field(default_factory=SessionConfig)
    offers: OfferConfig = field(default_factory=OfferConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "delivery-assistant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.session.idle_timeout_sec <= 0:
        raise ValueError(
            f"SESSION_IDLE_TIMEOUT_SEC must be > 0, got {config.session.idle_timeout_sec}"
        )
    if config.session.sweep_interval_sec < 0:
        raise ValueError(
            f"SESSION_SWEEP_INTERVAL_SEC must be >= 0, got {config.session.sweep_interval_sec}"
        )
    if not config.offers.retention_offers.strip():
        raise ValueError("RETENTION_OFFERS must name at least one offer")
    if config.catalog.catalog_path and not os.path.isfile(config.catalog.catalog_path):
        raise ValueError(
            f"ORDER_CATALOG_PATH does not point to a file: {config.catalog.catalog_path!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.agent_name)
    return config


# Singleton instance
settings = load_config()
