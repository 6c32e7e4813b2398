"""
Centralized settings and path configuration for the pricing engine.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    # Walk up from this file to find the project root
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Remote store
    remote_base_url: str = 'http://localhost:3001/api'
    remote_timeout: float = 5.0
    auth_token: Optional[str] = None

    # Local cache file; None keeps the cache in memory
    cache_path: Optional[Path] = None

    # Price configurations are kept per calendar year
    price_year: int = 2026

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment and project structure."""
        root = project_root or get_project_root()

        cache_env = os.environ.get('TOUR_PRICING_CACHE_PATH')
        if cache_env is None:
            cache_path = root / 'data' / 'price_cache.json'
        elif cache_env.strip() == '':
            cache_path = None
        else:
            cache_path = Path(cache_env)

        return cls(
            project_root=root,
            remote_base_url=os.environ.get('TOUR_PRICING_REMOTE_URL', 'http://localhost:3001/api'),
            remote_timeout=float(os.environ.get('TOUR_PRICING_REMOTE_TIMEOUT', '5.0')),
            auth_token=os.environ.get('TOUR_PRICING_API_TOKEN') or None,
            cache_path=cache_path,
            price_year=int(os.environ.get('TOUR_PRICING_YEAR', '2026')),
            log_level=os.environ.get('TOUR_PRICING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(level: Optional[str] = None) -> None:
    """Basic log format for scripts and the API process."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
