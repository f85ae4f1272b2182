"""TOML configuration loader for the matching service."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DB_PATH = "~/.config/foodshare/foodshare.db"


@dataclass
class MatchingConfig:
    top_n: int = 5
    history_limit: int = 20
    max_distance_km: float = 20.0
    default_pickup_radius_km: float = 10.0
    new_candidate_reliability: int = 10
    lookup_timeout_seconds: float | None = None


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class SchedulerConfig:
    enabled: bool = False
    expire_schedule: str = "0 * * * *"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class FoodShareConfig:
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> FoodShareConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path can be overridden via ``FOODSHARE_DB_PATH``.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    mtc = raw.get("matching", {})
    dbs = raw.get("database", {})
    sch = raw.get("scheduler", {})
    lgg = raw.get("logging", {})

    # Resolve database path: config file → environment variable → default
    db_path = dbs.get("path", "") or os.environ.get(
        "FOODSHARE_DB_PATH", ""
    ) or DEFAULT_DB_PATH

    return FoodShareConfig(
        matching=MatchingConfig(
            top_n=mtc.get("top_n", 5),
            history_limit=mtc.get("history_limit", 20),
            max_distance_km=mtc.get("max_distance_km", 20.0),
            default_pickup_radius_km=mtc.get("default_pickup_radius_km", 10.0),
            new_candidate_reliability=mtc.get("new_candidate_reliability", 10),
            lookup_timeout_seconds=mtc.get("lookup_timeout_seconds"),
        ),
        database=DatabaseConfig(path=db_path),
        scheduler=SchedulerConfig(
            enabled=sch.get("enabled", False),
            expire_schedule=sch.get("expire_schedule", "0 * * * *"),
        ),
        logging=LoggingConfig(
            level=str(lgg.get("level", "INFO")).upper(),
        ),
    )
