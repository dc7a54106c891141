from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_INPUT_PATH_ENV = "CLUSTER_INPUT_PATH"
_OUTPUT_PATH_ENV = "CLUSTER_OUTPUT_PATH"
_THRESHOLD_ENV = "CLUSTER_THRESHOLD"
_ID_STRATEGY_ENV = "CLUSTER_ID_STRATEGY"
_ID_SEED_ENV = "CLUSTER_ID_SEED"
_LOG_LEVEL_ENV = "LOG_LEVEL"

ID_STRATEGIES = ("random", "sequential")


@dataclass(frozen=True)
class Settings:
    input_path: str
    output_path: str
    threshold: float
    id_strategy: str
    id_seed: Optional[int]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_threshold(default: float) -> float:
    value = os.getenv(_THRESHOLD_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if not math.isfinite(parsed) or parsed < 0:
        return default
    return parsed


def _read_id_strategy(default: str) -> str:
    candidate = _read_str_env(_ID_STRATEGY_ENV, default).lower()
    return candidate if candidate in ID_STRATEGIES else default


def _read_seed() -> Optional[int]:
    value = os.getenv(_ID_SEED_ENV)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        input_path=_read_str_env(_INPUT_PATH_ENV, "data.csv"),
        output_path=_read_str_env(_OUTPUT_PATH_ENV, "clustered_data.csv"),
        threshold=_read_threshold(2.0),
        id_strategy=_read_id_strategy("random"),
        id_seed=_read_seed(),
        log_level=_read_log_level("INFO"),
    )
