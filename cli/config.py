from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from settings import ID_STRATEGIES, get_settings


@dataclass(frozen=True)
class RunConfig:
    input_path: Path
    output_path: Path
    threshold: float
    id_strategy: str
    seed: Optional[int] = None


def load_config(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    threshold: Optional[float] = None,
    id_strategy: Optional[str] = None,
    seed: Optional[int] = None,
) -> RunConfig:
    """Merge command-line overrides over the environment-backed settings."""
    settings = get_settings()
    strategy = (id_strategy or settings.id_strategy).lower()
    if strategy not in ID_STRATEGIES:
        raise ValueError(
            f"Unknown id strategy {strategy!r}; expected one of {', '.join(ID_STRATEGIES)}."
        )
    return RunConfig(
        input_path=input_path or Path(settings.input_path),
        output_path=output_path or Path(settings.output_path),
        threshold=settings.threshold if threshold is None else threshold,
        id_strategy=strategy,
        seed=settings.id_seed if seed is None else seed,
    )
