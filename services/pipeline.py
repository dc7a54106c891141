"""Run orchestration: read observations, cluster them, write summaries."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Protocol

from models.records import Observation
from models.schemas import ClusterSummary, RunReport, RunStatus
from services.clusterer import (
    Clusterer,
    IdGenerator,
    random_cluster_ids,
    sequential_cluster_ids,
)
from settings import get_settings
from storage.csv_files import build_default_sink, build_default_source

logger = logging.getLogger(__name__)


class ObservationSource(Protocol):
    path: object

    def read(self) -> List[Observation]:
        ...


class SummarySink(Protocol):
    path: object

    def write(self, summaries: Iterable[ClusterSummary]) -> int:
        ...


def build_id_generator(strategy: str, seed: Optional[int] = None) -> IdGenerator:
    if strategy == "random":
        return random_cluster_ids(seed)
    if strategy == "sequential":
        return sequential_cluster_ids()
    raise ValueError(f"Unknown cluster id strategy {strategy!r}.")


class ClusteringPipeline:
    """Coordinates the source, the clusterer and the sink for one run."""

    def __init__(
        self,
        source: ObservationSource,
        sink: SummarySink,
        clusterer: Clusterer,
        threshold: float,
    ) -> None:
        self.source = source
        self.sink = sink
        self.clusterer = clusterer
        self.threshold = threshold

    def run(self, dry_run: bool = False) -> RunReport:
        """Execute the run; failures are captured in the returned report."""
        started_at = datetime.now(timezone.utc)
        start_time = time.perf_counter()
        input_path = str(self.source.path)
        output_path = None if dry_run else str(self.sink.path)

        observations: List[Observation] = []
        summaries: List[ClusterSummary] = []
        error: Optional[str] = None
        status = RunStatus.processed

        try:
            observations = self.source.read()
            summaries = self.clusterer.cluster(observations, self.threshold)
            if not dry_run:
                self.sink.write(summaries)
        except Exception as exc:
            logger.exception(
                "Clustering run failed",
                extra={"input_path": input_path, "reason": type(exc).__name__},
            )
            status = RunStatus.failed
            error = str(exc)
            summaries = []

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Clustering run finished",
            extra={
                "status": status.value,
                "observation_count": len(observations),
                "cluster_count": len(summaries),
                "threshold": self.threshold,
                "processing_ms": processing_ms,
            },
        )
        return RunReport(
            status=status,
            input_path=input_path,
            output_path=output_path,
            threshold=self.threshold,
            observation_count=len(observations),
            cluster_count=len(summaries),
            started_at=started_at,
            processing_ms=processing_ms,
            error=error,
            summaries=summaries,
        )


def build_default_pipeline(
    input_path: Optional[str] = None,
    output_path: Optional[str] = None,
    threshold: Optional[float] = None,
    id_strategy: Optional[str] = None,
    seed: Optional[int] = None,
) -> ClusteringPipeline:
    """Factory that wires the pipeline from settings, with optional overrides."""
    settings = get_settings()
    strategy = id_strategy or settings.id_strategy
    id_seed = settings.id_seed if seed is None else seed
    return ClusteringPipeline(
        source=build_default_source(input_path),
        sink=build_default_sink(output_path),
        clusterer=Clusterer(id_generator=build_id_generator(strategy, id_seed)),
        threshold=settings.threshold if threshold is None else threshold,
    )
