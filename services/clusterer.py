"""Greedy single-linkage clustering of sensor observations."""

from __future__ import annotations

import itertools
import json
import logging
import math
import random
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from models.records import Cluster, Observation
from models.schemas import ClusterSummary
from services.timestamps import reconcile_timestamps

logger = logging.getLogger(__name__)

CLUSTER_ID_LIMIT = 10_000

IdGenerator = Callable[[], int]


def euclidean_distance(a: Observation, b: Observation) -> float:
    return math.hypot(a.x_position - b.x_position, a.y_position - b.y_position)


def random_cluster_ids(seed: Optional[int] = None) -> IdGenerator:
    """Pseudo-random ids in ``[0, CLUSTER_ID_LIMIT)``; collisions are possible."""
    rng = random.Random(seed)
    return lambda: rng.randrange(CLUSTER_ID_LIMIT)


def sequential_cluster_ids(start: int = 1) -> IdGenerator:
    """Monotonic ids, unique within the generator's lifetime."""
    counter = itertools.count(start)
    return lambda: next(counter)


def _json_number(value: float) -> float | int:
    if float(value).is_integer():
        return int(value)
    return value


def _serialize_members(members: Iterable[Observation]) -> str:
    payload: List[Dict[str, object]] = []
    for member in members:
        projection = member.projection()
        projection["x_position"] = _json_number(member.x_position)
        projection["y_position"] = _json_number(member.y_position)
        payload.append(projection)
    return json.dumps(payload, separators=(",", ":"))


class Clusterer:
    """Pure clustering component that can be unit tested in isolation.

    Assignment is a single forward pass: an observation joins the first
    cluster (in creation order) holding any member within ``threshold``,
    otherwise it seeds a new cluster. Clusters are never merged, so the
    result depends on input order.
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None) -> None:
        self.id_generator = id_generator or random_cluster_ids()

    def cluster(
        self, observations: Iterable[Observation], threshold: float
    ) -> List[ClusterSummary]:
        if not math.isfinite(threshold) or threshold < 0:
            raise ValueError(f"Threshold must be a finite non-negative number, got {threshold!r}.")

        clusters = self.assign(observations, threshold)
        summaries = [self.summarize(cluster) for cluster in clusters]
        logger.debug(
            "Clustered observations",
            extra={
                "observation_count": sum(len(cluster) for cluster in clusters),
                "cluster_count": len(summaries),
                "threshold": threshold,
            },
        )
        return summaries

    def assign(self, observations: Iterable[Observation], threshold: float) -> List[Cluster]:
        clusters: List[Cluster] = []
        for observation in observations:
            target = self._find_cluster(clusters, observation, threshold)
            if target is None:
                clusters.append(Cluster.seed(observation))
            else:
                target.add(observation)
        return clusters

    def summarize(self, cluster: Cluster) -> ClusterSummary:
        members = cluster.members
        return ClusterSummary(
            f_timestamp=reconcile_timestamps([member.timestamp_id for member in members]),
            f_id=self.id_generator(),
            cluster_data=_serialize_members(members),
            f_u_id=self._first_unique_id(members),
        )

    @staticmethod
    def _find_cluster(
        clusters: Sequence[Cluster], observation: Observation, threshold: float
    ) -> Optional[Cluster]:
        for cluster in clusters:
            for member in cluster.members:
                if euclidean_distance(observation, member) <= threshold:
                    return cluster
        return None

    @staticmethod
    def _first_unique_id(members: Iterable[Observation]) -> str:
        for member in members:
            if member.has_unique_id:
                return member.unique_id
        return Observation.ABSENT_UNIQUE_ID
