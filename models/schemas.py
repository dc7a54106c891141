"""Pydantic schemas for cluster output and run reporting."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

OUTPUT_COLUMNS = ("F_TIMESTAMP", "F_ID", "CLUSTER_DATA", "F_U_ID")


class ClusterSummary(BaseModel):
    """One output row representing a single cluster."""

    f_timestamp: str = Field(..., description="Common or averaged ISO-8601 timestamp.")
    f_id: int = Field(..., ge=0, description="Cluster identifier; uniqueness depends on the id strategy.")
    cluster_data: str = Field(..., description="Compact JSON array of member projections.")
    f_u_id: str = Field(default="0", description="First non-sentinel unique_id among members.")

    def members(self) -> List[Dict[str, object]]:
        """Decode ``cluster_data`` back into member projections."""
        return json.loads(self.cluster_data)

    def to_row(self) -> Dict[str, str]:
        return {
            "F_TIMESTAMP": self.f_timestamp,
            "F_ID": str(self.f_id),
            "CLUSTER_DATA": self.cluster_data,
            "F_U_ID": self.f_u_id,
        }


class RunStatus(str, Enum):
    """Outcome of a clustering run."""

    processed = "processed"
    failed = "failed"


class RunReport(BaseModel):
    """Everything an operator needs to know about one run."""

    status: RunStatus
    input_path: str
    output_path: Optional[str] = None
    threshold: float
    observation_count: int = Field(default=0, ge=0)
    cluster_count: int = Field(default=0, ge=0)
    started_at: datetime
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
    error: Optional[str] = None
    summaries: List[ClusterSummary] = Field(default_factory=list)
