"""Risk assessment Pydantic models for SiteLedger.

This module defines the data models exchanged by the risk estimator and
the tool-calling risk agent.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class RiskStatus(str, Enum):
    """Cost overrun risk status derived from the overrun probability."""

    LOW = "Low"
    HIGH = "High"
    CRITICAL = "Critical"


# =============================================================================
# REQUEST / RESULT
# =============================================================================


class RiskAssessmentRequest(BaseModel):
    """A single user submission to the risk engine."""

    project_id: str = Field(
        description="Opaque project label (e.g. PROJ-ALPHA-24)"
    )
    current_spend: float = Field(
        ge=0,
        description="Current actual spend in dollars"
    )

    class Config:
        frozen = True

    @field_validator("current_spend", mode="before")
    @classmethod
    def spend_must_be_finite_number(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("current_spend must be a number")
        if not math.isfinite(v):
            raise ValueError("current_spend must be finite")
        return v


class RiskAssessmentResult(BaseModel):
    """Overrun probability and status produced by the estimator."""

    probability: int = Field(
        ge=0,
        le=100,
        description="Probability of cost overrun (0-100)"
    )
    status: RiskStatus = Field(
        description="Risk status derived from the probability"
    )

    class Config:
        frozen = True


class RiskAssessmentOutcome(BaseModel):
    """Final result of one tool-calling risk assessment."""

    text: str = Field(
        default="",
        description="Model's natural-language interpretation"
    )
    data: Optional[RiskAssessmentResult] = Field(
        default=None,
        description="Estimator result, or None when the model did not call the tool"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the rendering layer."""
        return self.model_dump(mode="json")
