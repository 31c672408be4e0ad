"""
Risk Tools for SiteLedger.

Provides the cost overrun estimator and its LangChain-compatible tool
declaration (``predict_cost_risk``) for the tool-calling risk agent.

Architecture:
- ``estimate_risk`` is the local computation; it is pure apart from its
  random source, which callers may inject.
- ``PredictCostRiskInput`` is the OpenAI function calling schema and the
  boundary validator for model-supplied arguments.
- ``predict_cost_risk`` wraps the estimator with the @tool decorator from
  langchain_core.tools.

Estimation bands (ratio = current_spend / REFERENCE_BUDGET, first match wins):
- ratio > 1.10: 95
- ratio > 0.90: 75
- ratio > 0.50: uniform in [30, 50)
- otherwise:    uniform in [5, 15)
"""

import math
import random
from typing import Optional, Protocol

from pydantic import BaseModel, Field
from langchain_core.tools import tool

from config.errors import ValidationError
from models.risk_assessment import RiskAssessmentResult, RiskStatus

PREDICT_COST_RISK_TOOL = "predict_cost_risk"

# Hypothetical project budget every spend is compared against
REFERENCE_BUDGET = 1_000_000

CRITICAL_RATIO = 1.10
HIGH_RATIO = 0.90
ELEVATED_RATIO = 0.50

CRITICAL_PROBABILITY = 95
HIGH_PROBABILITY = 75

# (floor, width) of the jittered bands
ELEVATED_BAND = (30, 20)
BASELINE_BAND = (5, 10)

CRITICAL_STATUS_ABOVE = 80
HIGH_STATUS_ABOVE = 50


class RandomSource(Protocol):
    """Anything with ``random() -> float in [0, 1)``, e.g. ``random.Random``."""

    def random(self) -> float:
        ...


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def status_for_probability(probability: int) -> RiskStatus:
    """Map a rounded overrun probability to its status.

    >80 is Critical, >50 is High, anything else is Low. A probability of
    exactly 50 is Low.
    """
    if probability > CRITICAL_STATUS_ABOVE:
        return RiskStatus.CRITICAL
    if probability > HIGH_STATUS_ABOVE:
        return RiskStatus.HIGH
    return RiskStatus.LOW


def estimate_risk(
    project_id: str,
    current_spend: float,
    rng: Optional[RandomSource] = None
) -> RiskAssessmentResult:
    """Estimate the probability of a cost overrun from current spend.

    Args:
        project_id: Opaque project label. Not looked up anywhere.
        current_spend: Current actual spend; must be a finite number >= 0.
        rng: Random source for the jittered bands (defaults to the
            ``random`` module).

    Returns:
        RiskAssessmentResult with the rounded probability and its status.

    Raises:
        ValidationError: If current_spend is negative, non-finite or not a number.
    """
    if isinstance(current_spend, bool) or not isinstance(current_spend, (int, float)):
        raise ValidationError("current_spend must be a number", field="current_spend")
    if not math.isfinite(current_spend) or current_spend < 0:
        raise ValidationError(
            "current_spend must be a finite number >= 0",
            field="current_spend",
            details={"current_spend": current_spend, "project_id": project_id}
        )

    source = rng if rng is not None else random
    ratio = current_spend / REFERENCE_BUDGET

    if ratio > CRITICAL_RATIO:
        probability = float(CRITICAL_PROBABILITY)
    elif ratio > HIGH_RATIO:
        probability = float(HIGH_PROBABILITY)
    elif ratio > ELEVATED_RATIO:
        floor, width = ELEVATED_BAND
        probability = floor + source.random() * width
    else:
        floor, width = BASELINE_BAND
        probability = floor + source.random() * width

    rounded = _round_half_up(probability)
    return RiskAssessmentResult(
        probability=rounded,
        status=status_for_probability(rounded)
    )


# =============================================================================
# Tool declaration
# =============================================================================


class PredictCostRiskInput(BaseModel):
    """Input schema for predict_cost_risk tool."""

    project_id: str = Field(
        description="The unique Project ID (e.g., PROJ-001)"
    )
    current_spend: float = Field(
        ge=0,
        allow_inf_nan=False,
        description="The current actual spend amount."
    )


@tool(PREDICT_COST_RISK_TOOL, args_schema=PredictCostRiskInput)
def predict_cost_risk(project_id: str, current_spend: float) -> dict:
    """Calculates the probability of cost overrun based on project ID and current spend.

    Returns:
        Dictionary containing:
        - probability: Overrun probability (0-100)
        - status: Low, High or Critical
    """
    return estimate_risk(project_id, current_spend).model_dump(mode="json")


RISK_TOOLS = [predict_cost_risk]
