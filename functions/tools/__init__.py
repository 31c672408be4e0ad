"""
Agent Tools module for SiteLedger.

Provides LangChain-compatible tools the remote model may call. These
follow the OpenAI function calling schema.

Usage:
    from tools import RISK_TOOLS

    bound = chat_model.bind_tools(RISK_TOOLS)
"""

from .risk_tools import (
    PREDICT_COST_RISK_TOOL,
    PredictCostRiskInput,
    estimate_risk,
    predict_cost_risk,
    status_for_probability,
    RISK_TOOLS,
)

__all__ = [
    "PREDICT_COST_RISK_TOOL",
    "PredictCostRiskInput",
    "estimate_risk",
    "predict_cost_risk",
    "status_for_probability",
    "RISK_TOOLS",
]
