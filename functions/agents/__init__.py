"""SiteLedger agents.

This package contains the tool-calling agents:
- Risk (predict_cost_risk round trip with a remote model)
"""

from agents.risk_agent import RiskAssessmentAgent, ToolCallSession, ProtocolState

__all__ = ["RiskAssessmentAgent", "ToolCallSession", "ProtocolState"]
