"""SiteLedger AI task services.

This package contains the Python services behind the SiteLedger
construction ERP demo panels.

Architecture:
- 1 Tool-calling agent: Risk (predict_cost_risk round trip)
- 3 Services: Invoice extraction, BIM query code generation, Compliance chat
- 1 LLM service: LangChain/OpenAI client shared by all of the above
"""

__version__ = "1.0.0"
