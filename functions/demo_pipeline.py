#!/usr/bin/env python3
"""Demo script that runs all four SiteLedger AI tasks locally.

This script:
1. Extracts a (scripted) invoice
2. Generates pandas code for a BIM question and simulates the answer
3. Runs the tool-calling risk assessment
4. Asks the compliance assistant two questions

By default a scripted in-memory model is used. Pass --live to call the
configured OpenAI model instead (requires OPENAI_API_KEY).

Usage:
    cd functions
    python demo_pipeline.py [--live] [--project PROJ-ALPHA-24] [--spend 750000]
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional, Sequence

from agents.risk_agent import RiskAssessmentAgent
from config.errors import SiteLedgerError
from config.settings import settings
from models.conversation import Conversation, ModelReply, ToolCallRequest, ToolResponseTurn
from services.bim_service import BimQueryService
from services.compliance_service import ComplianceChatService
from services.invoice_service import InvoiceExtractionService
from services.llm_service import LLMService
from utils.agent_logger import configure_logging, log_task_error, log_task_result, log_task_start

# 1x1 transparent PNG, enough to exercise the image path
DEMO_INVOICE_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


# =============================================================================
# MOCK SERVICES
# =============================================================================


class MockLLMService:
    """Scripted model that returns deterministic responses."""

    total_tokens_used = 0

    async def chat(
        self,
        turns: Sequence[Any],
        tools: Optional[Sequence[Any]] = None,
        system_prompt: Optional[str] = None
    ) -> ModelReply:
        last = turns[-1]

        if isinstance(last, ToolResponseTurn):
            result = last.response.result
            return ModelReply(
                text=(
                    f"The predictive model estimates a {result.probability}% probability of a cost "
                    f"overrun, which is a {result.status.value} risk level."
                )
            )

        if tools:
            prompt = last.text
            project_id = prompt.split("Project ", 1)[1].split(" ", 1)[0]
            spend = float(prompt.split("$", 1)[1].split(". ", 1)[0])
            return ModelReply(tool_calls=[
                ToolCallRequest(
                    tool_name=tools[0].name,
                    arguments={"project_id": project_id, "current_spend": spend},
                    call_id="demo-call-1"
                )
            ])

        if "ppe" in last.text.lower() or "harness" in last.text.lower():
            return ModelReply(text="Per Section 5.1, a safety harness is required for work above 2 meters.")
        return ModelReply(text="I cannot find this information in the current safety manual.")

    async def generate_with_system_prompt(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        return {
            "content": "```python\ndf_bim[df_bim['material'] == 'Steel']['volume'].sum()\n```",
            "tokens_used": 40
        }

    async def generate_json_from_image(
        self,
        prompt: str,
        image_base64: str,
        mime_type: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        return {
            "content": {
                "invoice_id": "INV-2024-0193",
                "vendor_name": "Rocky Mountain Ready Mix",
                "date_issued": "2024-05-14",
                "total_amount": 18450.0,
                "currency": "usd",
                "suggested_gl_account": "5001-Materials",
                "confidence_score": 0.93
            },
            "tokens_used": 250
        }


# =============================================================================
# DEMO
# =============================================================================


async def run_demo_pipeline(llm: Any, project_id: str, spend: float) -> Dict[str, Any]:
    """Run the four tasks in sequence and return their results."""
    results: Dict[str, Any] = {}

    log_task_start("invoice", mime_type="image/png")
    invoice = await InvoiceExtractionService(llm).extract(DEMO_INVOICE_PNG, "image/png")
    results["invoice"] = invoice.model_dump(mode="json") if invoice else None
    log_task_result("invoice", results["invoice"])

    question = "What is the total volume of steel?"
    log_task_start("bim", query=question)
    bim = await BimQueryService(llm).answer(question)
    results["bim"] = bim.model_dump(mode="json")
    log_task_result("bim", results["bim"])

    log_task_start("risk", project=project_id, spend=spend)
    outcome = await RiskAssessmentAgent(llm).assess_project_risk(project_id, spend)
    results["risk"] = outcome.to_dict()
    log_task_result("risk", results["risk"])

    log_task_start("compliance")
    conversation = Conversation()
    chat = ComplianceChatService(llm)
    answers: List[str] = []
    for message in ("Do I need a harness on the second floor deck?", "What is the lunch break policy?"):
        answers.append(await chat.send_message(conversation, message))
    results["compliance"] = [turn.model_dump(mode="json") for turn in conversation.snapshot()]
    log_task_result("compliance", {"answers": answers})

    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the SiteLedger AI task demo")
    parser.add_argument("--live", action="store_true", help="Use the configured OpenAI model")
    parser.add_argument("--project", default="PROJ-ALPHA-24", help="Project ID for the risk task")
    parser.add_argument("--spend", type=float, default=750000, help="Current actual spend ($)")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    try:
        llm = LLMService() if args.live else MockLLMService()
        asyncio.run(run_demo_pipeline(llm, args.project, args.spend))
    except SiteLedgerError as e:
        log_task_error("demo", e)
        return 1

    print("\n✅ Demo completed successfully!")
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================


if __name__ == "__main__":
    sys.exit(main())
