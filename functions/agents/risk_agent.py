"""Risk Agent for SiteLedger.

Drives the two-round tool-calling exchange behind cost overrun prediction:
the model is asked to assess a project, requests ``predict_cost_risk``,
the estimator runs locally, and the result is sent back so the model can
interpret it.
"""

from enum import Enum
from typing import Callable, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import ErrorCode, ProtocolMismatchError, RemoteCallError, ValidationError
from models.conversation import (
    ConversationTurn,
    ModelReply,
    ToolCallRequest,
    ToolCallResponse,
    ToolResponseTurn,
    UserTurn,
)
from models.risk_assessment import (
    RiskAssessmentOutcome,
    RiskAssessmentRequest,
    RiskAssessmentResult,
)
from services.llm_service import RemoteModelClient
from tools.risk_tools import (
    PREDICT_COST_RISK_TOOL,
    PredictCostRiskInput,
    estimate_risk,
    predict_cost_risk,
)

logger = structlog.get_logger()

Estimator = Callable[[str, float], RiskAssessmentResult]


RISK_ASSESSMENT_PROMPT = (
    "Assess the risk for Project {project_id} with a current spend of "
    "${current_spend}. Use the available tool."
)


def _format_spend(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return str(float(amount))


class ProtocolState(str, Enum):
    """States of one tool-calling exchange."""

    START = "start"
    AWAITING_TOOL_DECISION = "awaiting_tool_decision"
    EXECUTING = "executing"
    DONE = "done"


class ToolCallSession:
    """Conversation context and protocol state for a single assessment.

    Holds at most one outstanding tool call. A fresh session is created for
    every invocation; nothing is shared between invocations.
    """

    def __init__(self, declared_tools: Optional[List[str]] = None):
        self.declared_tools = declared_tools or [PREDICT_COST_RISK_TOOL]
        self.state = ProtocolState.START
        self.turns: List[ConversationTurn] = []
        self._outstanding: Optional[ToolCallRequest] = None

    @property
    def outstanding_call(self) -> Optional[ToolCallRequest]:
        return self._outstanding

    def _require(self, state: ProtocolState) -> None:
        if self.state != state:
            raise ProtocolMismatchError(
                f"Expected protocol state {state.value}, found {self.state.value}"
            )

    def open(self, prompt: str) -> List[ConversationTurn]:
        """Record the opening user turn and return the turns to send."""
        self._require(ProtocolState.START)
        self.turns.append(UserTurn(text=prompt))
        self.state = ProtocolState.AWAITING_TOOL_DECISION
        return list(self.turns)

    def accept_tool_decision(self, reply: ModelReply) -> Optional[ToolCallRequest]:
        """Record the model's first reply and pick the call to execute.

        Returns:
            The tool call to execute, or None when the exchange is finished.
        """
        self._require(ProtocolState.AWAITING_TOOL_DECISION)
        self.turns.append(reply.to_turn())

        if not reply.tool_calls:
            self.state = ProtocolState.DONE
            return None

        call = reply.tool_calls[0]
        if len(reply.tool_calls) > 1:
            logger.debug(
                "extra_tool_calls_ignored",
                kept_call_id=call.call_id,
                ignored=len(reply.tool_calls) - 1
            )

        if call.tool_name not in self.declared_tools:
            logger.warning("undeclared_tool_requested", tool=call.tool_name, call_id=call.call_id)
            self.state = ProtocolState.DONE
            return None

        self._outstanding = call
        self.state = ProtocolState.EXECUTING
        return call

    def answer(self, response: ToolCallResponse) -> List[ConversationTurn]:
        """Record the tool response and return the turns to send.

        Raises:
            ProtocolMismatchError: If there is no outstanding call or the
                response's call_id does not match it.
        """
        if self.state != ProtocolState.EXECUTING or self._outstanding is None:
            raise ProtocolMismatchError(
                "Tool response received with no outstanding tool call",
                received_call_id=response.call_id
            )
        if response.call_id != self._outstanding.call_id:
            raise ProtocolMismatchError(
                "Tool response does not match the outstanding tool call",
                expected_call_id=self._outstanding.call_id,
                received_call_id=response.call_id
            )

        self.turns.append(ToolResponseTurn(response=response))
        self._outstanding = None
        return list(self.turns)

    def finish(self, reply: ModelReply) -> None:
        """Record the model's final reply."""
        self._require(ProtocolState.EXECUTING)
        if self._outstanding is not None:
            raise ProtocolMismatchError(
                "Final reply received before the tool call was answered",
                expected_call_id=self._outstanding.call_id
            )
        self.turns.append(reply.to_turn())
        self.state = ProtocolState.DONE


class RiskAssessmentAgent:
    """Agent that assesses cost overrun risk through model tool calling.

    The remote client and the estimator are injected so either can be
    replaced by a test double.
    """

    def __init__(
        self,
        llm_client: RemoteModelClient,
        estimator: Estimator = estimate_risk
    ):
        """Initialize RiskAssessmentAgent.

        Args:
            llm_client: Remote model client (e.g. LLMService).
            estimator: Local risk computation run when the model calls the tool.
        """
        self.llm = llm_client
        self.estimator = estimator
        self.tools = [predict_cost_risk]

    def build_prompt(self, request: RiskAssessmentRequest) -> str:
        return RISK_ASSESSMENT_PROMPT.format(
            project_id=request.project_id,
            current_spend=_format_spend(request.current_spend)
        )

    def _execute(self, call: ToolCallRequest) -> ToolCallResponse:
        try:
            args = PredictCostRiskInput.model_validate(call.arguments)
        except PydanticValidationError as e:
            raise RemoteCallError(
                f"Model sent invalid arguments for {call.tool_name}",
                code=ErrorCode.LLM_INVALID_RESPONSE,
                details={"arguments": call.arguments, "error": str(e)}
            ) from e

        result = self.estimator(args.project_id, args.current_spend)
        return ToolCallResponse(call_id=call.call_id, tool_name=call.tool_name, result=result)

    async def assess_project_risk(
        self,
        project_id: str,
        current_spend: float
    ) -> RiskAssessmentOutcome:
        """Run one assessment exchange.

        Args:
            project_id: Project label embedded in the instruction.
            current_spend: Current actual spend in dollars.

        Returns:
            RiskAssessmentOutcome with the model's final text and the
            estimator result (None if the model never called the tool).

        Raises:
            ValidationError: If the request is invalid (no call is made).
            RemoteCallError: If a model call fails or returns unusable arguments.
            ProtocolMismatchError: If the tool response does not match the call.
        """
        try:
            request = RiskAssessmentRequest(project_id=project_id, current_spend=current_spend)
        except PydanticValidationError as e:
            errors = e.errors()
            field = str(errors[0]["loc"][0]) if errors and errors[0].get("loc") else None
            raise ValidationError(
                f"Invalid risk assessment request: {e}",
                field=field
            ) from e

        session = ToolCallSession(declared_tools=[tool.name for tool in self.tools])
        log = logger.bind(project_id=request.project_id)

        turns = session.open(self.build_prompt(request))
        log.info("risk_assessment_started", current_spend=request.current_spend)

        reply = await self.llm.chat(turns, tools=self.tools)
        call = session.accept_tool_decision(reply)
        if call is None:
            log.info("risk_assessment_no_tool_call")
            return RiskAssessmentOutcome(text=reply.text, data=None)

        response = self._execute(call)
        log.info(
            "risk_tool_executed",
            tool=call.tool_name,
            call_id=call.call_id,
            probability=response.result.probability,
            status=response.result.status.value
        )

        final_reply = await self.llm.chat(session.answer(response), tools=self.tools)
        session.finish(final_reply)

        log.info("risk_assessment_completed")
        return RiskAssessmentOutcome(text=final_reply.text, data=response.result)
