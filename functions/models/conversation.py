"""Conversation models for SiteLedger.

Typed conversation turns exchanged with the remote model, plus the tool
call request/response pair used by the risk agent.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, PrivateAttr

from models.risk_assessment import RiskAssessmentResult


# =============================================================================
# TOOL CALLS
# =============================================================================


class ToolCallRequest(BaseModel):
    """A model's structured request to invoke a declared tool."""

    tool_name: str = Field(description="Name of the requested tool")
    arguments: Dict[str, Any] = Field(
        default_factory=dict,
        description="Raw arguments keyed by parameter name"
    )
    call_id: Optional[str] = Field(
        default=None,
        description="Opaque correlation token issued by the model"
    )

    class Config:
        frozen = True


class ToolCallResponse(BaseModel):
    """Result of a locally executed tool call, sent back to the model."""

    call_id: Optional[str] = Field(
        description="call_id of the request this response answers"
    )
    tool_name: str
    result: RiskAssessmentResult

    class Config:
        frozen = True


# =============================================================================
# TURNS
# =============================================================================


class UserTurn(BaseModel):
    role: Literal["user"] = "user"
    text: str

    class Config:
        frozen = True


class ModelTurn(BaseModel):
    role: Literal["model"] = "model"
    text: str = ""
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)

    class Config:
        frozen = True


class ToolResponseTurn(BaseModel):
    role: Literal["tool"] = "tool"
    response: ToolCallResponse

    class Config:
        frozen = True


ConversationTurn = Annotated[
    Union[UserTurn, ModelTurn, ToolResponseTurn],
    Field(discriminator="role"),
]


class ModelReply(BaseModel):
    """What a remote model client returns for one turn."""

    text: str = ""
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    tokens_used: int = Field(default=0, ge=0)

    def to_turn(self) -> ModelTurn:
        return ModelTurn(text=self.text, tool_calls=list(self.tool_calls))


class Conversation(BaseModel):
    """Append-only sequence of conversation turns.

    Used as context for subsequent turns. Turns are never edited or removed;
    readers get a copy through snapshot().
    """

    _turns: List[ConversationTurn] = PrivateAttr(default_factory=list)

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def add_user(self, text: str) -> UserTurn:
        turn = UserTurn(text=text)
        self.append(turn)
        return turn

    def add_model(self, text: str) -> ModelTurn:
        turn = ModelTurn(text=text)
        self.append(turn)
        return turn

    def snapshot(self) -> List[ConversationTurn]:
        """Copy of the turns so far."""
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)
