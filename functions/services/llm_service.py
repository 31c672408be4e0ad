"""LLM service for SiteLedger.

Provides LangChain/OpenAI integration for the AI task services and the
tool-calling risk agent.
"""

import json
from typing import Any, Dict, List, Optional, Protocol, Sequence

import structlog
from langchain_openai import ChatOpenAI
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import BaseTool

from config.settings import settings
from config.errors import ConfigurationError, ErrorCode, RemoteCallError, SiteLedgerError
from models.conversation import (
    ConversationTurn,
    ModelReply,
    ModelTurn,
    ToolCallRequest,
    ToolResponseTurn,
    UserTurn,
)

logger = structlog.get_logger()


class RemoteModelClient(Protocol):
    """What agents and services need from a conversational model."""

    async def chat(
        self,
        turns: Sequence[ConversationTurn],
        tools: Optional[Sequence[BaseTool]] = None,
        system_prompt: Optional[str] = None
    ) -> ModelReply:
        ...


def _content_text(content: Any) -> str:
    """Flatten message content (string or list of parts) into text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```python"):
        content = content[9:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def _inline_data_block(data_base64: str, mime_type: str) -> Dict[str, Any]:
    """Content block for an inline base64 payload.

    PDFs go as a file part; chat completions only accept images as image_url.
    """
    data_url = f"data:{mime_type};base64,{data_base64}"
    if mime_type == "application/pdf":
        return {
            "type": "file",
            "file": {"filename": "document.pdf", "file_data": data_url}
        }
    return {"type": "image_url", "image_url": {"url": data_url}}


def turns_to_messages(turns: Sequence[ConversationTurn]) -> List[BaseMessage]:
    """Convert typed conversation turns into LangChain messages."""
    messages: List[BaseMessage] = []
    for turn in turns:
        if isinstance(turn, UserTurn):
            messages.append(HumanMessage(content=turn.text))
        elif isinstance(turn, ModelTurn):
            messages.append(AIMessage(
                content=turn.text,
                tool_calls=[
                    {"name": call.tool_name, "args": call.arguments, "id": call.call_id}
                    for call in turn.tool_calls
                ]
            ))
        elif isinstance(turn, ToolResponseTurn):
            response = turn.response
            messages.append(ToolMessage(
                content=json.dumps({"result": response.result.model_dump(mode="json")}),
                tool_call_id=response.call_id or "",
                name=response.tool_name
            ))
        else:
            raise TypeError(f"Unsupported conversation turn: {type(turn).__name__}")
    return messages


class LLMService:
    """Service for LLM operations using LangChain.

    Provides a wrapper around ChatOpenAI with token tracking
    and error handling. Implements RemoteModelClient.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[int] = None
    ):
        """Initialize LLMService.

        Args:
            model: Model name (default from settings).
            temperature: Temperature (default from settings).
            api_key: OpenAI API key (default from settings).
            timeout_seconds: Request timeout (default from settings).

        Raises:
            ConfigurationError: If no API key is available.
        """
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.timeout_seconds = timeout_seconds or settings.llm_timeout_seconds
        self.api_key = api_key or settings.openai_api_key

        if not self.api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY not found; set it in the environment or .env",
                setting="OPENAI_API_KEY"
            )

        self._client: Optional[ChatOpenAI] = None
        self._total_tokens_used = 0

    @property
    def client(self) -> ChatOpenAI:
        """Get LangChain ChatOpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key,
                timeout=self.timeout_seconds
            )
        return self._client

    @property
    def total_tokens_used(self) -> int:
        """Get total tokens used across all calls."""
        return self._total_tokens_used

    def _track_tokens(self, response: Any) -> int:
        tokens_used = 0
        metadata = getattr(response, "response_metadata", None)
        if isinstance(metadata, dict):
            usage = metadata.get("token_usage") or {}
            tokens_used = int(usage.get("total_tokens") or 0)
            self._total_tokens_used += tokens_used
        return tokens_used

    def _to_remote_error(self, e: Exception) -> RemoteCallError:
        error_msg = str(e)
        lowered = error_msg.lower()

        # Detect specific error types
        if "rate_limit" in lowered or "quota" in lowered:
            return RemoteCallError(
                "OpenAI rate limit exceeded",
                code=ErrorCode.LLM_RATE_LIMIT,
                details={"original_error": error_msg}
            )
        if "context_length" in lowered or "maximum context" in lowered:
            return RemoteCallError(
                "Input too long for model context",
                code=ErrorCode.LLM_CONTEXT_TOO_LONG,
                details={"original_error": error_msg}
            )
        return RemoteCallError(
            f"LLM generation failed: {error_msg}",
            details={"original_error": error_msg}
        )

    async def _invoke(
        self,
        messages: List[BaseMessage],
        tools: Optional[Sequence[BaseTool]] = None,
        **kwargs: Any
    ) -> AIMessage:
        runnable = self.client.bind_tools(list(tools)) if tools else self.client
        try:
            return await runnable.ainvoke(messages, **kwargs)
        except SiteLedgerError:
            raise
        except Exception as e:
            raise self._to_remote_error(e) from e

    async def chat(
        self,
        turns: Sequence[ConversationTurn],
        tools: Optional[Sequence[BaseTool]] = None,
        system_prompt: Optional[str] = None
    ) -> ModelReply:
        """Send a conversation and return the model's reply.

        Args:
            turns: Conversation so far, oldest first.
            tools: Tools to declare to the model for this turn.
            system_prompt: Optional system instruction.

        Returns:
            ModelReply with the reply text and any tool-call requests.

        Raises:
            RemoteCallError: If the call fails or the model emits tool calls
                whose arguments cannot be parsed.
        """
        messages = turns_to_messages(turns)
        if system_prompt:
            messages.insert(0, SystemMessage(content=system_prompt))

        response = await self._invoke(messages, tools=tools)
        tokens_used = self._track_tokens(response)

        tool_calls = [
            ToolCallRequest(
                tool_name=call["name"],
                arguments=call.get("args") or {},
                call_id=call.get("id")
            )
            for call in (getattr(response, "tool_calls", None) or [])
        ]
        invalid_calls = getattr(response, "invalid_tool_calls", None) or []
        if invalid_calls and not tool_calls:
            raise RemoteCallError(
                "Model requested a tool call with unparsable arguments",
                code=ErrorCode.LLM_INVALID_RESPONSE,
                details={"invalid_tool_calls": [dict(call) for call in invalid_calls]}
            )

        text = _content_text(response.content)
        logger.info(
            "llm_chat_reply",
            model=self.model,
            tokens_used=tokens_used,
            content_length=len(text),
            tool_calls=[call.tool_name for call in tool_calls]
        )
        return ModelReply(text=text, tool_calls=tool_calls, tokens_used=tokens_used)

    async def generate(
        self,
        messages: List[BaseMessage],
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response from the LLM.

        Args:
            messages: List of LangChain messages.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and token usage.

        Raises:
            RemoteCallError: If LLM call fails.
        """
        kwargs = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        response = await self._invoke(messages, **kwargs)
        tokens_used = self._track_tokens(response)
        content = _content_text(response.content)

        logger.info(
            "llm_generated",
            model=self.model,
            tokens_used=tokens_used,
            content_length=len(content)
        )

        return {
            "content": content,
            "tokens_used": tokens_used
        }

    async def generate_with_system_prompt(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response with system prompt.

        Args:
            system_prompt: System prompt for context.
            user_message: User message/query.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and token usage.
        """
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_message)
        ]
        return await self.generate(messages, max_tokens)

    async def generate_json(
        self,
        messages: List[BaseMessage],
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a JSON response.

        The caller's prompt is expected to ask for JSON; markdown code
        blocks around the payload are tolerated.

        Args:
            messages: List of LangChain messages.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with parsed JSON content (None for an empty reply) and token usage.

        Raises:
            RemoteCallError: If response is not valid JSON.
        """
        result = await self.generate(messages, max_tokens)

        content = _strip_code_fences(result["content"])
        if not content:
            return {"content": None, "tokens_used": result["tokens_used"]}

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise RemoteCallError(
                "LLM did not return valid JSON",
                code=ErrorCode.LLM_INVALID_RESPONSE,
                details={
                    "parse_error": str(e),
                    "raw_content": result["content"][:500]
                }
            ) from e

        return {
            "content": parsed,
            "tokens_used": result["tokens_used"]
        }

    async def generate_json_from_image(
        self,
        prompt: str,
        image_base64: str,
        mime_type: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a JSON response about an inline image.

        Args:
            prompt: Instruction sent alongside the image.
            image_base64: Base64-encoded image or PDF payload.
            mime_type: Payload mime type, e.g. image/png or application/pdf.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with parsed JSON content and token usage.
        """
        message = HumanMessage(content=[
            _inline_data_block(image_base64, mime_type),
            {"type": "text", "text": prompt}
        ])
        return await self.generate_json([message], max_tokens)
