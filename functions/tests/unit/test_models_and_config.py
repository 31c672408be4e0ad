"""Unit tests for SiteLedger models, configuration and errors."""

import math

import pytest
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from config.errors import (
    ConfigurationError,
    ProtocolMismatchError,
    RemoteCallError,
    SiteLedgerError,
    ValidationError,
)
from config.secrets import clear_secret_cache, get_openai_api_key, get_secret
from config.settings import Settings
from models.conversation import (
    Conversation,
    ConversationTurn,
    ModelReply,
    ModelTurn,
    ToolCallRequest,
    ToolResponseTurn,
    UserTurn,
)
from models.invoice import InvoiceData
from models.risk_assessment import RiskAssessmentRequest, RiskAssessmentResult, RiskStatus
from utils.agent_logger import configure_logging, log_task_error


# ============================================================================
# Risk models
# ============================================================================

class TestRiskModels:

    def test_request_accepts_zero_spend(self):
        request = RiskAssessmentRequest(project_id="PROJ-GAMMA-11", current_spend=0)
        assert request.current_spend == 0

    @pytest.mark.parametrize("spend", [-1, math.inf, math.nan, "100", True])
    def test_request_rejects_invalid_spend(self, spend):
        with pytest.raises(PydanticValidationError):
            RiskAssessmentRequest(project_id="P", current_spend=spend)

    def test_request_is_frozen(self):
        request = RiskAssessmentRequest(project_id="P", current_spend=1)
        with pytest.raises(PydanticValidationError):
            request.current_spend = 2

    @pytest.mark.parametrize("probability", [-1, 101])
    def test_result_probability_bounds(self, probability):
        with pytest.raises(PydanticValidationError):
            RiskAssessmentResult(probability=probability, status=RiskStatus.LOW)

    def test_status_values(self):
        assert [s.value for s in RiskStatus] == ["Low", "High", "Critical"]


# ============================================================================
# Conversation models
# ============================================================================

class TestConversationModels:

    def test_turns_are_discriminated_by_role(self):
        adapter = TypeAdapter(ConversationTurn)

        assert isinstance(adapter.validate_python({"role": "user", "text": "hi"}), UserTurn)
        assert isinstance(adapter.validate_python({"role": "model", "text": "hello"}), ModelTurn)
        tool_turn = adapter.validate_python({
            "role": "tool",
            "response": {
                "call_id": "c1",
                "tool_name": "predict_cost_risk",
                "result": {"probability": 95, "status": "Critical"}
            }
        })
        assert isinstance(tool_turn, ToolResponseTurn)
        assert tool_turn.response.result.status == RiskStatus.CRITICAL

    def test_unknown_role_rejected(self):
        with pytest.raises(PydanticValidationError):
            TypeAdapter(ConversationTurn).validate_python({"role": "system", "text": "x"})

    def test_conversation_is_append_only_copy(self):
        conversation = Conversation()
        conversation.add_user("Question")
        conversation.add_model("Answer")

        snapshot = conversation.snapshot()
        snapshot.append(UserTurn(text="not recorded"))

        assert len(conversation) == 2
        assert [turn.role for turn in conversation.snapshot()] == ["user", "model"]

    def test_conversation_history_is_not_exposed_for_editing(self):
        conversation = Conversation()
        conversation.add_user("Question")

        assert not hasattr(conversation, "turns")
        assert conversation.model_dump() == {}
        conversation.snapshot().clear()
        assert len(conversation) == 1

    def test_model_reply_to_turn(self):
        call = ToolCallRequest(tool_name="predict_cost_risk", arguments={}, call_id="c1")
        turn = ModelReply(text="", tool_calls=[call], tokens_used=10).to_turn()

        assert isinstance(turn, ModelTurn)
        assert turn.tool_calls == [call]


# ============================================================================
# Invoice model
# ============================================================================

class TestInvoiceData:

    @pytest.mark.parametrize("field", ["vendor_name", "total_amount", "suggested_gl_account"])
    def test_required_field_rejects_null(self, field):
        data = {
            "vendor_name": "Rocky Mountain Ready Mix",
            "total_amount": 18450.0,
            "suggested_gl_account": "5001-Materials",
            "confidence_score": 0.5,
        }
        data[field] = None

        with pytest.raises(PydanticValidationError):
            InvoiceData.model_validate(data)

    def test_optional_fields_default_to_none(self):
        invoice = InvoiceData(
            vendor_name="ACME",
            total_amount=10,
            suggested_gl_account="6002-Services",
            confidence_score=0.8
        )

        assert invoice.invoice_id is None
        assert invoice.currency is None


# ============================================================================
# Errors
# ============================================================================

class TestErrors:

    def test_error_hierarchy(self):
        for error in (
            ConfigurationError("missing", setting="OPENAI_API_KEY"),
            ValidationError("bad", field="x"),
            RemoteCallError("down"),
            ProtocolMismatchError("mismatch", expected_call_id="a", received_call_id="b"),
        ):
            assert isinstance(error, SiteLedgerError)

    def test_to_dict(self):
        error = ProtocolMismatchError("mismatch", expected_call_id="a", received_call_id="b")
        assert error.to_dict() == {
            "code": "PROTOCOL_MISMATCH",
            "message": "mismatch",
            "details": {"expected_call_id": "a", "received_call_id": "b"}
        }
        assert repr(error) == "ProtocolMismatchError(code='PROTOCOL_MISMATCH', message='mismatch')"

    def test_remote_call_error_default_code(self):
        assert RemoteCallError("down").code == "LLM_ERROR"


# ============================================================================
# Configuration
# ============================================================================

class TestSettings:

    @pytest.fixture(autouse=True)
    def _clear_cache(self):
        clear_secret_cache()
        yield
        clear_secret_cache()

    def test_defaults(self, monkeypatch):
        for name in ("LLM_MODEL", "LLM_TEMPERATURE", "LLM_TIMEOUT_SECONDS", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.llm_model == "gpt-4o"
        assert settings.llm_temperature == 0.1
        assert settings.llm_timeout_seconds == 60
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LLM_MODEL", "gpt-4o-mini")
        monkeypatch.setenv("LLM_TEMPERATURE", "0")
        monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "15")

        settings = Settings()

        assert settings.llm_model == "gpt-4o-mini"
        assert settings.llm_temperature == 0.0
        assert settings.llm_timeout_seconds == 15

    def test_validate_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            Settings().validate()

        assert exc_info.value.setting == "OPENAI_API_KEY"

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        settings = Settings()

        assert settings.openai_api_key == "sk-test"
        settings.validate()

    def test_blank_secret_is_missing(self, monkeypatch):
        monkeypatch.setenv("SOME_SECRET", "   ")
        assert get_secret("SOME_SECRET") is None

    def test_api_key_is_cached_until_cleared(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-first")
        assert get_openai_api_key() == "sk-first"

        monkeypatch.setenv("OPENAI_API_KEY", "sk-second")
        assert get_openai_api_key() == "sk-first"

        clear_secret_cache()
        assert get_openai_api_key() == "sk-second"


# ============================================================================
# Logging
# ============================================================================

class TestLogging:

    def test_configure_logging_accepts_level_names(self):
        configure_logging("debug")
        configure_logging("not-a-level")

    def test_log_task_error_prints_structured_error(self, capsys):
        log_task_error("risk", RemoteCallError("down"))

        out = capsys.readouterr().out
        assert "RISK FAILED" in out
        assert '"code": "LLM_ERROR"' in out
