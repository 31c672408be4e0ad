"""Compliance chat service for SiteLedger.

Answers questions strictly from the project's quality control and safety
manual, keeping the conversation as context for follow-up questions.
"""

import structlog

from config.errors import ValidationError
from models.conversation import Conversation, ModelTurn, UserTurn
from services.llm_service import RemoteModelClient

logger = structlog.get_logger()


SAFETY_MANUAL_CONTEXT = """
DOCUMENT: Project Alpha Quality Control & Safety Manual
SECTION: 4.2 Material Non-Conformance
CONTENT:
1. If material arrives on site and does not match specifications (e.g., wrong grade of concrete, damaged steel), the Site Supervisor must immediately issue a Non-Conformance Report (NCR).
2. The material must be tagged with a RED "Do Not Use" label and moved to the Quarantine Area defined in Site Map Zone C.
3. Photographs of the defect must be uploaded to the ERP within 4 hours.
4. If the material is critical (Structural), work in that sector must pause until the Project Engineer reviews the impact.

SECTION: 5.1 Personal Protective Equipment (PPE)
CONTENT:
1. Hard hats are mandatory at all times.
2. High-visibility vests must be worn by all personnel.
3. Safety harness is required for work above 2 meters.

SECTION: 8.4 Audit Procedures
CONTENT:
Internal audits are conducted monthly. Any Class A violation (Immediate Danger) requires immediate work stoppage.
"""

NOT_FOUND_ANSWER = "I cannot find this information in the current safety manual."

COMPLIANCE_SYSTEM_PROMPT = f"""You are a Senior Internal Auditor and Safety Compliance Assistant for a Construction Firm.
Your goal is to answer questions strictly based on the provided "Project Alpha Quality Control & Safety Manual" context below.

CONTEXT:
{SAFETY_MANUAL_CONTEXT}

RULES:
1. If the answer is found in the context, cite the Section number.
2. If the answer is NOT in the context, state "{NOT_FOUND_ANSWER}"
3. Be professional, concise, and authoritative."""


class ComplianceChatService:
    """Grounded chat over the safety manual.

    The service holds no conversation state; callers own the Conversation.
    """

    def __init__(self, llm_client: RemoteModelClient, system_prompt: str = COMPLIANCE_SYSTEM_PROMPT):
        self.llm = llm_client
        self.system_prompt = system_prompt

    async def send_message(self, conversation: Conversation, message: str) -> str:
        """Ask a question in the context of the conversation so far.

        The user turn and the reply are appended to ``conversation`` only
        after the model call succeeds.

        Raises:
            ValidationError: If the message is blank.
            RemoteCallError: If the model call fails.
        """
        if not message or not message.strip():
            raise ValidationError("Compliance question is empty", field="message")

        user_turn = UserTurn(text=message.strip())
        reply = await self.llm.chat(
            [*conversation.snapshot(), user_turn],
            system_prompt=self.system_prompt
        )

        conversation.append(user_turn)
        conversation.append(ModelTurn(text=reply.text))

        logger.info(
            "compliance_reply",
            history_turns=len(conversation),
            grounded=reply.text.strip() != NOT_FOUND_ANSWER
        )
        return reply.text
