"""BIM query service for SiteLedger.

Turns a natural-language question about the model's elements into a
single pandas expression over ``df_bim``. The generated code is shown to
the user but never executed; the displayed answer comes from a keyword
simulation over the mock element table.
"""

from typing import List, Sequence, Union

import structlog

from config.errors import ValidationError
from models.bim import BimCategory, BimElement, BimMaterial, BimQueryResult
from services.llm_service import LLMService

logger = structlog.get_logger()


BIM_CODE_SYSTEM_PROMPT = """You are a Python Pandas expert assisting a Construction Project Manager.
You have a DataFrame named 'df_bim' with the following columns:
- id (string)
- category (string) e.g., 'Structural Columns', 'Walls'
- material (string) e.g., 'Concrete', 'Steel'
- volume (float) in cubic meters
- length (float) in meters
- level (string) e.g., 'L1', 'L2'

The user will ask a question. You must generate a SINGLE line of Python Pandas code to answer it.
Do not use print(). Just the expression that results in the answer.
Example Input: "Total volume of concrete"
Example Output: df_bim[df_bim['material'] == 'Concrete']['volume'].sum()"""

SIMULATION_LIMITED = "Check table for details (Simulation limited)"


def _element(id, category, material, volume, length, level) -> BimElement:
    return BimElement(
        id=id,
        category=category,
        material=material,
        volume=volume,
        length=length,
        level=level
    )


MOCK_BIM_DATA: List[BimElement] = [
    _element("101", BimCategory.STRUCTURAL_COLUMNS, BimMaterial.CONCRETE, 2.5, 3.0, "L1"),
    _element("102", BimCategory.STRUCTURAL_COLUMNS, BimMaterial.CONCRETE, 2.5, 3.0, "L1"),
    _element("103", BimCategory.STRUCTURAL_COLUMNS, BimMaterial.STEEL, 1.2, 3.0, "L1"),
    _element("104", BimCategory.WALLS, BimMaterial.BRICK, 12.0, 5.0, "L1"),
    _element("105", BimCategory.WALLS, BimMaterial.CONCRETE, 15.0, 6.0, "L1"),
    _element("106", BimCategory.BEAMS, BimMaterial.STEEL, 0.8, 4.5, "L2"),
    _element("107", BimCategory.SLABS, BimMaterial.CONCRETE, 45.0, 10.0, "L2"),
    _element("108", BimCategory.STRUCTURAL_COLUMNS, BimMaterial.CONCRETE, 2.4, 2.9, "L2"),
    _element("109", BimCategory.WINDOWS, BimMaterial.GLASS, 0.1, 1.5, "L1"),
    _element("110", BimCategory.STRUCTURAL_COLUMNS, BimMaterial.STEEL, 1.1, 2.8, "L2"),
]


def _format_volume(total: float) -> str:
    return f"{total:.2f} m³"


def simulate_result(
    query: str,
    elements: Sequence[BimElement] = MOCK_BIM_DATA
) -> Union[int, str]:
    """Approximate the answer to a BIM question from its keywords.

    Rules, first match wins:
    - "volume" and "structural columns": column volume (concrete only if
      the query says "concrete")
    - "count" or "how many": number of elements
    - "steel": steel volume
    """
    q = query.lower()

    if "volume" in q and "structural columns" in q:
        concrete_only = "concrete" in q
        total = sum(
            e.volume for e in elements
            if e.category == BimCategory.STRUCTURAL_COLUMNS
            and (not concrete_only or e.material == BimMaterial.CONCRETE)
        )
        return _format_volume(total)
    if "count" in q or "how many" in q:
        return len(elements)
    if "steel" in q:
        return _format_volume(sum(e.volume for e in elements if e.material == BimMaterial.STEEL))
    return SIMULATION_LIMITED


def _clean_code(content: str) -> str:
    code = content.strip()
    if code.startswith("```"):
        code = code.split("\n", 1)[1] if "\n" in code else code[3:]
    if code.endswith("```"):
        code = code[:-3]
    return code.strip()


class BimQueryService:
    """Service that answers BIM questions with generated pandas code."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def generate_code(self, query: str) -> str:
        """Generate a single pandas expression answering the query.

        Raises:
            ValidationError: If the query is blank.
            RemoteCallError: If the model call fails.
        """
        if not query or not query.strip():
            raise ValidationError("BIM query is empty", field="query")

        result = await self.llm.generate_with_system_prompt(
            system_prompt=BIM_CODE_SYSTEM_PROMPT,
            user_message=query.strip()
        )
        code = _clean_code(result["content"])

        logger.info("bim_code_generated", query=query, code_length=len(code))
        return code

    async def answer(self, query: str) -> BimQueryResult:
        """Generate code for the query and attach the simulated answer."""
        code = await self.generate_code(query)
        return BimQueryResult(query=query, code=code, result=simulate_result(query))
