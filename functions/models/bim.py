"""BIM element models for SiteLedger.

Elements mirror the rows of the ``df_bim`` DataFrame described to the model
when it generates pandas code.
"""

from enum import Enum
from typing import Union

from pydantic import BaseModel, Field


class BimCategory(str, Enum):
    """Element category."""

    STRUCTURAL_COLUMNS = "Structural Columns"
    WALLS = "Walls"
    BEAMS = "Beams"
    SLABS = "Slabs"
    WINDOWS = "Windows"


class BimMaterial(str, Enum):
    """Element material."""

    CONCRETE = "Concrete"
    STEEL = "Steel"
    GLASS = "Glass"
    BRICK = "Brick"


class BimElement(BaseModel):
    """A single BIM element row."""

    id: str
    category: BimCategory
    material: BimMaterial
    volume: float = Field(ge=0, description="Volume in m3")
    length: float = Field(ge=0, description="Length in m")
    level: str = Field(description="Building level, e.g. L1")

    class Config:
        frozen = True


class BimQueryResult(BaseModel):
    """Generated pandas code and the simulated answer for one query."""

    query: str
    code: str
    result: Union[int, str]
