"""
Residue categories.

RESIDUE_CATEGORIES is the single ordered list every workflow iterates, so
dispatch order and response order are always GLASS, METAL, ORGANIC, PAPER,
PLASTIC.
"""
from dataclasses import dataclass
from enum import Enum


class ResidueType(str, Enum):
    """Represents the residue type."""
    GLASS = "GLASS"
    METAL = "METAL"
    ORGANIC = "ORGANIC"
    PAPER = "PAPER"
    PLASTIC = "PLASTIC"


@dataclass(frozen=True)
class ResidueCategory:
    """Static description of one residue category."""
    residue_type: ResidueType
    title: str
    field: str  # attribute name on CreateFormInput
    
    @property
    def quantity_column(self) -> str:
        return f"{self.field}_kgs"


RESIDUE_CATEGORIES: tuple[ResidueCategory, ...] = (
    ResidueCategory(ResidueType.GLASS, "Glass", "glass"),
    ResidueCategory(ResidueType.METAL, "Metal", "metal"),
    ResidueCategory(ResidueType.ORGANIC, "Organic", "organic"),
    ResidueCategory(ResidueType.PAPER, "Paper", "paper"),
    ResidueCategory(ResidueType.PLASTIC, "Plastic", "plastic"),
)

_BY_TYPE = {category.residue_type: category for category in RESIDUE_CATEGORIES}


def get_residue_category(residue_type: ResidueType | str) -> ResidueCategory:
    return _BY_TYPE[ResidueType(residue_type)]


def get_residue_title(residue_type: ResidueType | str) -> str:
    """Human readable title, e.g. "Plastic" for PLASTIC."""
    return get_residue_category(residue_type).title
