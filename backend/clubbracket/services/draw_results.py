"""
Typed shapes for DrawSession.result, one per DrawType.

The column is free-form JSON so staging UIs can save partial work; it is
parsed into one of these models only when the draw is applied.
"""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from clubbracket.models.draw import DrawType
from clubbracket.services.errors import BadRequestError


class Pair(BaseModel):
    """Two ids drawn together: user ids for doubles, participant ids for knockout."""

    side_a: int
    side_b: int


class DoublesPairingResult(BaseModel):
    pairs: List[Pair] = Field(default_factory=list)


class GroupAssignmentItem(BaseModel):
    group_id: int
    participant_id: int
    seed_in_group: Optional[int] = None


class GroupAssignmentResult(BaseModel):
    assignments: List[GroupAssignmentItem] = Field(default_factory=list)


class KnockoutPairingResult(BaseModel):
    mode: Literal["CUSTOM", "RANDOM", "GROUP_RANK"] = "CUSTOM"
    size: Optional[int] = None
    best_of: Optional[int] = None
    seed_order: Literal["STANDARD", "REVERSE"] = "STANDARD"
    source_stage_id: Optional[int] = None
    top_n_per_group: Optional[int] = None
    wildcard_count: int = 0
    # CUSTOM: either a flat order (chunked into pairs) or explicit pairs
    order: List[int] = Field(default_factory=list)
    pairs: List[Pair] = Field(default_factory=list)


DrawResult = Union[DoublesPairingResult, GroupAssignmentResult, KnockoutPairingResult]

_RESULT_MODELS = {
    DrawType.DOUBLES_PAIRING: DoublesPairingResult,
    DrawType.GROUP_ASSIGNMENT: GroupAssignmentResult,
    DrawType.KNOCKOUT_PAIRING: KnockoutPairingResult,
}


def parse_draw_result(draw_type: str, raw: Optional[dict]) -> DrawResult:
    """Validate a stored result document against the model for its draw type."""
    model = _RESULT_MODELS[DrawType(draw_type)]
    try:
        return model.model_validate(raw or {})
    except ValidationError as e:
        raise BadRequestError(f"Invalid {draw_type} draw result: {e.errors()[0].get('msg', str(e))}") from e
