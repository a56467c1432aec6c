"""Life-path view state and stage stepper.

The life path walks through a fixed sequence of stages.  Controls never
touch the state directly: they emit small intent objects, and
:func:`reduce` returns the next :class:`ViewState`.  Selection changes
(region, year, gender) keep the current stage; navigation intents move
the stage index and clamp at both ends.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, Union

import logging

from .config import DEFAULT_GENDER, GENDERS, STAGE_DEFINITIONS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    id: str
    label: str


STAGES: Tuple[Stage, ...] = tuple(Stage(id_, label) for id_, label in STAGE_DEFINITIONS)

NEXT_LABEL: str = "Next stage ▶"
FINISH_LABEL: str = "Finish ◀◀"


@dataclass(frozen=True)
class ViewState:
    """Current life-path selection and position in the stage sequence."""

    region: Optional[str] = None
    year: Optional[int] = None
    gender: str = DEFAULT_GENDER
    stage_index: int = 0

    @property
    def stage(self) -> Stage:
        return STAGES[self.stage_index]

    @property
    def other_gender(self) -> str:
        return "male" if self.gender == "female" else "female"

    @property
    def is_first(self) -> bool:
        return self.stage_index == 0

    @property
    def is_last(self) -> bool:
        return self.stage_index == len(STAGES) - 1


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SelectRegion:
    region: str


@dataclass(frozen=True)
class SelectYear:
    year: int


@dataclass(frozen=True)
class ToggleGender:
    gender: str


@dataclass(frozen=True)
class NextStage:
    pass


@dataclass(frozen=True)
class PrevStage:
    pass


@dataclass(frozen=True)
class JumpToStage:
    stage_id: str


Intent = Union[SelectRegion, SelectYear, ToggleGender, NextStage, PrevStage, JumpToStage]


def stage_index(stage_id: str) -> Optional[int]:
    """Position of ``stage_id`` in :data:`STAGES`, or ``None``."""
    for i, stage in enumerate(STAGES):
        if stage.id == stage_id:
            return i
    return None


def reduce(state: ViewState, intent: Intent) -> ViewState:
    """Apply one intent and return the resulting state.

    Raises
    ------
    ValueError
        If a gender other than ``"female"`` or ``"male"`` is selected.
    TypeError
        If ``intent`` is not one of the known intent types.
    """
    if isinstance(intent, NextStage):
        return replace(state, stage_index=min(state.stage_index + 1, len(STAGES) - 1))
    if isinstance(intent, PrevStage):
        return replace(state, stage_index=max(state.stage_index - 1, 0))
    if isinstance(intent, JumpToStage):
        index = stage_index(intent.stage_id)
        if index is None:
            logger.warning("Unknown stage %r; staying on %s", intent.stage_id, state.stage.id)
            return state
        return replace(state, stage_index=index)
    if isinstance(intent, SelectRegion):
        return replace(state, region=intent.region)
    if isinstance(intent, SelectYear):
        return replace(state, year=int(intent.year))
    if isinstance(intent, ToggleGender):
        if intent.gender not in GENDERS:
            raise ValueError(f"Unknown gender {intent.gender!r}; expected one of {GENDERS}.")
        return replace(state, gender=intent.gender)
    raise TypeError(f"Unsupported intent: {intent!r}")


def initial_state(regions: Sequence[str], years: Sequence[int]) -> ViewState:
    """First region, latest year, default gender, first stage.

    With no data loaded the selection stays empty and the controls are inert.
    """
    return ViewState(
        region=regions[0] if regions else None,
        year=max(years) if years else None,
    )


# ---------------------------------------------------------------------------
# Derived control state
# ---------------------------------------------------------------------------


def stage_track(state: ViewState) -> List[Tuple[Stage, str]]:
    """Each stage with its status: ``active``, ``completed`` or ``upcoming``."""
    track = []
    for i, stage in enumerate(STAGES):
        if i == state.stage_index:
            status = "active"
        elif i < state.stage_index:
            status = "completed"
        else:
            status = "upcoming"
        track.append((stage, status))
    return track


def prev_disabled(state: ViewState) -> bool:
    return state.is_first


def advance_label(state: ViewState) -> str:
    # Advancing from the last stage stays a no-op; only the label changes.
    return FINISH_LABEL if state.is_last else NEXT_LABEL
