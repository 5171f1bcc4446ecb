"""
seedling_lifecycle.py — Phase transitions for indoor seedlings.

Seedlings move forward through five ordered phases:
    sown → germinated → true_leaves → hardening → transplanted
and can be marked 'failed' from any phase that is not terminal.

Rules:
- Forward only: the target phase must rank strictly above the current one
  (skipping phases is allowed, staying put is not)
- 'failed' is reachable from sown, germinated, true_leaves and hardening
- 'transplanted' and 'failed' are terminal: nothing leaves them
- Transplanting links the seedling to a planting when an id is supplied
"""

import logging
from dataclasses import replace
from datetime import date
from enum import Enum

from models import Seedling
from utils.errors import InvalidTransition, InvalidInput

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Seedling growth phase."""
    SOWN = "sown"
    GERMINATED = "germinated"
    TRUE_LEAVES = "true_leaves"
    HARDENING = "hardening"
    TRANSPLANTED = "transplanted"
    FAILED = "failed"

    def rank(self) -> int:
        """Position in the forward sequence; 'failed' sits outside it."""
        return _RANKS.get(self, -1)

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.TRANSPLANTED, Phase.FAILED)


_RANKS = {
    Phase.SOWN: 0,
    Phase.GERMINATED: 1,
    Phase.TRUE_LEAVES: 2,
    Phase.HARDENING: 3,
    Phase.TRANSPLANTED: 4,
}

PHASE_VALUES = tuple(p.value for p in Phase)


def to_phase(value):
    """Coerce a phase name (or Phase) to a Phase."""
    if isinstance(value, Phase):
        return value
    try:
        return Phase(value)
    except ValueError:
        raise InvalidInput(
            f"Unknown phase {value!r}. Expected one of: {', '.join(PHASE_VALUES)}.",
            field="phase", allowed=list(PHASE_VALUES),
        )


def can_transition(current, target) -> bool:
    current, target = to_phase(current), to_phase(target)
    if current.is_terminal:
        return False
    if target is Phase.FAILED:
        return True
    return target.rank() > current.rank()


def allowed_targets(current):
    """Phases reachable in one step from current, in lifecycle order."""
    current = to_phase(current)
    return [p.value for p in Phase if can_transition(current, p)]


def check_transition(current, target):
    """Raise InvalidTransition unless current → target is a legal move."""
    if can_transition(current, target):
        return
    current, target = to_phase(current), to_phase(target)
    if current.is_terminal:
        reason = f"\"{current.value}\" is a final phase"
    else:
        reason = "current phase is already at or past target"
    raise InvalidTransition(
        f"Cannot move from \"{current.value}\" to \"{target.value}\": {reason}.",
        current=current.value, requested=target.value, allowed=allowed_targets(current),
    )


def new_seedling(user_id, plant_name, variety=None, count=1, sown_at=None, notes=None):
    """Initial record: phase 'sown', phase_changed_at equal to the sowing date."""
    sown_at = sown_at or date.today().isoformat()
    return Seedling(
        user_id=user_id,
        plant_name=plant_name,
        variety=variety,
        count=count,
        phase=Phase.SOWN.value,
        sown_at=sown_at,
        phase_changed_at=sown_at,
        notes=notes,
    )


def transition_warnings(target, planting_id=None):
    """Advisory messages for legal but unusual transitions."""
    target = to_phase(target)
    if target is Phase.TRANSPLANTED and not planting_id:
        return ["Transplanted without a planting_id: the seedling is not linked to a garden square."]
    if target is not Phase.TRANSPLANTED and planting_id:
        return [f"planting_id is only recorded when transplanting; ignored for \"{target.value}\"."]
    return []


def apply_transition(seedling, target, on_date=None, planting_id=None):
    """
    Move a seedling to a new phase.

    Args:
        seedling: Seedling dataclass holding the current phase.
        target: Phase or phase name.
        on_date: ISO date of the change (default: today).
        planting_id: Linked planting, recorded only when target is 'transplanted'.
            Its existence is not checked here.

    Returns:
        A new Seedling; the input is not modified.

    Raises:
        InvalidTransition: the move is backwards, a self-loop, or leaves a terminal phase.
    """
    check_transition(seedling.phase, target)
    target = to_phase(target)

    changes = {
        'phase': target.value,
        'phase_changed_at': on_date or date.today().isoformat(),
    }
    if target is Phase.TRANSPLANTED:
        if planting_id:
            changes['planting_id'] = planting_id
        else:
            logger.warning("Seedling %s transplanted without a linked planting", seedling.id)

    return replace(seedling, **changes)
