"""
Time entry state machine.

    (none) ──create──▶ draft ──submit──▶ submitted ──approve──▶ approved
                        ▲  ▲                 │
                 update │  └────update─── rejected ◀──reject──┘

``approved`` is terminal. ``rejected`` re-enters ``draft`` when its owner
edits it, and that edit clears the review metadata. Owners may delete
entries that are ``draft`` or ``rejected``.

The transition table is the single source of truth: services check it
before acting and hand its source statuses to the repository so the
conditional UPDATE/DELETE re-checks the status inside the write itself.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import FrozenSet, Optional

from timetrack.core.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ValidationError,
)
from timetrack.models.employee import Employee
from timetrack.models.time_entry import TimeEntryStatus

logger = logging.getLogger(__name__)


class EntryAction(str, Enum):
    CREATE = "create"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    UPDATE = "update"
    DELETE = "delete"


class Actor(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"


@dataclass(frozen=True)
class Transition:
    sources: FrozenSet[Optional[TimeEntryStatus]]
    # None: the entry no longer exists afterwards
    target: Optional[TimeEntryStatus]
    actor: Actor


TRANSITIONS: dict[EntryAction, Transition] = {
    EntryAction.CREATE: Transition(
        frozenset({None}), TimeEntryStatus.DRAFT, Actor.OWNER
    ),
    EntryAction.SUBMIT: Transition(
        frozenset({TimeEntryStatus.DRAFT}), TimeEntryStatus.SUBMITTED, Actor.OWNER
    ),
    EntryAction.APPROVE: Transition(
        frozenset({TimeEntryStatus.SUBMITTED}), TimeEntryStatus.APPROVED, Actor.ADMIN
    ),
    EntryAction.REJECT: Transition(
        frozenset({TimeEntryStatus.SUBMITTED}), TimeEntryStatus.REJECTED, Actor.ADMIN
    ),
    EntryAction.UPDATE: Transition(
        frozenset({TimeEntryStatus.DRAFT, TimeEntryStatus.REJECTED}),
        TimeEntryStatus.DRAFT,
        Actor.OWNER,
    ),
    EntryAction.DELETE: Transition(
        frozenset({TimeEntryStatus.DRAFT, TimeEntryStatus.REJECTED}),
        None,
        Actor.OWNER,
    ),
}

TERMINAL_STATUSES = frozenset({TimeEntryStatus.APPROVED})


def source_statuses(action: EntryAction) -> tuple[TimeEntryStatus, ...]:
    """Return the statuses *action* may start from, in a stable order."""
    sources = [s for s in TRANSITIONS[action].sources if s is not None]
    return tuple(sorted(sources, key=lambda s: s.value))


def is_editable(status: TimeEntryStatus) -> bool:
    return status in TRANSITIONS[EntryAction.UPDATE].sources


def clears_review_metadata(current: TimeEntryStatus) -> bool:
    """An owner edit of a rejected entry wipes reviewed_at/by and the notes."""
    return current == TimeEntryStatus.REJECTED


def review_action(decision: TimeEntryStatus) -> EntryAction:
    """Map an admin review decision onto its transition."""
    if decision == TimeEntryStatus.APPROVED:
        return EntryAction.APPROVE
    if decision == TimeEntryStatus.REJECTED:
        return EntryAction.REJECT
    raise ValidationError(
        f"Review decision must be 'approved' or 'rejected', got '{decision.value}'"
    )


def check_actor(action: EntryAction, actor: Employee, owner_id: int) -> None:
    """Raise PermissionDeniedError when *actor* may not trigger *action*."""
    transition = TRANSITIONS[action]
    if transition.actor == Actor.OWNER and actor.id != owner_id:
        logger.warning(
            "Employee id=%s attempted to %s entry owned by id=%s",
            actor.id,
            action.value,
            owner_id,
        )
        raise PermissionDeniedError(f"You can only {action.value} your own time entries")
    if transition.actor == Actor.ADMIN and not actor.is_admin:
        logger.warning("Non-admin employee id=%s attempted to %s", actor.id, action.value)
        raise PermissionDeniedError("Only admins can review time entries")


def check_transition(
    action: EntryAction,
    current: Optional[TimeEntryStatus],
    actor: Employee,
    owner_id: int,
) -> Optional[TimeEntryStatus]:
    """
    Validate *action* against the transition table and return the target status.

    Raises:
        PermissionDeniedError: the actor is not the owner / not an admin.
        InvalidStateError: *current* is not a legal source status.
    """
    check_actor(action, actor, owner_id)
    transition = TRANSITIONS[action]
    if current not in transition.sources:
        state = current.value if current is not None else "new"
        logger.warning("Illegal transition %s from status=%s", action.value, state)
        raise InvalidStateError(f"Cannot {action.value} a time entry that is {state}")
    return transition.target
