"""Proposal status graph.

Only edges listed here are legal. The workflow engine re-reads the stored
status and checks the edge before every write.
"""

from __future__ import annotations

from consorcio_market.errors import InvalidTransition
from consorcio_market.models.enums import CotaStatus, ProposalStatus

# Transition map: {current_status: allowed next statuses}
TRANSITIONS: dict[ProposalStatus, frozenset[ProposalStatus]] = {
    ProposalStatus.UNDER_REVIEW: frozenset({
        ProposalStatus.PRE_APPROVED,
        ProposalStatus.REJECTED,
    }),
    ProposalStatus.PRE_APPROVED: frozenset({
        ProposalStatus.APPROVED,
        ProposalStatus.REJECTED,
        ProposalStatus.UNDER_REVIEW,
    }),
    ProposalStatus.APPROVED: frozenset({
        ProposalStatus.TRANSFER_STARTED,
        ProposalStatus.REJECTED,
    }),
    ProposalStatus.TRANSFER_STARTED: frozenset({
        ProposalStatus.COMPLETED,
        ProposalStatus.REJECTED,
    }),
    ProposalStatus.COMPLETED: frozenset(),
    ProposalStatus.REJECTED: frozenset({
        ProposalStatus.UNDER_REVIEW,
    }),
}

# Proposals in these statuses no longer hold a claim on their quota
INACTIVE_STATUSES: frozenset[ProposalStatus] = frozenset({
    ProposalStatus.REJECTED,
    ProposalStatus.COMPLETED,
})

# Quotas in these statuses are never moved back to AVAILABLE by a rejection
SETTLED_COTA_STATUSES: frozenset[CotaStatus] = frozenset({
    CotaStatus.SOLD,
    CotaStatus.REMOVED,
})


def can_transition(current: ProposalStatus, target: ProposalStatus) -> bool:
    """Check if target is reachable from current in one step."""
    return target in TRANSITIONS.get(current, frozenset())


def check_transition(current: ProposalStatus, target: ProposalStatus) -> None:
    """Raise InvalidTransition when the edge is not in the graph."""
    if not can_transition(current, target):
        raise InvalidTransition(current.value, target.value)


def is_terminal(status: ProposalStatus) -> bool:
    """A status with no outgoing edge."""
    return len(TRANSITIONS.get(status, frozenset())) == 0
