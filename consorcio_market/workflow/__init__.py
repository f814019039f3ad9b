"""Proposal status workflow — transition graph, approval gate, cascade."""

from consorcio_market.workflow.engine import ProposalWorkflow
from consorcio_market.workflow.transitions import TRANSITIONS, can_transition, check_transition

__all__ = [
    "ProposalWorkflow",
    "TRANSITIONS",
    "can_transition",
    "check_transition",
]
