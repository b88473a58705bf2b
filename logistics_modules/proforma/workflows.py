"""Proforma Workflows.

State machines for the PJO approval lifecycle and cost item confirmation.
"""

from logistics_kernel.domain.workflow import Guard, Transition, Workflow
from logistics_kernel.logging_config import get_logger

logger = get_logger("modules.proforma.workflows")


SUBMISSION_VALID = Guard("submission_valid", "PJO passes submission validation")
REASON_PROVIDED = Guard("reason_provided", "Rejection carries a non-empty reason")
OVERRUN_JUSTIFIED = Guard("overrun_justified", "Cost above estimate carries a justification")


PJO_WORKFLOW = Workflow(
    name="proforma_job_order",
    description="Proforma job order approval lifecycle",
    initial_state="draft",
    states=("draft", "pending_approval", "approved", "rejected"),
    transitions=(
        Transition("draft", "pending_approval", action="submit", guard=SUBMISSION_VALID),
        Transition("pending_approval", "approved", action="approve"),
        Transition("pending_approval", "rejected", action="reject", guard=REASON_PROVIDED),
    ),
    terminal_states=("approved", "rejected"),
)

logger.info("pjo_workflow_registered", extra={
    "workflow_name": PJO_WORKFLOW.name,
    "state_count": len(PJO_WORKFLOW.states),
})


_CONFIRMED_STATES = ("under_budget", "confirmed", "exceeded")


def _confirmation_edges() -> tuple[Transition, ...]:
    edges = []
    for target in _CONFIRMED_STATES:
        guard = OVERRUN_JUSTIFIED if target == "exceeded" else None
        edges.append(Transition("estimated", target, action="confirm", guard=guard))
    # Corrections move between confirmed states; nothing returns to estimated.
    for source in _CONFIRMED_STATES:
        for target in _CONFIRMED_STATES:
            guard = OVERRUN_JUSTIFIED if target == "exceeded" else None
            edges.append(Transition(source, target, action="revise", guard=guard))
    return tuple(edges)


COST_ITEM_WORKFLOW = Workflow(
    name="cost_item",
    description="Cost item estimate to actual confirmation",
    initial_state="estimated",
    states=("estimated",) + _CONFIRMED_STATES,
    transitions=_confirmation_edges(),
)

logger.info("cost_item_workflow_registered", extra={
    "workflow_name": COST_ITEM_WORKFLOW.name,
    "state_count": len(COST_ITEM_WORKFLOW.states),
})
