"""Cleanup planning and confirmation."""

from typing import Callable, Mapping

from pruner.logging_config import get_logger
from pruner.models import TIERS, BranchCandidate, CleanupPlan, MergeStatus, PlanEntry, WorktreeLink

logger = get_logger(__name__)


def build_plan(
    classifications: Mapping[BranchCandidate, MergeStatus],
    links: Mapping[BranchCandidate, WorktreeLink],
) -> CleanupPlan:
    """Group classified branches into an ordered plan, tier by tier.

    Unclassified branches never enter the plan. Within a tier, branches keep
    their inventory order.
    """
    entries = []
    for status in TIERS:
        for branch, branch_status in classifications.items():
            if branch_status is not status:
                continue
            link = links.get(branch) or WorktreeLink(branch)
            entries.append(PlanEntry(branch, status, link))
    return CleanupPlan(tuple(entries))


class ConfirmationGate:
    """Decide which tiers of a plan are approved.

    Without ``force``, never-pushed branches get their own prompt first since
    their evidence is weak, then the remaining tiers share a single prompt.
    Declining a prompt drops only that prompt's tiers.
    """

    def __init__(
        self,
        confirm: Callable[[str], bool],
        warn: Callable[[str], None],
        force: bool = False,
    ) -> None:
        self.confirm = confirm
        self.warn = warn
        self.force = force

    def approve(self, plan: CleanupPlan) -> CleanupPlan:
        if not plan:
            return plan

        manual = plan.manual_entries
        auto = plan.auto_entries

        if self.force:
            if manual:
                self.warn(f"Including {len(manual)} branch(es) that were never pushed")
            return plan

        approved = plan
        if manual:
            question = f"Also delete {len(manual)} branch(es) that were never pushed?"
            if not self.confirm(question):
                logger.info("Never-pushed branches declined")
                approved = approved.without([MergeStatus.UNPUSHED])

        if auto:
            question = f"Remove {len(auto)} merged branch(es) and their worktrees?"
            if not self.confirm(question):
                logger.info("Merged branches declined")
                approved = approved.without(status for status in TIERS if not status.requires_confirmation)

        return approved
