"""
Tests for the budget status lifecycle.
"""

from datetime import datetime

import pytest

from purse.errors import InvalidTransitionError
from purse.model.budget import BudgetStatus, PauseInterval
from purse.services.lifecycle import (
    TRANSITIONS,
    LifecycleAction,
    allowed_actions,
    archive_budget,
    pause_tracking,
    restore_budget,
    resume_budget,
    resume_tracking,
    suspend_renewal,
    target_status,
    transition,
)

A = LifecycleAction
S = BudgetStatus

LEGAL = {
    (S.active, A.suspend_renewal): S.suspended,
    (S.active, A.pause_tracking): S.paused,
    (S.suspended, A.pause_tracking): S.paused,
    (S.active, A.archive_budget): S.archived,
    (S.suspended, A.archive_budget): S.archived,
    (S.paused, A.archive_budget): S.archived,
    (S.suspended, A.resume_budget): S.active,
    (S.paused, A.resume_budget): S.active,
    (S.paused, A.resume_tracking): S.active,
    (S.archived, A.restore_budget): S.active,
}

ALL_PAIRS = [(status, action) for status in S for action in A]


class DescribeTransitionTable:
    @pytest.mark.parametrize("status,action", [p for p in ALL_PAIRS if p in LEGAL])
    def it_should_apply_every_listed_transition(self, monthly_budget, status, action):
        budget = monthly_budget.model_copy(update={"status": status})

        updated = transition(budget, action)

        assert updated.status == LEGAL[(status, action)]

    @pytest.mark.parametrize("status,action", [p for p in ALL_PAIRS if p not in LEGAL])
    def it_should_reject_every_unlisted_transition(self, monthly_budget, status, action):
        budget = monthly_budget.model_copy(update={"status": status})

        with pytest.raises(InvalidTransitionError) as exc:
            transition(budget, action)

        assert exc.value.status == status.value
        assert exc.value.action == action.value
        assert exc.value.budget_id == budget.id

    def it_should_declare_exactly_the_legal_pairs(self):
        declared = {
            (status, action) for action, moves in TRANSITIONS.items() for status in moves
        }
        assert declared == set(LEGAL)

    def it_should_reject_unknown_actions(self, monthly_budget):
        with pytest.raises(InvalidTransitionError):
            transition(monthly_budget, "delete_budget")

    def it_should_accept_action_names_as_strings(self, monthly_budget):
        assert transition(monthly_budget, "suspend_renewal").status == S.suspended


class DescribeTransition:
    def it_should_not_modify_the_input_budget(self, monthly_budget):
        transition(monthly_budget, A.archive_budget)
        assert monthly_budget.status == S.active
        assert monthly_budget.archived_at is None

    def it_should_record_pause_details(self, monthly_budget):
        at = datetime(2025, 1, 10, 8, 0)

        paused = pause_tracking(monthly_budget, at=at, reason="travelling")

        assert paused.paused_at == at
        assert paused.paused_reason == "travelling"
        assert paused.paused_from == S.active

    def it_should_clear_pause_details_when_leaving_paused(self, monthly_budget):
        paused = pause_tracking(monthly_budget, at=datetime(2025, 1, 10), reason="travelling")

        resumed = resume_budget(paused)

        assert resumed.paused_at is None
        assert resumed.paused_reason is None
        assert resumed.paused_from is None

    def it_should_remember_closed_pauses(self, monthly_budget):
        paused = pause_tracking(monthly_budget, at=datetime(2025, 1, 10, 8, 0))

        resumed = resume_tracking(paused, at=datetime(2025, 1, 20, 18, 0))
        paused_again = pause_tracking(resumed, at=datetime(2025, 1, 25))
        archived = archive_budget(paused_again, at=datetime(2025, 1, 27))

        assert resumed.pause_history == [
            PauseInterval(
                paused_at=datetime(2025, 1, 10, 8, 0), resumed_at=datetime(2025, 1, 20, 18, 0)
            )
        ]
        assert [p.resumed_at for p in archived.pause_history] == [
            datetime(2025, 1, 20, 18, 0),
            datetime(2025, 1, 27),
        ]
        assert monthly_budget.pause_history == []

    def it_should_stamp_and_clear_archive_time(self, monthly_budget):
        at = datetime(2025, 2, 1, 12, 0)

        archived = archive_budget(monthly_budget, at=at)
        restored = restore_budget(archived)

        assert archived.archived_at == at
        assert restored.archived_at is None
        assert restored.status == S.active

    def it_should_clear_pause_details_when_archiving_a_paused_budget(self, monthly_budget):
        paused = pause_tracking(monthly_budget, at=datetime(2025, 1, 10))
        archived = archive_budget(paused)
        assert archived.paused_at is None
        assert archived.status == S.archived

    def it_should_not_change_the_version(self, monthly_budget):
        budget = monthly_budget.model_copy(update={"version": 3})
        assert suspend_renewal(budget).version == 3


class DescribeResumeTracking:
    def it_should_return_a_paused_budget_to_active(self, monthly_budget):
        assert resume_tracking(pause_tracking(monthly_budget)).status == S.active

    def it_should_keep_renewal_suspended_after_resuming_tracking(self, monthly_budget):
        paused = pause_tracking(suspend_renewal(monthly_budget))

        resumed = resume_tracking(paused)

        assert resumed.status == S.suspended
        assert not resumed.status.auto_renews
        assert resumed.status.can_track

    def it_should_fully_reactivate_with_resume_budget(self, monthly_budget):
        paused = pause_tracking(suspend_renewal(monthly_budget))
        assert resume_budget(paused).status == S.active

    def it_should_default_to_active_when_pause_origin_is_unknown(self, monthly_budget):
        budget = monthly_budget.model_copy(update={"status": S.paused})
        assert target_status(budget, A.resume_tracking) == S.active


class DescribeAllowedActions:
    def it_should_list_actions_for_active_budgets(self, monthly_budget):
        assert allowed_actions(monthly_budget) == [
            A.suspend_renewal,
            A.pause_tracking,
            A.archive_budget,
        ]

    def it_should_only_allow_restore_when_archived(self, monthly_budget):
        archived = archive_budget(monthly_budget)
        assert allowed_actions(archived) == [A.restore_budget]
