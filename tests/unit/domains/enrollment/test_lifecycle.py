# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the enrollment transition table."""

import pytest

from lms_enrollment.domains.enrollment.lifecycle import (
    TRANSITIONS,
    EnrollmentStatus,
    Trigger,
    allowed_targets,
    can_transition,
    is_reenrollable,
    is_terminal,
)

pytestmark = pytest.mark.unit

S = EnrollmentStatus


class TestCanTransition:
    """Tests for individual edges."""

    @pytest.mark.parametrize(
        "source,target,trigger",
        [
            (None, S.PENDING, Trigger.CREATE),
            (None, S.APPROVED, Trigger.CREATE),
            (S.REJECTED, S.PENDING, Trigger.REENROLL),
            (S.CANCELLED, S.APPROVED, Trigger.REENROLL),
            (S.PENDING, S.APPROVED, Trigger.UPDATE),
            (S.PENDING, S.REJECTED, Trigger.UPDATE),
            (S.PENDING, S.CANCELLED, Trigger.SELF_CANCEL),
            (S.APPROVED, S.CANCELLED, Trigger.SELF_CANCEL),
            (S.APPROVED, S.DROPPED, Trigger.KICK),
            (S.APPROVED, S.DROPPED, Trigger.UPDATE),
            (S.APPROVED, S.COMPLETED, Trigger.UPDATE),
        ],
    )
    def test_allowed_edges(self, source, target, trigger):
        assert can_transition(source, target, trigger)

    @pytest.mark.parametrize(
        "source,target,trigger",
        [
            (None, S.REJECTED, Trigger.CREATE),
            (S.PENDING, S.DROPPED, Trigger.KICK),
            (S.PENDING, S.COMPLETED, Trigger.UPDATE),
            (S.APPROVED, S.PENDING, Trigger.UPDATE),
            (S.REJECTED, S.APPROVED, Trigger.UPDATE),
            (S.APPROVED, S.CANCELLED, Trigger.UPDATE),
            (S.PENDING, S.CANCELLED, Trigger.KICK),
        ],
    )
    def test_rejected_edges(self, source, target, trigger):
        assert not can_transition(source, target, trigger)

    @pytest.mark.parametrize("status", [S.DROPPED, S.COMPLETED])
    def test_terminal_statuses_have_no_outgoing_edges(self, status):
        for trigger in Trigger:
            assert allowed_targets(status, trigger) == frozenset()

    def test_reenroll_only_from_rejected_or_cancelled(self):
        sources = {src for (src, _), triggers in TRANSITIONS.items() if Trigger.REENROLL in triggers}
        assert sources == {S.REJECTED, S.CANCELLED}


class TestStatusClassification:
    def test_reenrollable(self):
        assert is_reenrollable(S.REJECTED)
        assert is_reenrollable(S.CANCELLED)
        assert not is_reenrollable(S.PENDING)
        assert not is_reenrollable(S.DROPPED)

    def test_terminal(self):
        assert is_terminal(S.DROPPED)
        assert is_terminal(S.COMPLETED)
        assert not is_terminal(S.CANCELLED)

    def test_kick_targets(self):
        assert allowed_targets(S.APPROVED, Trigger.KICK) == frozenset({S.DROPPED})
