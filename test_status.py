"""Tests for the claim status state machine."""

import logging

import pytest

from intake.models.status import (
    PIPELINE,
    TERMINAL_STATUSES,
    ClaimStatus,
    is_expected_transition,
    status_for_decision,
)
from intake.wizard import WizardController

S = ClaimStatus


def test_pipeline_order_and_terminal_rank():
    assert PIPELINE[0] == S.IDLE
    assert S.IMAGE_ANALYZED.pipeline_index < S.DOCUMENTS_EXTRACTED.pipeline_index
    ranks = {status.pipeline_index for status in TERMINAL_STATUSES}
    assert len(ranks) == 1
    assert all(status.is_terminal for status in TERMINAL_STATUSES)
    assert not S.RPA_COMPLETED.is_terminal


@pytest.mark.parametrize("previous, nxt", [
    (S.IDLE, S.UPLOADING_IMAGES),
    (S.ANALYZING_IMAGE, S.IMAGE_ANALYZED),
    (S.MISMATCH_DETECTED, S.AWAITING_CORRECT_IMAGE),
    (S.AWAITING_CORRECT_IMAGE, S.UPLOADING_IMAGES),
    (S.MISMATCH_DETECTED, S.ANALYZING_IMAGE),
    (S.RPA_COMPLETED, S.CLAIM_FLAGGED),
    (S.CLAIM_APPROVED, S.IDLE),
    (S.DECISION_MADE, S.DECISION_MADE),
])
def test_expected_transitions(previous, nxt):
    assert is_expected_transition(previous, nxt)


@pytest.mark.parametrize("previous, nxt", [
    (S.DECISION_MADE, S.UPLOADING_IMAGES),
    (S.IMAGE_ANALYZED, S.ANALYZING_IMAGE),
    (S.CLAIM_APPROVED, S.CLAIM_REVIEW),
])
def test_unexpected_transitions(previous, nxt):
    assert not is_expected_transition(previous, nxt)


@pytest.mark.parametrize("label, expected", [
    ("Auto-Approve", S.CLAIM_APPROVED),
    ("approved", S.CLAIM_APPROVED),
    ("Manual Review", S.CLAIM_REVIEW),
    ("needs_info", S.CLAIM_REVIEW),
    ("SIU Flag", S.CLAIM_FLAGGED),
    ("Reject", S.CLAIM_FLAGGED),
    ("", S.CLAIM_REVIEW),
])
def test_status_for_decision(label, expected):
    assert status_for_decision(label) == expected


def test_unexpected_transition_is_logged_not_rejected(fake_client, caplog):
    controller = WizardController(fake_client)
    controller.state.status = S.DECISION_MADE

    with caplog.at_level(logging.WARNING, logger="intake.wizard"):
        controller.set_status(S.UPLOADING_IMAGES)

    assert controller.state.status == S.UPLOADING_IMAGES
    assert "decision_made -> uploading_images" in caplog.text
