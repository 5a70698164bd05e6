from __future__ import annotations
from datetime import datetime
from typing import Literal
import structlog
from challenge_matrix.models.challenge import ChallengeParticipant
from challenge_matrix.models.submission import MatrixSubmission
from challenge_matrix.services.store import ChallengeStore

log = structlog.get_logger()

ReviewStatus = Literal["validated", "rejected"]


class InvalidTransition(Exception):
    pass


async def review_submission(
    store: ChallengeStore, submission: MatrixSubmission, status: ReviewStatus, now: datetime
) -> ChallengeParticipant | None:
    """
    Move a pending submission to validated/rejected. A validated submission adds
    its mx_global to the submitter's participation in the submission's challenge;
    reaching the challenge's min_points completes the participation.
    Returns the participation that was credited, if any. Does not commit.
    """
    if submission.status != "pending":
        raise InvalidTransition(f"Submission already {submission.status}")
    submission.status = status
    submission.reviewed_at = now

    participant = None
    if status == "validated" and submission.challenge_id is not None:
        challenge = await store.get_challenge(submission.challenge_id)
        participant = await store.get_or_create_participant(submission.user_id, challenge.id)
        participant.current_points = int(participant.current_points or 0) + max(0, int(submission.mx_global))
        if participant.status == "active" and participant.current_points >= challenge.min_points:
            participant.status = "completed"
            participant.completed_at = now
            log.info("participation_completed", user_id=str(submission.user_id), challenge_id=str(challenge.id), points=participant.current_points)
    await store.session.flush()
    log.info("submission_reviewed", submission_id=str(submission.id), status=status)
    return participant
