"""
Answer-set constraint checks.

Every function here is a pure decision over snapshots of the answer set;
reading the rows and writing the outcome is the job of the services layer.
Checks run in a fixed order (count bound, then correctness) and only the
first failure is reported.
"""
from typing import Iterable, Optional

from .base import AnswerSnapshot, ConstraintResult, ViolationKind
from .policy import MIN_ANSWERS_AFTER_DELETE, REQUIRED_CORRECT_ANSWERS, get_policy


EXACTLY_ONE_CORRECT_MESSAGE = 'Must have exactly one correct answer'
LAST_ANSWER_MESSAGE = 'Cannot delete the last answer. A question must have at least one answer.'
SOLE_CORRECT_MESSAGE = (
    'Cannot delete the only correct answer. '
    'Mark another answer as correct before deleting this one.'
)


def project_counts(existing_answers: Iterable[AnswerSnapshot], candidate_is_correct: bool,
                   exclude_id: Optional[int] = None) -> tuple:
    """
    Return (projected_total, projected_correct) for adding or updating one answer.

    With ``exclude_id`` the candidate replaces that row in place, so the row
    is dropped from the base counts whether or not the caller already
    filtered it out. Either way the candidate itself counts once.
    """
    remaining = [a for a in existing_answers if exclude_id is None or a.id != exclude_id]
    projected_total = len(remaining) + 1
    projected_correct = sum(1 for a in remaining if a.is_correct)
    if candidate_is_correct:
        projected_correct += 1
    return projected_total, projected_correct


def check_constraints(question_type, existing_answers: Iterable[AnswerSnapshot],
                      candidate, exclude_id: Optional[int] = None) -> ConstraintResult:
    """Decide whether adding (or, with ``exclude_id``, updating) ``candidate`` keeps the set valid."""
    policy = get_policy(question_type)
    total, correct = project_counts(existing_answers, candidate.is_correct, exclude_id)

    if total > policy.max_answers:
        return ConstraintResult.reject(ViolationKind.TOO_MANY_ANSWERS, policy.too_many_message)
    if correct != REQUIRED_CORRECT_ANSWERS:
        return ConstraintResult.reject(
            ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT, EXACTLY_ONE_CORRECT_MESSAGE
        )
    return ConstraintResult.accept()


def validate_answer_set(question_type, answers: Iterable, enforce_minimum: bool = True) -> ConstraintResult:
    """
    Validate a complete proposed answer set, as used by question creation and
    batch replace. ``answers`` only needs an ``is_correct`` attribute or key.
    """
    policy = get_policy(question_type)
    flags = [_is_correct(a) for a in answers]
    total = len(flags)

    if total > policy.max_answers:
        return ConstraintResult.reject(ViolationKind.TOO_MANY_ANSWERS, policy.too_many_message)
    if enforce_minimum and total < policy.min_answers:
        return ConstraintResult.reject(ViolationKind.INVALID_ANSWER_COUNT, policy.count_range_message)
    if sum(flags) != REQUIRED_CORRECT_ANSWERS:
        return ConstraintResult.reject(
            ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT, EXACTLY_ONE_CORRECT_MESSAGE
        )
    return ConstraintResult.accept()


def check_delete(existing_answers: Iterable[AnswerSnapshot], target: AnswerSnapshot,
                 block_sole_correct: bool = True) -> ConstraintResult:
    """Decide whether ``target`` may be removed from ``existing_answers``."""
    existing = list(existing_answers)
    if len(existing) <= MIN_ANSWERS_AFTER_DELETE:
        return ConstraintResult.reject(ViolationKind.CANNOT_DELETE_LAST_ANSWER, LAST_ANSWER_MESSAGE)

    if block_sole_correct and target.is_correct:
        correct = sum(1 for a in existing if a.is_correct)
        if correct <= REQUIRED_CORRECT_ANSWERS:
            return ConstraintResult.reject(
                ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT, SOLE_CORRECT_MESSAGE
            )
    return ConstraintResult.accept()


def _is_correct(answer) -> bool:
    if isinstance(answer, dict):
        return bool(answer.get('is_correct'))
    return bool(answer.is_correct)
