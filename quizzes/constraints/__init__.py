from .base import AnswerSnapshot, ConstraintResult, ViolationKind
from .policy import ANSWER_POLICIES, AnswerPolicy, get_policy
from .engine import check_constraints, check_delete, project_counts, validate_answer_set

__all__ = [
    'AnswerSnapshot', 'ConstraintResult', 'ViolationKind',
    'ANSWER_POLICIES', 'AnswerPolicy', 'get_policy',
    'check_constraints', 'check_delete', 'project_counts', 'validate_answer_set',
]
