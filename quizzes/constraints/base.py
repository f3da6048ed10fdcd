from dataclasses import dataclass
from typing import Optional


class ViolationKind:
    TOO_MANY_ANSWERS = 'too_many_answers'
    INVALID_ANSWER_COUNT = 'invalid_answer_count'
    MUST_HAVE_EXACTLY_ONE_CORRECT = 'must_have_exactly_one_correct'
    CANNOT_DELETE_LAST_ANSWER = 'cannot_delete_last_answer'


@dataclass(frozen=True)
class AnswerSnapshot:
    """The part of an answer row the constraint checks look at."""
    id: Optional[int]
    is_correct: bool


@dataclass(frozen=True)
class ConstraintResult:
    ok: bool
    kind: Optional[str] = None
    reason: str = ''

    @classmethod
    def accept(cls) -> 'ConstraintResult':
        return cls(ok=True)

    @classmethod
    def reject(cls, kind: str, reason: str) -> 'ConstraintResult':
        return cls(ok=False, kind=kind, reason=reason)

    @property
    def rejected(self) -> bool:
        return not self.ok

    def raise_if_rejected(self):
        if self.ok:
            return
        from quizzes.exceptions import violation_for_kind
        raise violation_for_kind(self.kind, self.reason)
