from dataclasses import dataclass

from quizzes.models.question import Question

# Floor enforced on individual deletes.
MIN_ANSWERS_AFTER_DELETE = 1
REQUIRED_CORRECT_ANSWERS = 1


@dataclass(frozen=True)
class AnswerPolicy:
    question_type: str
    label: str
    min_answers: int
    max_answers: int

    @property
    def too_many_message(self) -> str:
        if self.min_answers == self.max_answers:
            return f"{self.label} questions can only have {self.max_answers} answers"
        return f"{self.label} questions can have at most {self.max_answers} answers"

    @property
    def count_range_message(self) -> str:
        if self.min_answers == self.max_answers:
            return f"{self.label} questions must have exactly {self.max_answers} answers"
        return f"{self.label} questions must have between {self.min_answers} and {self.max_answers} answers"


ANSWER_POLICIES = {
    Question.QuestionType.TRUE_FALSE: AnswerPolicy(
        question_type=Question.QuestionType.TRUE_FALSE,
        label='True/False',
        min_answers=2,
        max_answers=2,
    ),
    Question.QuestionType.MULTIPLE_CHOICE: AnswerPolicy(
        question_type=Question.QuestionType.MULTIPLE_CHOICE,
        label='Multiple choice',
        min_answers=2,
        max_answers=4,
    ),
}


def get_policy(question_type) -> AnswerPolicy:
    try:
        return ANSWER_POLICIES[question_type]
    except KeyError:
        raise ValueError(f"Unknown question type: {question_type!r}") from None
