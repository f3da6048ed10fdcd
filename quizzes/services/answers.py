"""
Answer mutations, gated by the constraint engine.

Each mutation reads the question type and the current answer set, asks the
engine for a decision and only then writes. Reads and the write share one
transaction; with QUIZ_ENGINE['LOCK_ANSWER_WRITES'] the question row is
locked first so concurrent writers to the same question run one at a time.
Deletes always take the lock.
"""
import logging

from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import NotFound

from quizzes.constraints import AnswerSnapshot, check_constraints, check_delete, validate_answer_set
from quizzes.exceptions import store_errors
from quizzes.models import Answer, Question

logger = logging.getLogger(__name__)

ANSWER_FIELDS = ('answer_text', 'image_url', 'is_correct', 'order_index')


def answer_fields(data):
    return {field: data[field] for field in ANSWER_FIELDS if field in data}


def engine_setting(name, default):
    return getattr(settings, 'QUIZ_ENGINE', {}).get(name, default)


def load_question_for_write(question_id, lock=None):
    if lock is None:
        lock = engine_setting('LOCK_ANSWER_WRITES', True)
    queryset = Question.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    question = queryset.filter(pk=question_id).first()
    if question is None:
        raise NotFound('Question not found')
    return question


def answer_snapshots(question_id):
    rows = Answer.objects.filter(question_id=question_id).values_list('id', 'is_correct')
    return [AnswerSnapshot(id=pk, is_correct=is_correct) for pk, is_correct in rows]


def delete_answer_guarded(answer_id, question_id, block_sole_correct=None):
    """
    Atomically check and delete one answer.

    Returns True when the row was deleted and False when no such answer
    belongs to the question. Raises CannotDeleteLastAnswer when the answer
    is the only one left, and MustHaveExactlyOneCorrect when it is the only
    correct answer and that guard is enabled.
    """
    if block_sole_correct is None:
        block_sole_correct = engine_setting('BLOCK_DELETE_OF_SOLE_CORRECT', True)

    with store_errors('delete answer', answer_id=answer_id, question_id=question_id), transaction.atomic():
        locked = Question.objects.select_for_update().filter(pk=question_id).first()
        if locked is None:
            return False

        existing = answer_snapshots(question_id)
        target = next((a for a in existing if a.id == answer_id), None)
        if target is None:
            return False

        result = check_delete(existing, target, block_sole_correct=block_sole_correct)
        if result.rejected:
            logger.info(
                f"Answer delete rejected | Question: {question_id} | Answer: {answer_id} | Reason: {result.kind}"
            )
            result.raise_if_rejected()

        Answer.objects.filter(pk=answer_id, question_id=question_id).delete()

    logger.info(f"Answer deleted | Question: {question_id} | Answer: {answer_id}")
    return True


class AnswerService:
    """Add, update, delete and batch-replace the answers of one question."""

    @classmethod
    def add_answer(cls, question, data):
        with store_errors('create answer', question_id=question.pk), transaction.atomic():
            locked = load_question_for_write(question.pk)
            candidate = AnswerSnapshot(id=None, is_correct=bool(data.get('is_correct')))
            result = check_constraints(locked.question_type, answer_snapshots(locked.pk), candidate)
            if result.rejected:
                logger.info(f"Answer create rejected | Question: {locked.pk} | Reason: {result.kind}")
                result.raise_if_rejected()

            answer = Answer.objects.create(question=locked, **answer_fields(data))

        logger.info(f"Answer created | Question: {question.pk} | Answer: {answer.pk}")
        return answer

    @classmethod
    def update_answer(cls, question, answer_id, data):
        with store_errors('update answer', question_id=question.pk, answer_id=answer_id), transaction.atomic():
            locked = load_question_for_write(question.pk)
            answer = Answer.objects.filter(pk=answer_id, question_id=locked.pk).first()
            if answer is None:
                raise NotFound('Answer not found')

            candidate = AnswerSnapshot(id=answer.pk, is_correct=bool(data.get('is_correct', answer.is_correct)))
            result = check_constraints(
                locked.question_type, answer_snapshots(locked.pk), candidate, exclude_id=answer.pk
            )
            if result.rejected:
                logger.info(
                    f"Answer update rejected | Question: {locked.pk} | Answer: {answer.pk} | Reason: {result.kind}"
                )
                result.raise_if_rejected()

            for field, value in answer_fields(data).items():
                setattr(answer, field, value)
            answer.save()

        logger.info(f"Answer updated | Question: {question.pk} | Answer: {answer.pk}")
        return answer

    @classmethod
    def delete_answer(cls, question, answer_id):
        if not delete_answer_guarded(answer_id, question.pk):
            raise NotFound('Answer not found')

    @classmethod
    def replace_answers(cls, question, answers_data, question_type=None):
        """
        Swap the whole answer set in one transaction.

        The proposed set is validated as a whole before the old rows are
        removed, so an invalid set or a failed insert leaves the original
        answers untouched.
        """
        with store_errors('replace answers', question_id=question.pk), transaction.atomic():
            locked = load_question_for_write(question.pk)
            result = validate_answer_set(question_type or locked.question_type, answers_data)
            if result.rejected:
                logger.info(f"Answer replace rejected | Question: {locked.pk} | Reason: {result.kind}")
                result.raise_if_rejected()

            Answer.objects.filter(question_id=locked.pk).delete()
            created = Answer.objects.bulk_create([
                Answer(question=locked, **answer_fields(data)) for data in answers_data
            ])

        logger.info(f"Answers replaced | Question: {question.pk} | Count: {len(created)}")
        return created
