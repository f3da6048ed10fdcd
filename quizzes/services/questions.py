"""
Question Service: create, update, delete and reorder questions.
"""
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from quizzes.constraints import validate_answer_set
from quizzes.exceptions import store_errors
from quizzes.models import Answer, Question
from .answers import AnswerService, answer_fields, answer_snapshots, load_question_for_write

logger = logging.getLogger(__name__)

QUESTION_FIELDS = (
    'question_text', 'question_type', 'image_url',
    'show_question_time', 'answering_time', 'show_explanation_time',
    'points', 'difficulty', 'order_index',
    'explanation_title', 'explanation_text', 'explanation_image_url',
)


class QuestionService:

    @classmethod
    def create_question(cls, quiz, data):
        """Insert a question together with its full answer set."""
        answers_data = data.get('answers', [])
        validate_answer_set(data['question_type'], answers_data).raise_if_rejected()

        with store_errors('create question', quiz_id=quiz.pk), transaction.atomic():
            question = Question.objects.create(
                question_set=quiz,
                **{field: data[field] for field in QUESTION_FIELDS if field in data}
            )
            Answer.objects.bulk_create([
                Answer(question=question, **answer_fields(answer)) for answer in answers_data
            ])
            quiz.refresh_question_count()

        logger.info(f"Question created | Quiz: {quiz.pk} | Question: {question.pk}")
        return question

    @classmethod
    def update_question(cls, question, data):
        """
        Apply a partial update. When ``answers`` is given the whole set is
        replaced in the same transaction, checked against the question type
        the update leaves behind. A type change without new answers must
        still fit the existing set.
        """
        with store_errors('update question', question_id=question.pk), transaction.atomic():
            locked = load_question_for_write(question.pk)
            new_type = data.get('question_type', locked.question_type)
            answers_data = data.get('answers')

            if answers_data is not None:
                validate_answer_set(new_type, answers_data).raise_if_rejected()
            elif new_type != locked.question_type:
                validate_answer_set(
                    new_type, answer_snapshots(locked.pk), enforce_minimum=False
                ).raise_if_rejected()

            for field in QUESTION_FIELDS:
                if field in data:
                    setattr(locked, field, data[field])
            locked.save()

            if answers_data is not None:
                AnswerService.replace_answers(locked, answers_data, question_type=new_type)

        logger.info(f"Question updated | Question: {locked.pk} | Answers replaced: {answers_data is not None}")
        return locked

    @classmethod
    def delete_question(cls, question):
        quiz = question.question_set
        question_id = question.pk
        with store_errors('delete question', question_id=question_id), transaction.atomic():
            question.delete()
            quiz.refresh_question_count()
        logger.info(f"Question deleted | Quiz: {quiz.pk} | Question: {question_id}")

    @classmethod
    def reorder_questions(cls, quiz, question_ids):
        """Set each question's order_index to its position in ``question_ids``."""
        if len(set(question_ids)) != len(question_ids):
            raise ValidationError({'question_ids': ['Question ids must be unique.']})

        with store_errors('reorder questions', quiz_id=quiz.pk), transaction.atomic():
            questions = {
                q.pk: q for q in Question.objects.select_for_update().filter(
                    question_set=quiz, pk__in=question_ids
                )
            }
            unknown = [qid for qid in question_ids if qid not in questions]
            if unknown:
                raise ValidationError({
                    'question_ids': [f"Question {qid} does not belong to this quiz." for qid in unknown]
                })

            now = timezone.now()
            for index, question_id in enumerate(question_ids):
                questions[question_id].order_index = index
                questions[question_id].updated_at = now
            Question.objects.bulk_update(questions.values(), ['order_index', 'updated_at'])

        logger.info(f"Questions reordered | Quiz: {quiz.pk} | Order: {question_ids}")
        return [questions[qid] for qid in question_ids]
