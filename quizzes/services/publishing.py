"""
Publishing Service: readiness checks and status transitions for quizzes.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from quizzes.exceptions import InvalidQuizStatus, PublishValidationFailed, store_errors
from quizzes.models import QuizSet

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self):
        return {'is_valid': self.is_valid, 'errors': self.errors, 'warnings': self.warnings}


class PublishingService:

    @staticmethod
    def _check_metadata(quiz, report):
        for attr, label in (('title', 'title'), ('description', 'description'), ('category', 'category')):
            if not (getattr(quiz, attr) or '').strip():
                report.errors.append(f"Quiz {label} is required")

        if not quiz.tags:
            report.warnings.append('Consider adding tags to help users find your quiz')
        if quiz.status == QuizSet.Status.PUBLISHED:
            report.warnings.append('Quiz is already published')

    @staticmethod
    def _check_questions(quiz, report):
        questions = quiz.questions.annotate(
            answer_count=Count('answers'),
            correct_count=Count('answers', filter=Q(answers__is_correct=True)),
        ).order_by('order_index', 'id')

        if not questions:
            report.errors.append('Quiz must have at least one question')
            return

        for question in questions:
            text = question.question_text
            if question.answer_count == 0:
                report.errors.append(f'Question "{text}" must have at least one answer')
            elif question.correct_count == 0:
                report.errors.append(f'Question "{text}" must have at least one correct answer')
            elif question.correct_count > 1:
                report.errors.append(f'Question "{text}" must have exactly one correct answer')

    @classmethod
    def validate_quiz(cls, quiz) -> ValidationReport:
        """Collect every reason ``quiz`` cannot be published, plus advisory warnings."""
        report = ValidationReport()
        with store_errors('validate quiz', quiz_id=quiz.pk):
            cls._check_metadata(quiz, report)
            cls._check_questions(quiz, report)
        return report

    @classmethod
    def publish(cls, quiz):
        report = cls.validate_quiz(quiz)
        if not report.is_valid:
            logger.info(f"Publish rejected | Quiz: {quiz.pk} | Errors: {len(report.errors)}")
            raise PublishValidationFailed(report.errors, report.warnings)

        with store_errors('publish quiz', quiz_id=quiz.pk), transaction.atomic():
            quiz.status = QuizSet.Status.PUBLISHED
            quiz.published_at = timezone.now()
            quiz.save(update_fields=['status', 'published_at', 'updated_at'])

        logger.info(f"Quiz published | Quiz: {quiz.pk}")
        return quiz, report

    @classmethod
    def unpublish(cls, quiz):
        if quiz.status != QuizSet.Status.PUBLISHED:
            raise InvalidQuizStatus()

        with store_errors('unpublish quiz', quiz_id=quiz.pk):
            quiz.status = QuizSet.Status.DRAFT
            quiz.save(update_fields=['status', 'updated_at'])

        logger.info(f"Quiz unpublished | Quiz: {quiz.pk}")
        return quiz

    @classmethod
    def start_edit(cls, quiz):
        """Move the quiz back to draft while its author edits it."""
        with store_errors('start editing quiz', quiz_id=quiz.pk):
            quiz.status = QuizSet.Status.DRAFT
            quiz.save(update_fields=['status', 'updated_at'])

        logger.info(f"Quiz editing started | Quiz: {quiz.pk}")
        return quiz
