from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator

from .quiz import QuizSet


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple_choice', 'Multiple Choice'
        TRUE_FALSE = 'true_false', 'True/False'

    question_set = models.ForeignKey(
        'QuizSet',
        on_delete=models.CASCADE,
        related_name='questions',
        db_index=True
    )
    question_text = models.CharField(max_length=500)
    question_type = models.CharField(
        max_length=20,
        choices=QuestionType.choices,
        db_index=True
    )
    image_url = models.URLField(max_length=500, null=True, blank=True)

    # Timing, in seconds
    show_question_time = models.PositiveSmallIntegerField(
        default=10,
        validators=[MinValueValidator(1), MaxValueValidator(60)]
    )
    answering_time = models.PositiveSmallIntegerField(
        default=30,
        validators=[MinValueValidator(1), MaxValueValidator(300)]
    )
    show_explanation_time = models.PositiveSmallIntegerField(
        default=5,
        validators=[MinValueValidator(1), MaxValueValidator(60)]
    )

    points = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(300)]
    )
    difficulty = models.CharField(
        max_length=10,
        choices=QuizSet.Difficulty.choices,
        default=QuizSet.Difficulty.EASY
    )
    order_index = models.PositiveIntegerField(default=0)

    explanation_title = models.CharField(max_length=100, null=True, blank=True)
    explanation_text = models.TextField(max_length=1000, null=True, blank=True)
    explanation_image_url = models.URLField(max_length=500, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order_index', 'id']
        indexes = [
            models.Index(fields=['question_set', 'order_index'], name='quizzes_que_questio_8b2f07_idx'),
        ]

    def __str__(self):
        return f"Q{self.order_index}: {self.question_text[:50]}"
