import secrets

from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinLengthValidator

QUIZ_CODE_MIN = 100000
QUIZ_CODE_MAX = 999999
MAX_PLAYERS_MIN = 1
MAX_PLAYERS_MAX = 200


def default_play_settings():
    return {
        'code': 0,
        'show_question_only': True,
        'show_explanation': True,
        'time_bonus': False,
        'streak_bonus': False,
        'show_correct_answer': True,
        'max_players': 100,
    }


class QuizSet(models.Model):
    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'
        ARCHIVED = 'archived', 'Archived'

    class Difficulty(models.TextChoices):
        EASY = 'easy', 'Easy'
        MEDIUM = 'medium', 'Medium'
        HARD = 'hard', 'Hard'
        EXPERT = 'expert', 'Expert'

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='quiz_sets',
        db_index=True
    )
    title = models.CharField(max_length=100, validators=[MinLengthValidator(1)])
    description = models.CharField(max_length=500, validators=[MinLengthValidator(1)])
    thumbnail_url = models.URLField(max_length=500, null=True, blank=True)

    is_public = models.BooleanField(default=False, db_index=True)
    difficulty_level = models.CharField(
        max_length=10,
        choices=Difficulty.choices,
        default=Difficulty.EASY,
        db_index=True
    )
    category = models.CharField(max_length=50, default='General', db_index=True)
    tags = models.JSONField(default=list, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True
    )
    total_questions = models.PositiveIntegerField(default=0)
    times_played = models.PositiveIntegerField(default=0)
    play_settings = models.JSONField(default=default_play_settings)

    cloned_from = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='clones'
    )
    last_played_at = models.DateTimeField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['owner', 'status'], name='quizzes_qui_owner_i_6c1d2e_idx'),
            models.Index(fields=['created_at'], name='quizzes_qui_created_3f9a41_idx'),
        ]

    def __str__(self):
        return self.title

    @classmethod
    def generate_code(cls, attempts=20):
        """Pick a six-digit play code not used by any other quiz."""
        for _ in range(attempts):
            code = QUIZ_CODE_MIN + secrets.randbelow(QUIZ_CODE_MAX - QUIZ_CODE_MIN + 1)
            if not cls.objects.filter(play_settings__code=code).exists():
                return code
        from quizzes.exceptions import QuizCodeUnavailable  # exceptions imports the models package
        raise QuizCodeUnavailable()

    @classmethod
    def quiz_id_for_code(cls, code):
        """Return the id of the quiz holding this play code, or None when it is free."""
        return cls.objects.filter(play_settings__code=code).values_list('id', flat=True).first()

    def refresh_question_count(self):
        self.total_questions = self.questions.count()
        self.save(update_fields=['total_questions', 'updated_at'])
        return self.total_questions
