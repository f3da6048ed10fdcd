from django.db import models


class Answer(models.Model):
    # Rows are written only through AnswerService / QuestionService so the
    # answer-set constraints are checked on every mutation.
    question = models.ForeignKey(
        'Question',
        on_delete=models.CASCADE,
        related_name='answers',
        db_index=True
    )
    answer_text = models.CharField(max_length=200)
    image_url = models.URLField(max_length=500, null=True, blank=True)
    is_correct = models.BooleanField(default=False)
    order_index = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order_index', 'id']
        indexes = [
            models.Index(fields=['question', 'is_correct'], name='quizzes_ans_questio_d41e9c_idx'),
        ]

    def __str__(self):
        marker = ' (correct)' if self.is_correct else ''
        return f"{self.answer_text[:50]}{marker}"
