from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .api.views import (
    QuizSetViewSet, QuizCodeCheckView,
    QuizQuestionsView, QuestionReorderView, QuestionDetailView,
    QuestionAnswersView, AnswerDetailView,
)

# Router for ViewSets
router = DefaultRouter()
router.register(r'quizzes', QuizSetViewSet, basename='quiz')

urlpatterns = [
    # ============================================
    # PLAY CODES
    # ============================================
    path('quizzes/code/check/<str:code>/', QuizCodeCheckView.as_view(), name='quiz-code-check'),

    # ============================================
    # QUESTIONS
    # ============================================
    path('quizzes/<int:quiz_id>/questions/', QuizQuestionsView.as_view(), name='quiz-questions'),
    path('quizzes/<int:quiz_id>/questions/reorder/', QuestionReorderView.as_view(), name='quiz-questions-reorder'),
    path('quizzes/<int:quiz_id>/questions/<int:question_id>/', QuestionDetailView.as_view(), name='question-detail'),

    # ============================================
    # ANSWERS
    # ============================================
    path(
        'quizzes/<int:quiz_id>/questions/<int:question_id>/answers/',
        QuestionAnswersView.as_view(),
        name='question-answers'
    ),
    path(
        'quizzes/<int:quiz_id>/questions/<int:question_id>/answers/<int:answer_id>/',
        AnswerDetailView.as_view(),
        name='answer-detail'
    ),

    # ViewSet routes
    path('', include(router.urls)),
]
