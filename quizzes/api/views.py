"""
API Views for quiz authoring.
Provides endpoints for quizzes, their questions and the answers of each question.
"""
import logging
import re

from django.db.models import Prefetch
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import (
    extend_schema, extend_schema_view, OpenApiExample, OpenApiResponse
)

from quizzes.exceptions import ConstraintViolation, InvalidQuizCode
from quizzes.models import AuditLog, Question, QuizSet
from quizzes.models.quiz import QUIZ_CODE_MAX, QUIZ_CODE_MIN, default_play_settings
from quizzes.permissions import IsQuizOwner
from quizzes.services import AnswerService, PublishingService, QuestionService
from quizzes.throttling import AuthoringRateThrottle, BurstRateThrottle
from .serializers import (
    AnswerSerializer, AnswerUpdateSerializer, AnswerWriteSerializer,
    QuestionSerializer, QuestionUpdateSerializer, QuestionWriteSerializer,
    QuizSetListSerializer, QuizSetSerializer, QuizSetWriteSerializer,
    ReorderQuestionsSerializer,
)

logger = logging.getLogger(__name__)

QUIZ_NOT_FOUND = "Quiz not found or you do not have permission to modify it"
CODE_PATTERN = re.compile(r"[0-9]{6}")

CONSTRAINT_ERROR_EXAMPLE = OpenApiExample(
    'Constraint violation',
    value={
        "error": "validation_error",
        "message": "True/False questions can only have 2 answers",
        "code": "too_many_answers",
        "request_id": "3f2c9a41d0b84a55a4a0f1f1f0e5e0c2"
    },
    response_only=True
)


class OwnedQuizMixin:
    """Resolve quizzes and questions through the caller's own quizzes only."""
    permission_classes = [IsAuthenticated]
    throttle_classes = [BurstRateThrottle, AuthoringRateThrottle]

    def get_quiz(self, request, quiz_id):
        quiz = QuizSet.objects.filter(pk=quiz_id, owner=request.user).first()
        if quiz is None:
            raise NotFound(QUIZ_NOT_FOUND)
        return quiz

    def get_question(self, quiz, question_id):
        question = Question.objects.filter(pk=question_id, question_set=quiz).first()
        if question is None:
            raise NotFound("Question not found")
        return question

    def audit_rejection(self, request, operation, exc, **metadata):
        AuditLog.log(
            event_type=AuditLog.EventType.CONSTRAINT_REJECTED,
            description=f"{operation} rejected: {exc.detail}",
            request=request,
            metadata={'code': exc.kind, **metadata}
        )


# =============================================================================
# QUIZZES
# =============================================================================

@extend_schema_view(
    list=extend_schema(
        summary="List my quizzes",
        description="Returns the caller's quizzes, newest first. Filter by status, difficulty_level, is_public or category."
    ),
    retrieve=extend_schema(
        summary="Get quiz",
        description="Returns one quiz with its questions and their answers."
    ),
    create=extend_schema(
        summary="Create quiz",
        description="Create a new quiz in draft status. A six-digit play code is assigned automatically.",
        responses={201: QuizSetListSerializer},
        examples=[
            OpenApiExample(
                'Request Example',
                value={
                    "title": "World Capitals",
                    "description": "How well do you know the capitals of the world?",
                    "category": "Geography",
                    "difficulty_level": "medium",
                    "tags": ["geography", "capitals"],
                    "play_settings": {"max_players": 50, "time_bonus": True}
                },
                request_only=True
            )
        ]
    ),
    update=extend_schema(summary="Update quiz", responses={200: QuizSetListSerializer}),
    partial_update=extend_schema(summary="Partially update quiz", responses={200: QuizSetListSerializer}),
    destroy=extend_schema(
        summary="Delete quiz",
        description="Permanently delete the quiz together with its questions and answers."
    )
)
@extend_schema(tags=['Quizzes'])
class QuizSetViewSet(OwnedQuizMixin, viewsets.ModelViewSet):
    """
    ViewSet for the caller's quizzes.

    A quiz owns an ordered list of questions; publishing is only allowed once
    every question has a valid answer set.
    """
    permission_classes = [IsAuthenticated, IsQuizOwner]
    filterset_fields = ['status', 'difficulty_level', 'is_public', 'category']
    search_fields = ['title', 'description']
    ordering_fields = ['title', 'created_at', 'updated_at']
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        queryset = QuizSet.objects.filter(owner=self.request.user)
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related(
                Prefetch('questions', queryset=Question.objects.prefetch_related('answers'))
            )
        return queryset

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return QuizSetWriteSerializer
        if self.action == 'retrieve':
            return QuizSetSerializer
        return QuizSetListSerializer

    def get_object(self):
        # List filters such as ?status= do not apply to detail lookups
        quiz = self.get_queryset().filter(pk=self.kwargs['pk']).first()
        if quiz is None:
            raise NotFound(QUIZ_NOT_FOUND)
        self.check_object_permissions(self.request, quiz)
        return quiz

    def perform_create(self, serializer):
        play_settings = serializer.validated_data.get('play_settings') or default_play_settings()
        play_settings['code'] = QuizSet.generate_code()
        quiz = serializer.save(owner=self.request.user, status=QuizSet.Status.DRAFT, play_settings=play_settings)
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_CREATED,
            description=f"Quiz created: {quiz.title}",
            request=self.request,
            metadata={'quiz_id': quiz.id, 'code': play_settings['code']}
        )

    def perform_update(self, serializer):
        quiz = serializer.save()
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_UPDATED,
            description=f"Quiz updated: {quiz.title}",
            request=self.request,
            metadata={'quiz_id': quiz.id, 'fields': sorted(serializer.validated_data)}
        )

    def perform_destroy(self, instance):
        quiz_id, title = instance.id, instance.title
        instance.delete()
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_DELETED,
            description=f"Quiz deleted: {title}",
            request=self.request,
            metadata={'quiz_id': quiz_id}
        )

    @extend_schema(
        summary="Start editing quiz",
        description="Move the quiz back to draft while it is being edited.",
        request=None,
        responses={200: QuizSetListSerializer, 404: OpenApiResponse(description="Quiz not found")}
    )
    @action(detail=True, methods=['put'], url_path='start-edit')
    def start_edit(self, request, pk=None):
        quiz = PublishingService.start_edit(self.get_object())
        return Response({
            'message': 'Quiz set to draft for editing',
            'quiz': QuizSetListSerializer(quiz).data
        })

    @extend_schema(
        summary="Validate quiz for publishing",
        description="Report every error that blocks publishing, plus advisory warnings.",
        request=None,
        responses={
            200: OpenApiResponse(
                description="Validation report",
                examples=[OpenApiExample('Report', value={
                    "quiz": {"id": 1, "title": "World Capitals", "status": "draft", "total_questions": 0},
                    "validation": {
                        "is_valid": False,
                        "errors": ["Quiz must have at least one question"],
                        "warnings": []
                    }
                })]
            )
        }
    )
    @action(detail=True, methods=['get'])
    def validate(self, request, pk=None):
        quiz = self.get_object()
        report = PublishingService.validate_quiz(quiz)
        return Response({
            'quiz': {
                'id': quiz.id,
                'title': quiz.title,
                'status': quiz.status,
                'total_questions': quiz.total_questions,
            },
            'validation': report.to_dict()
        })

    @extend_schema(
        summary="Publish quiz",
        description="Publish the quiz. Fails with the validation report when any error remains.",
        request=None,
        responses={
            200: OpenApiResponse(description="Quiz published"),
            400: OpenApiResponse(description="Quiz cannot be published due to validation errors")
        }
    )
    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        quiz, report = PublishingService.publish(self.get_object())
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_PUBLISHED,
            description=f"Quiz published: {quiz.title}",
            request=request,
            metadata={'quiz_id': quiz.id, 'warnings': report.warnings}
        )
        return Response({
            'message': 'Quiz published successfully',
            'quiz': QuizSetListSerializer(quiz).data,
            'validation': {'errors': report.errors, 'warnings': report.warnings}
        })

    @extend_schema(
        summary="Unpublish quiz",
        description="Return a published quiz to draft.",
        request=None,
        responses={200: OpenApiResponse(description="Quiz unpublished"), 400: OpenApiResponse(description="Quiz is not currently published")}
    )
    @action(detail=True, methods=['post'])
    def unpublish(self, request, pk=None):
        quiz = PublishingService.unpublish(self.get_object())
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_UNPUBLISHED,
            description=f"Quiz unpublished: {quiz.title}",
            request=request,
            metadata={'quiz_id': quiz.id}
        )
        return Response({
            'message': 'Quiz unpublished successfully',
            'quiz': QuizSetListSerializer(quiz).data
        })

    @extend_schema(
        summary="Generate play code",
        description="Assign a new unique six-digit play code, replacing any current one.",
        request=None,
        responses={200: OpenApiResponse(description="Code generated"), 404: OpenApiResponse(description="Quiz not found")}
    )
    @action(detail=True, methods=['post'], url_path='generate-code')
    def generate_code(self, request, pk=None):
        quiz = self.get_object()
        code = QuizSet.generate_code()
        quiz.play_settings = {**quiz.play_settings, 'code': code}
        quiz.save(update_fields=['play_settings', 'updated_at'])
        logger.info(f"QUIZ_CODE_GENERATED | Quiz: {quiz.id} | Code: {code}")
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_CODE_GENERATED,
            description=f"Play code generated for quiz {quiz.id}",
            request=request,
            metadata={'quiz_id': quiz.id, 'code': code}
        )
        return Response({
            'message': 'Quiz code generated successfully',
            'code': code,
            'quiz': {'id': quiz.id, 'play_settings': quiz.play_settings}
        })

    @extend_schema(
        summary="Get or remove play code",
        description="GET returns the current play code. DELETE removes it so the quiz cannot be joined by code.",
        request=None,
        responses={200: OpenApiResponse(description="Play code"), 404: OpenApiResponse(description="Quiz not found")}
    )
    @action(detail=True, methods=['get', 'delete'])
    def code(self, request, pk=None):
        quiz = self.get_object()
        if request.method == 'GET':
            current = quiz.play_settings.get('code') or None
            return Response({
                'quiz_id': quiz.id,
                'code': current,
                'has_code': current is not None,
                'message': 'Quiz code retrieved successfully' if current else 'Quiz has no code assigned'
            })

        quiz.play_settings = {**quiz.play_settings, 'code': 0}
        quiz.save(update_fields=['play_settings', 'updated_at'])
        AuditLog.log(
            event_type=AuditLog.EventType.QUIZ_CODE_REMOVED,
            description=f"Play code removed from quiz {quiz.id}",
            request=request,
            metadata={'quiz_id': quiz.id}
        )
        return Response({
            'message': 'Quiz code removed successfully',
            'quiz': {'id': quiz.id, 'play_settings': quiz.play_settings}
        })


@extend_schema(tags=['Quizzes'])
class QuizCodeCheckView(APIView):
    """Public availability check for a six-digit play code."""
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Check play code",
        description="Report whether a six-digit play code is free. No authentication required.",
        request=None,
        responses={
            200: OpenApiResponse(
                description="Availability",
                examples=[OpenApiExample('Available', value={
                    "code": 482913, "is_available": True, "quiz_id": None, "message": "Code is available"
                })]
            ),
            400: OpenApiResponse(description="Code must be a 6-digit number")
        }
    )
    def get(self, request, code):
        if not CODE_PATTERN.fullmatch(code):
            raise InvalidQuizCode()
        code = int(code)
        if not QUIZ_CODE_MIN <= code <= QUIZ_CODE_MAX:
            raise InvalidQuizCode()

        quiz_id = QuizSet.quiz_id_for_code(code)
        return Response({
            'code': code,
            'is_available': quiz_id is None,
            'quiz_id': quiz_id,
            'message': 'Code is available' if quiz_id is None else 'Code is already in use'
        })


# =============================================================================
# QUESTIONS
# =============================================================================

@extend_schema(tags=['Questions'])
class QuizQuestionsView(OwnedQuizMixin, APIView):
    """Create questions inside a quiz."""

    @extend_schema(
        summary="Create question",
        description="""
Create a question together with its whole answer set.

- **true_false**: exactly 2 answers
- **multiple_choice**: 2 to 4 answers

Exactly one answer must be marked correct.
""",
        request=QuestionWriteSerializer,
        responses={201: QuestionSerializer, 400: OpenApiResponse(examples=[CONSTRAINT_ERROR_EXAMPLE])},
        examples=[
            OpenApiExample(
                'Request Example',
                value={
                    "question_text": "Canberra is the capital of Australia.",
                    "question_type": "true_false",
                    "order_index": 0,
                    "answers": [
                        {"answer_text": "True", "is_correct": True, "order_index": 0},
                        {"answer_text": "False", "is_correct": False, "order_index": 1}
                    ]
                },
                request_only=True
            )
        ]
    )
    def post(self, request, quiz_id):
        quiz = self.get_quiz(request, quiz_id)
        serializer = QuestionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            question = QuestionService.create_question(quiz, serializer.validated_data)
        except ConstraintViolation as exc:
            self.audit_rejection(request, 'Question create', exc, quiz_id=quiz.id)
            raise

        AuditLog.log(
            event_type=AuditLog.EventType.QUESTION_CREATED,
            description=f"Question created in quiz {quiz.id}",
            request=request,
            metadata={'quiz_id': quiz.id, 'question_id': question.id}
        )
        return Response(QuestionSerializer(question).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Questions'])
class QuestionReorderView(OwnedQuizMixin, APIView):
    """Reorder the questions of a quiz."""

    @extend_schema(
        summary="Reorder questions",
        description="Each listed question's order_index becomes its position in `question_ids`.",
        request=ReorderQuestionsSerializer,
        responses={200: QuestionSerializer(many=True)},
        examples=[OpenApiExample('Request Example', value={"question_ids": [3, 1, 2]}, request_only=True)]
    )
    def put(self, request, quiz_id):
        quiz = self.get_quiz(request, quiz_id)
        serializer = ReorderQuestionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        question_ids = serializer.validated_data['question_ids']
        questions = QuestionService.reorder_questions(quiz, question_ids)

        AuditLog.log(
            event_type=AuditLog.EventType.QUESTIONS_REORDERED,
            description=f"Questions reordered in quiz {quiz.id}",
            request=request,
            metadata={'quiz_id': quiz.id, 'question_ids': question_ids}
        )
        return Response(QuestionSerializer(questions, many=True).data)


@extend_schema(tags=['Questions'])
class QuestionDetailView(OwnedQuizMixin, APIView):
    """Update or delete one question."""

    @extend_schema(
        summary="Update question",
        description="Partial update. When `answers` is given the whole answer set is replaced.",
        request=QuestionUpdateSerializer,
        responses={200: QuestionSerializer, 400: OpenApiResponse(examples=[CONSTRAINT_ERROR_EXAMPLE])}
    )
    def put(self, request, quiz_id, question_id):
        quiz = self.get_quiz(request, quiz_id)
        question = self.get_question(quiz, question_id)
        serializer = QuestionUpdateSerializer(question, data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            question = QuestionService.update_question(question, serializer.validated_data)
        except ConstraintViolation as exc:
            self.audit_rejection(request, 'Question update', exc, quiz_id=quiz.id, question_id=question.id)
            raise

        AuditLog.log(
            event_type=AuditLog.EventType.QUESTION_UPDATED,
            description=f"Question {question.id} updated",
            request=request,
            metadata={'quiz_id': quiz.id, 'question_id': question.id}
        )
        return Response(QuestionSerializer(question).data)

    @extend_schema(summary="Delete question", request=None, responses={204: None, 404: dict})
    def delete(self, request, quiz_id, question_id):
        quiz = self.get_quiz(request, quiz_id)
        question = self.get_question(quiz, question_id)
        QuestionService.delete_question(question)

        AuditLog.log(
            event_type=AuditLog.EventType.QUESTION_DELETED,
            description=f"Question {question_id} deleted",
            request=request,
            metadata={'quiz_id': quiz.id, 'question_id': question_id}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# ANSWERS
# =============================================================================

@extend_schema(tags=['Answers'])
class QuestionAnswersView(OwnedQuizMixin, APIView):
    """List and add answers of one question."""

    @extend_schema(summary="List answers", responses={200: AnswerSerializer(many=True)})
    def get(self, request, quiz_id, question_id):
        question = self.get_question(self.get_quiz(request, quiz_id), question_id)
        return Response(AnswerSerializer(question.answers.all(), many=True).data)

    @extend_schema(
        summary="Add answer",
        description="""
Add one answer. Rejected with 400 when the question would exceed its answer limit
(2 for true_false, 4 for multiple_choice) or would not have exactly one correct answer.
""",
        request=AnswerWriteSerializer,
        responses={201: AnswerSerializer, 400: OpenApiResponse(examples=[CONSTRAINT_ERROR_EXAMPLE])},
        examples=[
            OpenApiExample(
                'Request Example',
                value={"answer_text": "Sydney", "is_correct": False, "order_index": 2},
                request_only=True
            )
        ]
    )
    def post(self, request, quiz_id, question_id):
        question = self.get_question(self.get_quiz(request, quiz_id), question_id)
        serializer = AnswerWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            answer = AnswerService.add_answer(question, serializer.validated_data)
        except ConstraintViolation as exc:
            self.audit_rejection(request, 'Answer create', exc, question_id=question.id)
            raise

        AuditLog.log(
            event_type=AuditLog.EventType.ANSWER_CREATED,
            description=f"Answer added to question {question.id}",
            request=request,
            metadata={'question_id': question.id, 'answer_id': answer.id}
        )
        return Response(AnswerSerializer(answer).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Answers'])
class AnswerDetailView(OwnedQuizMixin, APIView):
    """Update or delete one answer."""

    @extend_schema(
        summary="Update answer",
        request=AnswerUpdateSerializer,
        responses={200: AnswerSerializer, 400: OpenApiResponse(examples=[CONSTRAINT_ERROR_EXAMPLE])}
    )
    def put(self, request, quiz_id, question_id, answer_id):
        question = self.get_question(self.get_quiz(request, quiz_id), question_id)
        serializer = AnswerUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            answer = AnswerService.update_answer(question, answer_id, serializer.validated_data)
        except ConstraintViolation as exc:
            self.audit_rejection(request, 'Answer update', exc, question_id=question.id, answer_id=answer_id)
            raise

        AuditLog.log(
            event_type=AuditLog.EventType.ANSWER_UPDATED,
            description=f"Answer {answer.id} updated",
            request=request,
            metadata={'question_id': question.id, 'answer_id': answer.id}
        )
        return Response(AnswerSerializer(answer).data)

    @extend_schema(
        summary="Delete answer",
        description="Rejected when it is the last answer of the question, or the only correct one.",
        request=None,
        responses={204: None, 400: OpenApiResponse(examples=[CONSTRAINT_ERROR_EXAMPLE]), 404: dict}
    )
    def delete(self, request, quiz_id, question_id, answer_id):
        question = self.get_question(self.get_quiz(request, quiz_id), question_id)

        try:
            AnswerService.delete_answer(question, answer_id)
        except ConstraintViolation as exc:
            self.audit_rejection(request, 'Answer delete', exc, question_id=question.id, answer_id=answer_id)
            raise

        AuditLog.log(
            event_type=AuditLog.EventType.ANSWER_DELETED,
            description=f"Answer {answer_id} deleted",
            request=request,
            metadata={'question_id': question.id, 'answer_id': answer_id}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
