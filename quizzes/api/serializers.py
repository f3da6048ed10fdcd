from rest_framework import serializers

from quizzes.models import Answer, Question, QuizSet
from quizzes.models.quiz import MAX_PLAYERS_MAX, MAX_PLAYERS_MIN, default_play_settings

MAX_TAGS = 10
MAX_TAG_LENGTH = 30


# =============================================================================
# ANSWERS
# =============================================================================

class AnswerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Answer
        fields = ['id', 'question', 'answer_text', 'image_url', 'is_correct', 'order_index',
                  'created_at', 'updated_at']
        read_only_fields = fields


class AnswerWriteSerializer(serializers.Serializer):
    """Payload for one answer; the answer-set rules are applied by the services layer."""
    answer_text = serializers.CharField(min_length=1, max_length=200)
    image_url = serializers.URLField(max_length=500, required=False, allow_null=True)
    is_correct = serializers.BooleanField()
    order_index = serializers.IntegerField(min_value=0)


class AnswerUpdateSerializer(AnswerWriteSerializer):
    answer_text = serializers.CharField(min_length=1, max_length=200, required=False)
    is_correct = serializers.BooleanField(required=False)
    order_index = serializers.IntegerField(min_value=0, required=False)


# =============================================================================
# QUESTIONS
# =============================================================================

class QuestionSerializer(serializers.ModelSerializer):
    answers = AnswerSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'question_set', 'question_text', 'question_type', 'image_url',
            'show_question_time', 'answering_time', 'show_explanation_time',
            'points', 'difficulty', 'order_index',
            'explanation_title', 'explanation_text', 'explanation_image_url',
            'answers', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class QuestionWriteSerializer(serializers.ModelSerializer):
    """Question fields accepted on create; ``answers`` must hold the full answer set."""
    answers = AnswerWriteSerializer(many=True, min_length=2, max_length=4)

    class Meta:
        model = Question
        fields = [
            'question_text', 'question_type', 'image_url',
            'show_question_time', 'answering_time', 'show_explanation_time',
            'points', 'difficulty', 'order_index',
            'explanation_title', 'explanation_text', 'explanation_image_url',
            'answers'
        ]
        extra_kwargs = {'order_index': {'required': True}}

    def validate_question_text(self, value):
        if not value.strip():
            raise serializers.ValidationError("Question text is required.")
        return value


class QuestionUpdateSerializer(QuestionWriteSerializer):
    answers = AnswerWriteSerializer(many=True, min_length=2, max_length=4, required=False)

    class Meta(QuestionWriteSerializer.Meta):
        extra_kwargs = {
            'question_text': {'required': False},
            'question_type': {'required': False},
            'order_index': {'required': False},
        }


class ReorderQuestionsSerializer(serializers.Serializer):
    question_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), min_length=1)


# =============================================================================
# QUIZZES
# =============================================================================

class PlaySettingsSerializer(serializers.Serializer):
    show_question_only = serializers.BooleanField(required=False)
    show_explanation = serializers.BooleanField(required=False)
    time_bonus = serializers.BooleanField(required=False)
    streak_bonus = serializers.BooleanField(required=False)
    show_correct_answer = serializers.BooleanField(required=False)
    max_players = serializers.IntegerField(
        min_value=MAX_PLAYERS_MIN, max_value=MAX_PLAYERS_MAX, required=False
    )


class QuizSetListSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuizSet
        fields = [
            'id', 'owner', 'title', 'description', 'thumbnail_url', 'is_public',
            'difficulty_level', 'category', 'tags', 'status', 'total_questions',
            'times_played', 'play_settings', 'cloned_from', 'last_played_at',
            'published_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class QuizSetSerializer(QuizSetListSerializer):
    questions = QuestionSerializer(many=True, read_only=True)

    class Meta(QuizSetListSerializer.Meta):
        fields = QuizSetListSerializer.Meta.fields + ['questions']
        read_only_fields = fields


class QuizSetWriteSerializer(serializers.ModelSerializer):
    """Writable quiz metadata. Status changes go through the publishing actions."""
    tags = serializers.ListField(
        child=serializers.CharField(min_length=1, max_length=MAX_TAG_LENGTH),
        max_length=MAX_TAGS,
        required=False
    )
    play_settings = serializers.JSONField(required=False)

    class Meta:
        model = QuizSet
        fields = [
            'title', 'description', 'thumbnail_url', 'is_public',
            'difficulty_level', 'category', 'tags', 'play_settings'
        ]

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Quiz title is required.")
        return value

    def validate_play_settings(self, value):
        settings_serializer = PlaySettingsSerializer(data=value)
        settings_serializer.is_valid(raise_exception=True)
        current = self.instance.play_settings if self.instance else default_play_settings()
        # The play code is assigned by the server and never taken from input
        return {**current, **settings_serializer.validated_data, 'code': current.get('code', 0)}

    def to_representation(self, instance):
        return QuizSetListSerializer(instance, context=self.context).data
