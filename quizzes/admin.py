from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet

from quizzes.constraints import validate_answer_set
from .models import Answer, AuditLog, Question, QuizSet


class AnswerInlineFormSet(BaseInlineFormSet):
    """Check the answer set that would remain after the admin form is saved."""

    def clean(self):
        super().clean()
        if any(self.errors):
            return
        # An invalid type is reported by the question form itself
        if self.instance.question_type not in Question.QuestionType.values:
            return

        remaining = [
            form.cleaned_data for form in self.forms
            if form.cleaned_data and not form.cleaned_data.get('DELETE', False)
        ]
        result = validate_answer_set(self.instance.question_type, remaining)
        if result.rejected:
            raise ValidationError(result.reason, code=result.kind)


class AnswerInline(admin.TabularInline):
    model = Answer
    formset = AnswerInlineFormSet
    extra = 0
    fields = ['order_index', 'answer_text', 'image_url', 'is_correct']


class QuestionInline(admin.TabularInline):
    # Questions carry an answer set, so they are added and edited on their own page
    model = Question
    extra = 0
    fields = ['order_index', 'question_type', 'question_text', 'points']
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(QuizSet)
class QuizSetAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'status', 'difficulty_level', 'category', 'total_questions', 'created_at']
    list_filter = ['status', 'difficulty_level', 'is_public']
    search_fields = ['title', 'description', 'owner__username']
    inlines = [QuestionInline]
    readonly_fields = ['total_questions', 'times_played', 'created_at', 'updated_at', 'published_at', 'last_played_at']
    fieldsets = (
        (None, {'fields': ('owner', 'title', 'description', 'status')}),
        ('Discovery', {'fields': ('is_public', 'difficulty_level', 'category', 'tags', 'thumbnail_url')}),
        ('Play', {'fields': ('play_settings', 'total_questions', 'times_played', 'last_played_at')}),
        ('Metadata', {'fields': ('cloned_from', 'created_at', 'updated_at', 'published_at'), 'classes': ('collapse',)}),
    )


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['id', 'question_set', 'question_type', 'text_preview', 'points', 'order_index']
    list_filter = ['question_type', 'difficulty']
    search_fields = ['question_text', 'question_set__title']
    inlines = [AnswerInline]

    def text_preview(self, obj):
        return obj.question_text[:50] + '...' if len(obj.question_text) > 50 else obj.question_text
    text_preview.short_description = 'Question'

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        form.instance.question_set.refresh_question_count()


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'user', 'description', 'ip_address', 'created_at']
    list_filter = ['event_type']
    search_fields = ['description', 'user__username']
    readonly_fields = ['user', 'event_type', 'description', 'ip_address', 'user_agent', 'metadata', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
