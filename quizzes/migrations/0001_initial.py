import django.core.validators
import django.db.models.deletion
import quizzes.models.quiz
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='QuizSet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(1)])),
                ('description', models.CharField(max_length=500, validators=[django.core.validators.MinLengthValidator(1)])),
                ('thumbnail_url', models.URLField(blank=True, max_length=500, null=True)),
                ('is_public', models.BooleanField(db_index=True, default=False)),
                ('difficulty_level', models.CharField(choices=[('easy', 'Easy'), ('medium', 'Medium'), ('hard', 'Hard'), ('expert', 'Expert')], db_index=True, default='easy', max_length=10)),
                ('category', models.CharField(db_index=True, default='General', max_length=50)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('published', 'Published'), ('archived', 'Archived')], db_index=True, default='draft', max_length=20)),
                ('total_questions', models.PositiveIntegerField(default=0)),
                ('times_played', models.PositiveIntegerField(default=0)),
                ('play_settings', models.JSONField(default=quizzes.models.quiz.default_play_settings)),
                ('last_played_at', models.DateTimeField(blank=True, null=True)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cloned_from', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clones', to='quizzes.quizset')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='quiz_sets', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner', 'status'], name='quizzes_qui_owner_i_6c1d2e_idx'),
                    models.Index(fields=['created_at'], name='quizzes_qui_created_3f9a41_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('question_text', models.CharField(max_length=500)),
                ('question_type', models.CharField(choices=[('multiple_choice', 'Multiple Choice'), ('true_false', 'True/False')], db_index=True, max_length=20)),
                ('image_url', models.URLField(blank=True, max_length=500, null=True)),
                ('show_question_time', models.PositiveSmallIntegerField(default=10, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(60)])),
                ('answering_time', models.PositiveSmallIntegerField(default=30, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(300)])),
                ('show_explanation_time', models.PositiveSmallIntegerField(default=5, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(60)])),
                ('points', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(300)])),
                ('difficulty', models.CharField(choices=[('easy', 'Easy'), ('medium', 'Medium'), ('hard', 'Hard'), ('expert', 'Expert')], default='easy', max_length=10)),
                ('order_index', models.PositiveIntegerField(default=0)),
                ('explanation_title', models.CharField(blank=True, max_length=100, null=True)),
                ('explanation_text', models.TextField(blank=True, max_length=1000, null=True)),
                ('explanation_image_url', models.URLField(blank=True, max_length=500, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('question_set', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='quizzes.quizset')),
            ],
            options={
                'ordering': ['order_index', 'id'],
                'indexes': [
                    models.Index(fields=['question_set', 'order_index'], name='quizzes_que_questio_8b2f07_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Answer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('answer_text', models.CharField(max_length=200)),
                ('image_url', models.URLField(blank=True, max_length=500, null=True)),
                ('is_correct', models.BooleanField(default=False)),
                ('order_index', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='answers', to='quizzes.question')),
            ],
            options={
                'ordering': ['order_index', 'id'],
                'indexes': [
                    models.Index(fields=['question', 'is_correct'], name='quizzes_ans_questio_d41e9c_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('quiz_created', 'Quiz Created'), ('quiz_updated', 'Quiz Updated'), ('quiz_deleted', 'Quiz Deleted'), ('quiz_published', 'Quiz Published'), ('quiz_unpublished', 'Quiz Unpublished'), ('question_created', 'Question Created'), ('question_updated', 'Question Updated'), ('question_deleted', 'Question Deleted'), ('questions_reordered', 'Questions Reordered'), ('answer_created', 'Answer Created'), ('answer_updated', 'Answer Updated'), ('answer_deleted', 'Answer Deleted'), ('constraint_rejected', 'Constraint Rejected')], db_index=True, max_length=30)),
                ('description', models.TextField()),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'event_type'], name='quizzes_aud_user_id_5e7b12_idx'),
                    models.Index(fields=['created_at', 'event_type'], name='quizzes_aud_created_a90c3d_idx'),
                ],
            },
        ),
    ]
