from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('quizzes', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='auditlog',
            name='event_type',
            field=models.CharField(choices=[('quiz_created', 'Quiz Created'), ('quiz_updated', 'Quiz Updated'), ('quiz_deleted', 'Quiz Deleted'), ('quiz_published', 'Quiz Published'), ('quiz_unpublished', 'Quiz Unpublished'), ('quiz_code_generated', 'Quiz Code Generated'), ('quiz_code_removed', 'Quiz Code Removed'), ('question_created', 'Question Created'), ('question_updated', 'Question Updated'), ('question_deleted', 'Question Deleted'), ('questions_reordered', 'Questions Reordered'), ('answer_created', 'Answer Created'), ('answer_updated', 'Answer Updated'), ('answer_deleted', 'Answer Deleted'), ('constraint_rejected', 'Constraint Rejected')], db_index=True, max_length=30),
        ),
    ]
