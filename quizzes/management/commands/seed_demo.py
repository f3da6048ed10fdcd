"""
Management command to seed demo data for the Quiz Authoring API.
Creates a demo author with an API token and one quiz with two questions.
"""
from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from rest_framework.authtoken.models import Token

from quizzes.models import Question, QuizSet
from quizzes.models.quiz import default_play_settings
from quizzes.services import QuestionService

DEMO_QUIZ_TITLE = 'World Capitals'


class Command(BaseCommand):
    help = 'Seed a demo author and quiz for trying out the API'

    def add_arguments(self, parser):
        parser.add_argument('--username', default='author', help='Username of the demo author')
        parser.add_argument('--password', default='author123', help='Password set when the author is created')

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE('\nSeeding quiz authoring demo data...\n'))

        author, created = User.objects.get_or_create(
            username=options['username'],
            defaults={'email': f"{options['username']}@example.com", 'is_active': True}
        )
        if created:
            author.set_password(options['password'])
            author.save()
            self.stdout.write(self.style.SUCCESS(f"✓ Created author: {author.username} / {options['password']}"))
        else:
            self.stdout.write(f'  Author already exists: {author.username}')

        token, _ = Token.objects.get_or_create(user=author)

        quiz = QuizSet.objects.filter(owner=author, title=DEMO_QUIZ_TITLE).first()
        if quiz is None:
            play_settings = default_play_settings()
            play_settings['code'] = QuizSet.generate_code()
            quiz = QuizSet.objects.create(
                owner=author,
                title=DEMO_QUIZ_TITLE,
                description='How well do you know the capitals of the world?',
                category='Geography',
                difficulty_level=QuizSet.Difficulty.MEDIUM,
                tags=['geography', 'capitals'],
                play_settings=play_settings,
            )
            QuestionService.create_question(quiz, {
                'question_text': 'Canberra is the capital of Australia.',
                'question_type': Question.QuestionType.TRUE_FALSE,
                'order_index': 0,
                'answers': [
                    {'answer_text': 'True', 'is_correct': True, 'order_index': 0},
                    {'answer_text': 'False', 'is_correct': False, 'order_index': 1},
                ],
            })
            QuestionService.create_question(quiz, {
                'question_text': 'What is the capital of Canada?',
                'question_type': Question.QuestionType.MULTIPLE_CHOICE,
                'order_index': 1,
                'answers': [
                    {'answer_text': 'Toronto', 'is_correct': False, 'order_index': 0},
                    {'answer_text': 'Ottawa', 'is_correct': True, 'order_index': 1},
                    {'answer_text': 'Vancouver', 'is_correct': False, 'order_index': 2},
                    {'answer_text': 'Montreal', 'is_correct': False, 'order_index': 3},
                ],
            })
            self.stdout.write(self.style.SUCCESS(
                f"✓ Quiz: {quiz.title} (code {play_settings['code']}) with 2 questions"
            ))
        else:
            self.stdout.write(f'  Quiz already exists: {quiz.title}')

        self.stdout.write(self.style.SUCCESS('\n' + '=' * 60))
        self.stdout.write(self.style.SUCCESS('Demo seed complete'))
        self.stdout.write(self.style.SUCCESS('=' * 60))

        self.stdout.write(f'\nAPI token for {author.username}: {token.key}')
        self.stdout.write('\nAPI Documentation:')
        self.stdout.write('  Swagger UI: http://localhost:8000/api/docs/')
        self.stdout.write('  ReDoc:      http://localhost:8000/api/redoc/')
        self.stdout.write('\nTry it:')
        self.stdout.write(f'  curl -H "Authorization: Bearer {token.key}" http://localhost:8000/api/quizzes/')
        self.stdout.write('')
