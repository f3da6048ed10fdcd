"""
Test cases for the Quiz Authoring API.
Covers the answer-set rules, the services that enforce them, and the HTTP layer.
"""
import threading
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core.cache import cache
from django.core.management import call_command
from django.db import DatabaseError, connection
from django.db.models.query import QuerySet
from django.forms.models import inlineformset_factory
from django.test import TestCase, TransactionTestCase, override_settings, skipUnlessDBFeature
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from .admin import AnswerInlineFormSet
from .constraints import (
    AnswerSnapshot, ViolationKind, check_constraints, check_delete, project_counts, validate_answer_set
)
from .exceptions import (
    CannotDeleteLastAnswer, InvalidAnswerCount, MustHaveExactlyOneCorrect, QuizCodeUnavailable, StoreFailure,
    TooManyAnswers,
)
from .models import Answer, AuditLog, Question, QuizSet
from .services import AnswerService, PublishingService, QuestionService, delete_answer_guarded
from .services import answers as answer_services

TF = Question.QuestionType.TRUE_FALSE
MC = Question.QuestionType.MULTIPLE_CHOICE


def snapshots(*flags):
    return [AnswerSnapshot(id=i + 1, is_correct=flag) for i, flag in enumerate(flags)]


def make_quiz(owner, **kwargs):
    defaults = {
        'title': 'World Capitals',
        'description': 'Capitals of the world',
        'category': 'Geography',
        'tags': ['geography'],
    }
    defaults.update(kwargs)
    return QuizSet.objects.create(owner=owner, **defaults)


def make_question(quiz, question_type, answers, text='Question'):
    """Create rows directly so tests can start from any answer set."""
    question = Question.objects.create(
        question_set=quiz, question_text=text, question_type=question_type, order_index=0
    )
    rows = [
        Answer.objects.create(question=question, answer_text=label, is_correct=correct, order_index=i)
        for i, (label, correct) in enumerate(answers)
    ]
    return question, rows


class ConstraintEngineTests(TestCase):
    """Tests for the pure answer-set checks."""

    def test_true_false_third_answer_rejected(self):
        """A third answer on a true/false question is rejected whatever its correctness."""
        for candidate_correct in (True, False):
            result = check_constraints(TF, snapshots(True, False), AnswerSnapshot(None, candidate_correct))
            self.assertTrue(result.rejected)
            self.assertEqual(result.kind, ViolationKind.TOO_MANY_ANSWERS)
            self.assertEqual(result.reason, 'True/False questions can only have 2 answers')

    def test_multiple_choice_count_bound(self):
        """The fifth multiple choice answer is rejected, the fourth is accepted."""
        full = check_constraints(MC, snapshots(True, False, False, False), AnswerSnapshot(None, False))
        self.assertEqual(full.kind, ViolationKind.TOO_MANY_ANSWERS)
        self.assertEqual(full.reason, 'Multiple choice questions can have at most 4 answers')

        three = check_constraints(MC, snapshots(True, False, False), AnswerSnapshot(None, False))
        self.assertTrue(three.ok)

    def test_count_checked_before_correctness(self):
        """An add that breaks both rules reports the count bound."""
        result = check_constraints(TF, snapshots(True, False), AnswerSnapshot(None, True))
        self.assertEqual(result.kind, ViolationKind.TOO_MANY_ANSWERS)

    def test_create_correctness_rule(self):
        """A correct candidate needs zero existing correct answers, an incorrect one needs exactly one."""
        self.assertTrue(check_constraints(MC, snapshots(False), AnswerSnapshot(None, True)).ok)
        self.assertTrue(check_constraints(MC, snapshots(True), AnswerSnapshot(None, False)).ok)

        two_correct = check_constraints(MC, snapshots(True), AnswerSnapshot(None, True))
        self.assertEqual(two_correct.kind, ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT)
        self.assertEqual(two_correct.reason, 'Must have exactly one correct answer')

        none_correct = check_constraints(MC, snapshots(False), AnswerSnapshot(None, False))
        self.assertEqual(none_correct.kind, ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT)

    def test_update_correctness_rule(self):
        """Unmarking the sole correct answer, or marking a second one, is rejected."""
        existing = snapshots(True, False)
        unmark = check_constraints(MC, existing, AnswerSnapshot(1, False), exclude_id=1)
        self.assertEqual(unmark.kind, ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT)

        second = check_constraints(MC, existing, AnswerSnapshot(2, True), exclude_id=2)
        self.assertEqual(second.kind, ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT)

        rename = check_constraints(MC, existing, AnswerSnapshot(1, True), exclude_id=1)
        self.assertTrue(rename.ok)

    def test_update_of_full_true_false_question_is_allowed(self):
        """Updating an answer in place does not count as adding one."""
        result = check_constraints(TF, snapshots(True, False), AnswerSnapshot(2, False), exclude_id=2)
        self.assertTrue(result.ok)

    def test_project_counts_with_prefiltered_rows(self):
        """The projection is the same whether or not the updated row was already removed."""
        full = project_counts(snapshots(True, False, False), False, exclude_id=3)
        prefiltered = project_counts(snapshots(True, False), False, exclude_id=3)
        self.assertEqual(full, (3, 1))
        self.assertEqual(prefiltered, (3, 1))

    def test_checks_are_repeatable(self):
        """Identical inputs give identical outcomes."""
        existing = snapshots(True, False)
        candidate = AnswerSnapshot(None, True)
        self.assertEqual(check_constraints(MC, existing, candidate), check_constraints(MC, existing, candidate))
        self.assertEqual(check_delete(existing, existing[0]), check_delete(existing, existing[0]))

    def test_batch_validation(self):
        """Whole answer sets are checked for both bounds and the correct count."""
        self.assertTrue(validate_answer_set(TF, [{'is_correct': True}, {'is_correct': False}]).ok)
        self.assertEqual(
            validate_answer_set(TF, [{'is_correct': True}]).kind, ViolationKind.INVALID_ANSWER_COUNT
        )
        self.assertEqual(
            validate_answer_set(MC, [{'is_correct': False}] * 4 + [{'is_correct': True}]).kind,
            ViolationKind.TOO_MANY_ANSWERS
        )
        self.assertEqual(
            validate_answer_set(MC, [{'is_correct': True}, {'is_correct': True}]).kind,
            ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT
        )

    def test_delete_rules(self):
        """The last answer and, by default, the sole correct answer cannot be deleted."""
        only = snapshots(True)
        self.assertEqual(check_delete(only, only[0]).kind, ViolationKind.CANNOT_DELETE_LAST_ANSWER)

        pair = snapshots(True, False)
        self.assertTrue(check_delete(pair, pair[1]).ok)
        self.assertEqual(check_delete(pair, pair[0]).kind, ViolationKind.MUST_HAVE_EXACTLY_ONE_CORRECT)
        self.assertTrue(check_delete(pair, pair[0], block_sole_correct=False).ok)

    def test_unknown_question_type(self):
        with self.assertRaises(ValueError):
            check_constraints('essay', [], AnswerSnapshot(None, True))


class AnswerServiceTests(TestCase):
    """Tests for answer mutations against the database."""

    def setUp(self):
        self.author = User.objects.create_user(username='author', password='pass12345')
        self.quiz = make_quiz(self.author)

    def test_true_false_add_rejected(self):
        """Adding "Maybe" to a full true/false question fails and writes nothing."""
        question, _ = make_question(self.quiz, TF, [('True', True), ('False', False)])
        with self.assertRaises(TooManyAnswers):
            AnswerService.add_answer(question, {'answer_text': 'Maybe', 'is_correct': False, 'order_index': 2})
        self.assertEqual(question.answers.count(), 2)

    def test_add_then_conflicting_update(self):
        """Adding the correct answer succeeds; then marking another correct is rejected."""
        question, (a, b) = make_question(self.quiz, MC, [('A', False), ('B', False)])

        c = AnswerService.add_answer(question, {'answer_text': 'C', 'is_correct': True, 'order_index': 2})
        self.assertEqual(question.answers.count(), 3)
        self.assertEqual(question.answers.filter(is_correct=True).get(), c)

        with self.assertRaises(MustHaveExactlyOneCorrect):
            AnswerService.update_answer(question, a.id, {'is_correct': True})
        a.refresh_from_db()
        self.assertFalse(a.is_correct)

    def test_update_text_keeps_correctness(self):
        question, (a, b) = make_question(self.quiz, TF, [('True', True), ('False', False)])
        updated = AnswerService.update_answer(question, b.id, {'answer_text': 'Nope'})
        self.assertEqual(updated.answer_text, 'Nope')
        self.assertFalse(updated.is_correct)

    def test_swap_needs_batch_replace(self):
        """Moving the correct mark one answer at a time always fails on the first step."""
        question, (a, b) = make_question(self.quiz, TF, [('True', True), ('False', False)])
        with self.assertRaises(MustHaveExactlyOneCorrect):
            AnswerService.update_answer(question, a.id, {'is_correct': False})
        with self.assertRaises(MustHaveExactlyOneCorrect):
            AnswerService.update_answer(question, b.id, {'is_correct': True})

        AnswerService.replace_answers(question, [
            {'answer_text': 'True', 'is_correct': False, 'order_index': 0},
            {'answer_text': 'False', 'is_correct': True, 'order_index': 1},
        ])
        self.assertEqual(question.answers.get(is_correct=True).answer_text, 'False')

    def test_replace_rejects_short_set(self):
        question, _ = make_question(self.quiz, TF, [('True', True), ('False', False)])
        with self.assertRaises(InvalidAnswerCount):
            AnswerService.replace_answers(question, [{'answer_text': 'True', 'is_correct': True, 'order_index': 0}])
        self.assertEqual(question.answers.count(), 2)

    def test_replace_store_failure_leaves_original_answers(self):
        """A failed insert is reported and the old answer set survives."""
        question, _ = make_question(self.quiz, TF, [('True', True), ('False', False)])
        with patch.object(Answer.objects, 'bulk_create', side_effect=DatabaseError('disk full')):
            with self.assertRaises(StoreFailure):
                AnswerService.replace_answers(question, [
                    {'answer_text': 'Yes', 'is_correct': True, 'order_index': 0},
                    {'answer_text': 'No', 'is_correct': False, 'order_index': 1},
                ])
        self.assertEqual(
            sorted(question.answers.values_list('answer_text', flat=True)), ['False', 'True']
        )

    def test_delete_then_last_answer_guard(self):
        """Deleting down to one answer works; deleting that one is refused."""
        question, (a, b) = make_question(self.quiz, MC, [('A', True), ('B', False)])
        AnswerService.delete_answer(question, b.id)
        self.assertEqual(question.answers.count(), 1)

        with self.assertRaises(CannotDeleteLastAnswer):
            AnswerService.delete_answer(question, a.id)
        self.assertTrue(Answer.objects.filter(pk=a.id).exists())

    def test_delete_sole_correct_blocked_by_default(self):
        question, (a, b, c) = make_question(self.quiz, MC, [('A', True), ('B', False), ('C', False)])
        with self.assertRaises(MustHaveExactlyOneCorrect):
            AnswerService.delete_answer(question, a.id)

    @override_settings(QUIZ_ENGINE={'BLOCK_DELETE_OF_SOLE_CORRECT': False, 'LOCK_ANSWER_WRITES': False})
    def test_delete_sole_correct_when_allowed(self):
        question, (a, b, c) = make_question(self.quiz, MC, [('A', True), ('B', False), ('C', False)])
        AnswerService.delete_answer(question, a.id)
        self.assertEqual(question.answers.count(), 2)
        self.assertFalse(question.answers.filter(is_correct=True).exists())

    def test_guarded_delete_reports_missing_answer(self):
        question, (a, b) = make_question(self.quiz, TF, [('True', True), ('False', False)])
        other, (x, y) = make_question(self.quiz, TF, [('True', True), ('False', False)])
        self.assertFalse(delete_answer_guarded(999999, question.id))
        self.assertFalse(delete_answer_guarded(x.id, question.id))
        self.assertTrue(Answer.objects.filter(pk=x.id).exists())

    def test_guarded_delete_locks_question_before_reading_answers(self):
        """The question row is locked before the answer set is read for the delete check."""
        question, (a, b) = make_question(self.quiz, MC, [('A', True), ('B', False)])
        calls = []
        real_lock = QuerySet.select_for_update
        real_read = answer_services.answer_snapshots

        def lock(queryset, *args, **kwargs):
            calls.append(('lock', queryset.model))
            return real_lock(queryset, *args, **kwargs)

        def read(question_id):
            calls.append(('read', question_id))
            return real_read(question_id)

        with patch.object(QuerySet, 'select_for_update', autospec=True, side_effect=lock), \
                patch('quizzes.services.answers.answer_snapshots', side_effect=read):
            self.assertTrue(delete_answer_guarded(b.id, question.id))

        self.assertEqual(calls, [('lock', Question), ('read', question.id)])
        self.assertEqual(question.answers.count(), 1)


@skipUnlessDBFeature('has_select_for_update')
@override_settings(QUIZ_ENGINE={'BLOCK_DELETE_OF_SOLE_CORRECT': False, 'LOCK_ANSWER_WRITES': True})
class ConcurrentAnswerDeleteTests(TransactionTestCase):
    """Deletes racing on the same question serialize on the question row."""

    def test_two_deletes_leave_one_answer(self):
        author = User.objects.create_user(username='author', password='pass12345')
        question, rows = make_question(make_quiz(author), MC, [('A', True), ('B', False)])
        barrier = threading.Barrier(len(rows))
        outcomes = []

        def delete(answer_id):
            try:
                barrier.wait()
                outcomes.append(delete_answer_guarded(answer_id, question.id))
            except CannotDeleteLastAnswer as exc:
                outcomes.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=delete, args=(row.id,)) for row in rows]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(Answer.objects.filter(question=question).count(), 1)
        self.assertEqual(outcomes.count(True), 1)
        self.assertEqual(len([o for o in outcomes if isinstance(o, CannotDeleteLastAnswer)]), 1)


class QuestionServiceTests(TestCase):
    """Tests for question create, update, delete and reorder."""

    def setUp(self):
        self.author = User.objects.create_user(username='author', password='pass12345')
        self.quiz = make_quiz(self.author)

    def _create(self, question_type=TF, answers=None, order_index=0):
        answers = answers or [
            {'answer_text': 'True', 'is_correct': True, 'order_index': 0},
            {'answer_text': 'False', 'is_correct': False, 'order_index': 1},
        ]
        return QuestionService.create_question(self.quiz, {
            'question_text': f'Question {order_index}',
            'question_type': question_type,
            'order_index': order_index,
            'answers': answers,
        })

    def test_create_updates_question_count(self):
        question = self._create()
        self.quiz.refresh_from_db()
        self.assertEqual(self.quiz.total_questions, 1)
        self.assertEqual(question.answers.count(), 2)

    def test_create_rejects_wrong_count_for_true_false(self):
        with self.assertRaises(TooManyAnswers):
            self._create(answers=[
                {'answer_text': 'True', 'is_correct': True, 'order_index': 0},
                {'answer_text': 'False', 'is_correct': False, 'order_index': 1},
                {'answer_text': 'Maybe', 'is_correct': False, 'order_index': 2},
            ])
        self.assertFalse(Question.objects.exists())

    def test_type_change_must_fit_existing_answers(self):
        """Switching to true/false with three answers is rejected."""
        question = self._create(question_type=MC, answers=[
            {'answer_text': 'A', 'is_correct': True, 'order_index': 0},
            {'answer_text': 'B', 'is_correct': False, 'order_index': 1},
            {'answer_text': 'C', 'is_correct': False, 'order_index': 2},
        ])
        with self.assertRaises(TooManyAnswers):
            QuestionService.update_question(question, {'question_type': TF})
        question.refresh_from_db()
        self.assertEqual(question.question_type, MC)

    def test_update_replaces_answers_with_new_type(self):
        question = self._create()
        updated = QuestionService.update_question(question, {
            'question_type': MC,
            'answers': [
                {'answer_text': 'A', 'is_correct': False, 'order_index': 0},
                {'answer_text': 'B', 'is_correct': False, 'order_index': 1},
                {'answer_text': 'C', 'is_correct': True, 'order_index': 2},
            ],
        })
        self.assertEqual(updated.question_type, MC)
        self.assertEqual(updated.answers.count(), 3)

    def test_delete_updates_question_count(self):
        question = self._create()
        QuestionService.delete_question(question)
        self.quiz.refresh_from_db()
        self.assertEqual(self.quiz.total_questions, 0)
        self.assertFalse(Answer.objects.exists())

    def test_reorder(self):
        first, second, third = (self._create(order_index=i) for i in range(3))
        ordered = QuestionService.reorder_questions(self.quiz, [third.id, first.id, second.id])
        self.assertEqual([q.id for q in ordered], [third.id, first.id, second.id])
        third.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(third.order_index, 0)
        self.assertEqual(second.order_index, 2)


class PublishingServiceTests(TestCase):
    """Tests for publishing validation."""

    def setUp(self):
        self.author = User.objects.create_user(username='author', password='pass12345')

    def test_empty_quiz_report(self):
        quiz = make_quiz(self.author, tags=[])
        report = PublishingService.validate_quiz(quiz)
        self.assertFalse(report.is_valid)
        self.assertIn('Quiz must have at least one question', report.errors)
        self.assertIn('Consider adding tags to help users find your quiz', report.warnings)

    def test_question_errors(self):
        quiz = make_quiz(self.author)
        make_question(quiz, MC, [], text='Empty')
        make_question(quiz, MC, [('A', False), ('B', False)], text='None right')
        make_question(quiz, MC, [('A', True), ('B', True)], text='Both right')
        report = PublishingService.validate_quiz(quiz)
        self.assertEqual(report.errors, [
            'Question "Empty" must have at least one answer',
            'Question "None right" must have at least one correct answer',
            'Question "Both right" must have exactly one correct answer',
        ])

    def test_already_published_warning(self):
        quiz = make_quiz(self.author, status=QuizSet.Status.PUBLISHED)
        make_question(quiz, TF, [('True', True), ('False', False)])
        report = PublishingService.validate_quiz(quiz)
        self.assertTrue(report.is_valid)
        self.assertEqual(report.warnings, ['Quiz is already published'])


class QuizCodeTests(TestCase):
    """Tests for play code allocation and lookup."""

    def setUp(self):
        self.author = User.objects.create_user(username='author', password='pass12345')

    def test_generate_code_skips_codes_in_use(self):
        make_quiz(self.author, play_settings={'code': 100000})
        with patch('quizzes.models.quiz.secrets.randbelow', side_effect=[0, 1]):
            self.assertEqual(QuizSet.generate_code(), 100001)

    def test_generate_code_gives_up_after_attempts(self):
        make_quiz(self.author, play_settings={'code': 100000})
        with patch('quizzes.models.quiz.secrets.randbelow', return_value=0) as randbelow:
            with self.assertRaises(QuizCodeUnavailable):
                QuizSet.generate_code(attempts=3)
        self.assertEqual(randbelow.call_count, 3)

    def test_quiz_id_for_code(self):
        quiz = make_quiz(self.author, play_settings={'code': 482913})
        self.assertEqual(QuizSet.quiz_id_for_code(482913), quiz.id)
        self.assertIsNone(QuizSet.quiz_id_for_code(482914))


class QuizApiTests(APITestCase):
    """Tests for the HTTP endpoints, authentication and error envelope."""

    def setUp(self):
        cache.clear()
        self.author = User.objects.create_user(username='author', password='pass12345')
        self.token = Token.objects.create(user=self.author)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.token.key}')

    def _create_quiz(self, **overrides):
        payload = {
            'title': 'World Capitals',
            'description': 'Capitals of the world',
            'category': 'Geography',
            'tags': ['geography'],
        }
        payload.update(overrides)
        response = self.client.post('/api/quizzes/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data['id']

    def _create_question(self, quiz_id, question_type='true_false', answers=None):
        answers = answers or [
            {'answer_text': 'True', 'is_correct': True, 'order_index': 0},
            {'answer_text': 'False', 'is_correct': False, 'order_index': 1},
        ]
        return self.client.post(f'/api/quizzes/{quiz_id}/questions/', {
            'question_text': 'Canberra is the capital of Australia.',
            'question_type': question_type,
            'order_index': 0,
            'answers': answers,
        }, format='json')

    def test_requires_authentication(self):
        """Requests without a token get a 401 envelope."""
        self.client.credentials()
        response = self.client.get('/api/quizzes/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'unauthorized')

    def test_create_quiz_assigns_code_and_draft(self):
        quiz_id = self._create_quiz(play_settings={'max_players': 50})
        quiz = QuizSet.objects.get(pk=quiz_id)
        self.assertEqual(quiz.status, QuizSet.Status.DRAFT)
        self.assertEqual(quiz.owner, self.author)
        self.assertTrue(100000 <= quiz.play_settings['code'] <= 999999)
        self.assertEqual(quiz.play_settings['max_players'], 50)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditLog.EventType.QUIZ_CREATED).exists())

    def test_invalid_play_settings(self):
        response = self.client.post('/api/quizzes/', {
            'title': 'Quiz', 'description': 'Desc', 'play_settings': {'max_players': 500}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')
        self.assertIn('play_settings', response.data['details'])

    def test_list_only_own_quizzes(self):
        other = User.objects.create_user(username='other', password='pass12345')
        make_quiz(other, title='Not mine')
        self._create_quiz()
        response = self.client.get('/api/quizzes/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([q['title'] for q in response.data['results']], ['World Capitals'])

    def test_foreign_quiz_is_not_found(self):
        """Another author's quiz looks exactly like a missing one."""
        other = User.objects.create_user(username='other', password='pass12345')
        quiz = make_quiz(other)
        for response in (
            self.client.get(f'/api/quizzes/{quiz.id}/'),
            self._create_question(quiz.id),
        ):
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertEqual(response.data['error'], 'not_found')
            self.assertEqual(
                response.data['message'], 'Quiz not found or you do not have permission to modify it'
            )

    def test_create_question_and_retrieve(self):
        quiz_id = self._create_quiz()
        response = self._create_question(quiz_id)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['answers']), 2)

        detail = self.client.get(f'/api/quizzes/{quiz_id}/')
        self.assertEqual(detail.data['total_questions'], 1)
        self.assertEqual(len(detail.data['questions'][0]['answers']), 2)

    def test_create_question_rule_violation_envelope(self):
        """A rejected answer set returns the validation envelope and is audited."""
        quiz_id = self._create_quiz()
        response = self._create_question(quiz_id, answers=[
            {'answer_text': 'True', 'is_correct': True, 'order_index': 0},
            {'answer_text': 'False', 'is_correct': True, 'order_index': 1},
        ])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')
        self.assertEqual(response.data['code'], 'must_have_exactly_one_correct')
        self.assertEqual(response.data['message'], 'Must have exactly one correct answer')
        self.assertTrue(AuditLog.objects.filter(event_type=AuditLog.EventType.CONSTRAINT_REJECTED).exists())

    def test_answer_endpoints(self):
        """Add, update and delete answers through the API."""
        quiz_id = self._create_quiz()
        question_id = self._create_question(quiz_id).data['id']
        base = f'/api/quizzes/{quiz_id}/questions/{question_id}/answers/'

        response = self.client.post(base, {'answer_text': 'Maybe', 'is_correct': False, 'order_index': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'too_many_answers')
        self.assertEqual(response.data['message'], 'True/False questions can only have 2 answers')

        answers = self.client.get(base).data
        wrong = next(a for a in answers if not a['is_correct'])
        right = next(a for a in answers if a['is_correct'])

        response = self.client.put(f'{base}{wrong["id"]}/', {'answer_text': 'Definitely not'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['answer_text'], 'Definitely not')

        response = self.client.put(f'{base}{wrong["id"]}/', {'is_correct': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'must_have_exactly_one_correct')

        response = self.client.delete(f'{base}{wrong["id"]}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.delete(f'{base}{right["id"]}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'cannot_delete_last_answer')

        response = self.client.delete(f'{base}999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_question_replaces_answers(self):
        quiz_id = self._create_quiz()
        question_id = self._create_question(quiz_id).data['id']
        response = self.client.put(f'/api/quizzes/{quiz_id}/questions/{question_id}/', {
            'question_text': 'Canberra is not the capital of Australia.',
            'answers': [
                {'answer_text': 'True', 'is_correct': False, 'order_index': 0},
                {'answer_text': 'False', 'is_correct': True, 'order_index': 1},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        correct = [a['answer_text'] for a in response.data['answers'] if a['is_correct']]
        self.assertEqual(correct, ['False'])

    def test_delete_question(self):
        quiz_id = self._create_quiz()
        question_id = self._create_question(quiz_id).data['id']
        response = self.client.delete(f'/api/quizzes/{quiz_id}/questions/{question_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(QuizSet.objects.get(pk=quiz_id).total_questions, 0)

    def test_reorder_questions(self):
        quiz_id = self._create_quiz()
        first = self._create_question(quiz_id).data['id']
        second = self._create_question(quiz_id).data['id']

        response = self.client.put(
            f'/api/quizzes/{quiz_id}/questions/reorder/', {'question_ids': [second, first]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([q['id'] for q in response.data], [second, first])
        self.assertEqual(Question.objects.get(pk=second).order_index, 0)

        response = self.client.put(
            f'/api/quizzes/{quiz_id}/questions/reorder/', {'question_ids': [first, 999999]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')

    def test_publish_flow(self):
        """Publishing needs a valid quiz; unpublish and start-edit return it to draft."""
        quiz_id = self._create_quiz()

        response = self.client.post(f'/api/quizzes/{quiz_id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_failed')
        self.assertIn('Quiz must have at least one question', response.data['details']['errors'])

        self._create_question(quiz_id)
        report = self.client.get(f'/api/quizzes/{quiz_id}/validate/')
        self.assertTrue(report.data['validation']['is_valid'])

        response = self.client.post(f'/api/quizzes/{quiz_id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quiz']['status'], 'published')
        self.assertIsNotNone(QuizSet.objects.get(pk=quiz_id).published_at)

        response = self.client.post(f'/api/quizzes/{quiz_id}/unpublish/')
        self.assertEqual(response.data['quiz']['status'], 'draft')

        response = self.client.post(f'/api/quizzes/{quiz_id}/unpublish/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_status')

        QuizSet.objects.filter(pk=quiz_id).update(status=QuizSet.Status.PUBLISHED)
        response = self.client.put(f'/api/quizzes/{quiz_id}/start-edit/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(QuizSet.objects.get(pk=quiz_id).status, QuizSet.Status.DRAFT)

    def test_delete_quiz_cascades(self):
        quiz_id = self._create_quiz()
        self._create_question(quiz_id)
        response = self.client.delete(f'/api/quizzes/{quiz_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Question.objects.exists())
        self.assertFalse(Answer.objects.exists())

    def test_detail_actions_ignore_list_filters(self):
        """A stray ?status= does not hide the quiz from validate or publish."""
        quiz_id = self._create_quiz()
        self._create_question(quiz_id)

        response = self.client.get(f'/api/quizzes/{quiz_id}/validate/?status=published')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['validation']['is_valid'])

        response = self.client.post(f'/api/quizzes/{quiz_id}/publish/?status=published')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quiz']['status'], 'published')

    def test_generate_code_replaces_current_code(self):
        quiz_id = self._create_quiz()
        old_code = QuizSet.objects.get(pk=quiz_id).play_settings['code']
        new_code = 123456 if old_code != 123456 else 234567

        with patch('quizzes.models.quiz.secrets.randbelow', side_effect=[old_code - 100000, new_code - 100000]):
            response = self.client.post(f'/api/quizzes/{quiz_id}/generate-code/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['code'], new_code)
        self.assertEqual(response.data['message'], 'Quiz code generated successfully')
        quiz = QuizSet.objects.get(pk=quiz_id)
        self.assertEqual(quiz.play_settings['code'], new_code)
        self.assertEqual(quiz.play_settings['max_players'], 100)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditLog.EventType.QUIZ_CODE_GENERATED).exists())

    def test_get_and_remove_code(self):
        quiz_id = self._create_quiz()
        code = QuizSet.objects.get(pk=quiz_id).play_settings['code']

        response = self.client.get(f'/api/quizzes/{quiz_id}/code/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['code'], code)
        self.assertTrue(response.data['has_code'])

        response = self.client.delete(f'/api/quizzes/{quiz_id}/code/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Quiz code removed successfully')
        self.assertEqual(QuizSet.objects.get(pk=quiz_id).play_settings['code'], 0)

        response = self.client.get(f'/api/quizzes/{quiz_id}/code/')
        self.assertIsNone(response.data['code'])
        self.assertFalse(response.data['has_code'])
        self.assertEqual(response.data['message'], 'Quiz has no code assigned')

    def test_code_endpoints_hide_foreign_quizzes(self):
        other = User.objects.create_user(username='other', password='pass12345')
        quiz = make_quiz(other, play_settings={'code': 654321})
        for response in (
            self.client.post(f'/api/quizzes/{quiz.id}/generate-code/'),
            self.client.get(f'/api/quizzes/{quiz.id}/code/'),
            self.client.delete(f'/api/quizzes/{quiz.id}/code/'),
        ):
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(QuizSet.objects.get(pk=quiz.id).play_settings['code'], 654321)

    def test_code_check_is_public(self):
        """Anyone can ask whether a code is taken."""
        quiz_id = self._create_quiz()
        code = QuizSet.objects.get(pk=quiz_id).play_settings['code']
        free = 100000 if code != 100000 else 100001
        self.client.credentials()

        response = self.client.get(f'/api/quizzes/code/check/{code}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_available'])
        self.assertEqual(response.data['quiz_id'], quiz_id)
        self.assertEqual(response.data['message'], 'Code is already in use')

        response = self.client.get(f'/api/quizzes/code/check/{free}/')
        self.assertTrue(response.data['is_available'])
        self.assertIsNone(response.data['quiz_id'])

    def test_code_check_rejects_malformed_codes(self):
        for code in ('12345', '1234567', '012345', 'abcdef'):
            response = self.client.get(f'/api/quizzes/code/check/{code}/')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, code)
            self.assertEqual(response.data['error'], 'invalid_code')
            self.assertEqual(response.data['message'], 'Code must be a 6-digit number')

    def test_exhausted_code_space_uses_error_envelope(self):
        make_quiz(self.author, play_settings={'code': 100000})
        with patch('quizzes.models.quiz.secrets.randbelow', return_value=0):
            response = self.client.post('/api/quizzes/', {
                'title': 'Quiz', 'description': 'Desc'
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'code_generation_failed')
        self.assertEqual(response.data['message'], 'Failed to generate unique code after maximum attempts')
        self.assertIn('request_id', response.data)
        self.assertEqual(QuizSet.objects.count(), 1)

    def test_request_id_is_echoed(self):
        response = self.client.get('/api/quizzes/999999/', HTTP_X_REQUEST_ID='req-123')
        self.assertEqual(response['X-Request-ID'], 'req-123')
        self.assertEqual(response.data['request_id'], 'req-123')


class AnswerInlineFormSetTests(TestCase):
    """The admin answer formset applies the same answer-set rules."""

    def setUp(self):
        author = User.objects.create_user(username='author', password='pass12345')
        self.question, self.answers = make_question(make_quiz(author), TF, [('True', True), ('False', False)])
        self.FormSet = inlineformset_factory(
            Question, Answer, formset=AnswerInlineFormSet,
            fields=['answer_text', 'is_correct', 'order_index'], extra=0, can_delete=True
        )

    def _data(self, delete_second=False, second_correct=False):
        true, false = self.answers
        data = {
            'answers-TOTAL_FORMS': '2',
            'answers-INITIAL_FORMS': '2',
            'answers-MIN_NUM_FORMS': '0',
            'answers-MAX_NUM_FORMS': '1000',
            'answers-0-id': str(true.id),
            'answers-0-answer_text': 'True',
            'answers-0-is_correct': 'on',
            'answers-0-order_index': '0',
            'answers-1-id': str(false.id),
            'answers-1-answer_text': 'False',
            'answers-1-order_index': '1',
        }
        if second_correct:
            data['answers-1-is_correct'] = 'on'
        if delete_second:
            data['answers-1-DELETE'] = 'on'
        return data

    def test_valid_set(self):
        formset = self.FormSet(self._data(), instance=self.question)
        self.assertTrue(formset.is_valid())

    def test_delete_below_minimum(self):
        formset = self.FormSet(self._data(delete_second=True), instance=self.question)
        self.assertFalse(formset.is_valid())
        self.assertIn('True/False questions must have exactly 2 answers', formset.non_form_errors())

    def test_two_correct(self):
        formset = self.FormSet(self._data(second_correct=True), instance=self.question)
        self.assertFalse(formset.is_valid())
        self.assertIn('Must have exactly one correct answer', formset.non_form_errors())

    def test_missing_question_type_is_left_to_question_form(self):
        """Answer rows are not checked while the question has no valid type."""
        question = Question(question_set=self.question.question_set, question_text='New', question_type='')
        formset = self.FormSet({
            'answers-TOTAL_FORMS': '1',
            'answers-INITIAL_FORMS': '0',
            'answers-MIN_NUM_FORMS': '0',
            'answers-MAX_NUM_FORMS': '1000',
            'answers-0-answer_text': 'A',
            'answers-0-is_correct': 'on',
            'answers-0-order_index': '0',
        }, instance=question)
        self.assertTrue(formset.is_valid())
        self.assertEqual(formset.non_form_errors(), [])


@override_settings(STORAGES={
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
})
class QuestionAdminTests(TestCase):
    """Tests for the question admin page."""

    def setUp(self):
        self.admin_user = User.objects.create_superuser(username='admin', password='pass12345', email='a@example.com')
        self.quiz = make_quiz(self.admin_user)
        self.client.force_login(self.admin_user)

    def test_add_without_question_type_shows_form_errors(self):
        """A blank question type re-renders the add page instead of failing."""
        response = self.client.post(reverse('admin:quizzes_question_add'), {
            'question_set': str(self.quiz.id),
            'question_text': 'Capital of France?',
            'question_type': '',
            'answers-TOTAL_FORMS': '1',
            'answers-INITIAL_FORMS': '0',
            'answers-MIN_NUM_FORMS': '0',
            'answers-MAX_NUM_FORMS': '1000',
            'answers-0-answer_text': 'Paris',
            'answers-0-is_correct': 'on',
            'answers-0-order_index': '0',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('question_type', response.context['adminform'].form.errors)
        self.assertFalse(Question.objects.filter(question_text='Capital of France?').exists())


class SeedDemoCommandTests(TestCase):
    """Tests for the seed_demo management command."""

    def test_seed_is_idempotent(self):
        call_command('seed_demo', stdout=StringIO())
        call_command('seed_demo', stdout=StringIO())

        author = User.objects.get(username='author')
        quiz = QuizSet.objects.get(owner=author)
        self.assertEqual(quiz.total_questions, 2)
        self.assertTrue(Token.objects.filter(user=author).exists())
        self.assertTrue(PublishingService.validate_quiz(quiz).is_valid)
