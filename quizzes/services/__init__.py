from .answers import AnswerService, delete_answer_guarded
from .questions import QuestionService
from .publishing import PublishingService, ValidationReport

__all__ = [
    'AnswerService', 'delete_answer_guarded',
    'QuestionService',
    'PublishingService', 'ValidationReport',
]
