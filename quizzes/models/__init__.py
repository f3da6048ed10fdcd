from .quiz import QuizSet
from .question import Question
from .answer import Answer
from .audit import AuditLog

__all__ = ['QuizSet', 'Question', 'Answer', 'AuditLog']
