"""
Quizguard — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from quizguard.models.quiz_session import QuizSession
from quizguard.models.question_log import QuizQuestionLog

__all__ = [
    "QuizSession",
    "QuizQuestionLog",
]
