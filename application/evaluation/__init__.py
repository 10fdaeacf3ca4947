from application.evaluation.metrics import cosine_similarity, is_grounded_score
from application.evaluation.models import AnswerJudgement, RetrySettings
from application.evaluation.runner import NO_CONTEXT_ANSWER, evaluate_and_retry
from application.evaluation.service import AnswerEvaluator, is_answer_grounded

__all__ = [
    "AnswerJudgement",
    "RetrySettings",
    "AnswerEvaluator",
    "NO_CONTEXT_ANSWER",
    "cosine_similarity",
    "is_grounded_score",
    "is_answer_grounded",
    "evaluate_and_retry",
]
