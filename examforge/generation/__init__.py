"""
Batched question generation: model calls, response repair and de-duplication.
"""

from .dedup import filter_near_duplicates, jaccard_similarity, tokenize
from .orchestrator import QuestionGenerator, generate_questions, plan_batches
from .repair import REPAIR_STRATEGIES, parse_generated_questions, parse_question_array

__all__ = [
    "QuestionGenerator",
    "generate_questions",
    "plan_batches",
    "parse_question_array",
    "parse_generated_questions",
    "REPAIR_STRATEGIES",
    "filter_near_duplicates",
    "jaccard_similarity",
    "tokenize",
]
