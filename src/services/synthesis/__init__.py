"""Schema-constrained generation of study notes and quizzes."""

from src.services.synthesis.quiz_validator import QuizValidator
from src.services.synthesis.response_parser import parse_json_reply, strip_code_fences
from src.services.synthesis.schema import OutputSchema
from src.services.synthesis.synthesizer import Synthesizer

__all__ = ["OutputSchema", "QuizValidator", "Synthesizer", "parse_json_reply", "strip_code_fences"]
