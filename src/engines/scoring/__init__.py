"""
Scoring Engine - per-question grading, tiered XP awards and level derivation.

Score tiers (base reward R):
- >= 90: R x 1.5
- 80-89: R x 1.2
- 70-79: R (pass)
- 50-69: R x 0.5
- < 50: nothing

Quiz submission orchestration lives in src.engines.scoring.submission.
"""

from src.engines.scoring.grader import Grader, GradingMethod, QuestionResult, QuestionType
from src.engines.scoring.oracle import OpenAIScoringOracle, ScoringOracle, parse_score
from src.engines.scoring.scoring_engine import ScoreEvaluation, ScoringEngine
from src.engines.scoring.levels import level_for_xp, next_level

__all__ = [
    "Grader",
    "GradingMethod",
    "QuestionResult",
    "QuestionType",
    "OpenAIScoringOracle",
    "ScoringOracle",
    "parse_score",
    "ScoreEvaluation",
    "ScoringEngine",
    "level_for_xp",
    "next_level",
]
