"""Pure decision logic: health grading, recommendations, strategy simulation."""
from .health import classify, classify_position, classify_snapshot
from .recommendations import RecommendationEngine, generate_recommendations
from .simulator import StrategySimulator, simulate

__all__ = [
    "classify",
    "classify_position",
    "classify_snapshot",
    "RecommendationEngine",
    "generate_recommendations",
    "StrategySimulator",
    "simulate",
]
