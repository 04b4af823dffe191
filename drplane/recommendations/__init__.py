"""
Operator recommendations for DR validation runs

Core components:
- rules: threshold rules (field, comparison, configurable threshold, message)
- evaluator: applies the rules to one validation result

Usage:
    from drplane.recommendations import generate_recommendations

    messages = generate_recommendations(
        consistency_score=88.0,
        replication_lag_seconds=5,
        last_backup_age_hours=2.0,
        oldest_backup_days=10.0,
        thresholds=settings,
    )
"""

from .evaluator import evaluate_rules, generate_recommendations
from .rules import RULES

__all__ = [
    "RULES",
    "evaluate_rules",
    "generate_recommendations",
]
