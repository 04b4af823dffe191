import operator
from typing import Any, Dict, List, Mapping, Optional

from drplane.core.constants import ALL_CLEAR_MESSAGE
from .rules import RULES


COMPARISONS = {
    "lt": operator.lt,
    "gt": operator.gt,
}


def rule_fires(rule: Dict[str, Any], value: Optional[float], threshold: float) -> bool:
    """Absent values never trigger a rule"""
    if value is None:
        return False
    return COMPARISONS[rule["comparison"]](value, threshold)


def evaluate_rules(fields: Mapping[str, Optional[float]], thresholds: Any) -> List[Dict[str, Any]]:
    """
    Return the rules that fired, in evaluation order.

    Args:
        fields: observed values keyed by rule field name
        thresholds: object exposing the threshold settings as attributes
    """
    fired = []
    for rule in RULES:
        value = fields.get(rule["field"])
        threshold = getattr(thresholds, rule["threshold_setting"])
        if rule_fires(rule, value, threshold):
            fired.append({
                "id": rule["id"],
                "value": value,
                "threshold": threshold,
                "message": rule["message"].format(value=value, threshold=threshold),
            })
    return fired


def generate_recommendations(
    consistency_score: float,
    replication_lag_seconds: Optional[int],
    last_backup_age_hours: Optional[float],
    oldest_backup_days: Optional[float],
    thresholds: Any,
) -> List[str]:
    """
    Turn validation results into operator guidance.

    Never returns an empty list: when no rule fires the single all-clear
    message is returned.
    """
    fired = evaluate_rules(
        {
            "consistency_score": consistency_score,
            "replication_lag_seconds": replication_lag_seconds,
            "last_backup_age_hours": last_backup_age_hours,
            "oldest_backup_days": oldest_backup_days,
        },
        thresholds,
    )

    if not fired:
        return [ALL_CLEAR_MESSAGE]

    return [r["message"] for r in fired]
