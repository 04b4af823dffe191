# Threshold rules for operator recommendations
# Each rule reads one field of the validation results and compares it with a
# threshold taken from settings. Rules are independent and evaluated in list
# order; the output keeps that order.
#
# Message templates receive `value` (the observed field) and `threshold`.

RULES = [
    {
        "id": "DR001",
        "description": "Cross-region data consistency below target",
        "field": "consistency_score",
        "threshold_setting": "CONSISTENCY_THRESHOLD",
        "comparison": "lt",
        "message": "Data consistency is below {threshold:g}% ({value:.1f}%). Investigate mismatches immediately.",
    },
    {
        "id": "DR002",
        "description": "Replication lag above target",
        "field": "replication_lag_seconds",
        "threshold_setting": "REPLICATION_LAG_THRESHOLD_SECONDS",
        "comparison": "gt",
        "message": "Replication lag is {value} seconds. Consider investigating DynamoDB Global Tables health.",
    },
    {
        "id": "DR003",
        "description": "Most recent backup is stale",
        "field": "last_backup_age_hours",
        "threshold_setting": "BACKUP_AGE_THRESHOLD_HOURS",
        "comparison": "gt",
        "message": "Last backup is {value:.1f} hours old. Consider running a manual backup.",
    },
    {
        "id": "DR004",
        "description": "Oldest retained backup exceeds retention window",
        "field": "oldest_backup_days",
        "threshold_setting": "BACKUP_RETENTION_THRESHOLD_DAYS",
        "comparison": "gt",
        "message": "Oldest backup is {value:.0f} days old. Consider reviewing retention policy.",
    },
]
