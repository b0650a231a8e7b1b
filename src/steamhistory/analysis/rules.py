"""Thresholds deciding whether an app is worth tracking."""

# Deactivation looks at the whole recorded history
MIN_RECORDS = 10
MIN_AVERAGE = 1.0

# Reactivation looks at one live sample
REACTIVATION_THRESHOLD = 5


def should_deactivate(record_count: int, average: float) -> bool:
    """
    An app with enough samples and (on average) nobody playing is unusable.

    record_count > 10 and average < 1 → True
    """
    return record_count > MIN_RECORDS and average < MIN_AVERAGE


def should_reactivate(live_count: int) -> bool:
    """An unusable app with more than 5 players right now is usable again."""
    return live_count > REACTIVATION_THRESHOLD
