"""
Monitoring and metrics for the connection search pipeline.
"""
import logging
import time
from typing import Dict, Any

logger = logging.getLogger(__name__)

class SearchSystemMonitor:
    """Track submission outcomes and timings."""

    def __init__(self):
        """Initialize the monitoring system."""
        logger.info("Initializing search system monitor")
        self.submissions_processed = 0
        self.error_count = 0
        self.cache_hits = 0
        self.outcome_distribution = {}
        self.avg_response_time = 0
        self.hourly_submission_count = {}

    def log_submission(self, result: Dict[str, Any], execution_time: float):
        """
        Log and analyze one submission.

        Args:
            result: The final connection state
            execution_time: Time taken in seconds
        """
        self.submissions_processed += 1

        error = result.get("error")
        if error:
            self.error_count += 1
        if result.get("from_cache"):
            self.cache_hits += 1

        outcome = error or "PATH_FOUND"
        self.outcome_distribution[outcome] = self.outcome_distribution.get(outcome, 0) + 1

        # Update average response time
        self.avg_response_time = (
            (self.avg_response_time * (self.submissions_processed - 1) + execution_time) /
            self.submissions_processed
        )

        current_hour = time.strftime("%Y-%m-%d-%H")
        self.hourly_submission_count[current_hour] = self.hourly_submission_count.get(current_hour, 0) + 1

        logger.debug(f"Logged submission metrics: outcome={outcome}, time={execution_time:.2f}s")

    def get_system_health(self) -> Dict[str, Any]:
        """
        Get system health metrics.

        Returns:
            Dictionary of health metrics
        """
        return {
            "submissions_processed": self.submissions_processed,
            "error_rate": self.error_count / max(1, self.submissions_processed),
            "cache_hit_rate": self.cache_hits / max(1, self.submissions_processed),
            "outcome_distribution": self.outcome_distribution,
            "avg_response_time": self.avg_response_time,
            "hourly_distribution": self.hourly_submission_count
        }
