import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from .schemas import Activity, CategoryScore, PerformanceTrends, UserPerformanceScore
from .scoring import ActivityScorer

logger = logging.getLogger(__name__)


# Evaluated top to bottom after the minimum-volume check; (level, min average, min activities)
PERFORMANCE_LEVELS = [
    ("Master", 85, 50),
    ("Expert", 75, 30),
    ("Advanced", 65, 20),
    ("Intermediate", 55, 0),
]
MIN_RANKED_ACTIVITIES = 10


def _average(scores: List[float]) -> float:
    return sum(scores) / len(scores) if scores else 0


class PerformanceAggregator:
    """Rolls a user's scored activities up into a performance summary"""

    def __init__(self, scorer: Optional[ActivityScorer] = None):
        self.scorer = scorer or ActivityScorer()

    def aggregate(self, activities: Sequence[Any], user_id: Optional[str] = None,
                  now: Optional[datetime] = None, rescore: bool = False) -> UserPerformanceScore:
        """
        Summarize a user's activities.

        Args:
            activities: Activities or stored documents already selected for one user
            user_id: Reported user id; defaults to the first activity's creator
            now: Reference time for the 7/30 day trend windows
            rescore: Recompute each activity's score instead of using the stored one

        Returns:
            UserPerformanceScore with rank left at 0 for the caller to assign
        """
        if not activities:
            return UserPerformanceScore(user_id=user_id or "")

        activities = [Activity.normalize(a) for a in activities]

        if rescore:
            scores = [self.scorer.score(a).total_score for a in activities]
        else:
            scores = [a.activity_score for a in activities]

        total_score = sum(scores)
        average_activity_score = total_score / len(activities)

        category_scores = self.category_breakdown(activities, scores)
        trends = self.trends(activities, scores, now or datetime.now(timezone.utc))

        return UserPerformanceScore(
            user_id=user_id or activities[0].created_by or "",
            total_score=total_score,
            average_activity_score=average_activity_score,
            activity_count=len(activities),
            category_scores=category_scores,
            trends=trends,
            rank=0,
            level=self.performance_level(average_activity_score, len(activities)),
        )

    def category_breakdown(self, activities: Sequence[Activity], scores: List[float]) -> Dict[str, CategoryScore]:
        breakdown: Dict[str, CategoryScore] = {}
        for activity, score in zip(activities, scores):
            entry = breakdown.setdefault(activity.category, CategoryScore())
            entry.score += score
            entry.count += 1

        # Averages need the final counts
        for entry in breakdown.values():
            entry.average = entry.score / entry.count
        return breakdown

    def trends(self, activities: Sequence[Activity], scores: List[float], now: datetime) -> PerformanceTrends:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        week_start = now - timedelta(days=7)
        month_start = now - timedelta(days=30)

        last_week = []
        last_month = []
        for activity, score in zip(activities, scores):
            if activity.created_at is None:
                continue
            if activity.created_at >= week_start:
                last_week.append(score)
            if activity.created_at >= month_start:
                last_month.append(score)

        last_7_days = _average(last_week)
        last_30_days = _average(last_month)
        growth = (last_7_days - last_30_days) / last_30_days * 100 if last_30_days > 0 else 0

        logger.debug("Trend windows: %d activities in 7 days, %d in 30 days", len(last_week), len(last_month))
        return PerformanceTrends(last_7_days=last_7_days, last_30_days=last_30_days, growth=growth)

    @staticmethod
    def performance_level(average_score: float, activity_count: int) -> str:
        if activity_count < MIN_RANKED_ACTIVITIES:
            return "Beginner"
        for level, min_average, min_count in PERFORMANCE_LEVELS:
            if average_score >= min_average and activity_count >= min_count:
                return level
        return "Beginner"
