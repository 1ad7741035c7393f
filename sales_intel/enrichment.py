import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel

from .classifier import ActivityClassifier
from .schemas import (
    Activity, AIClassification, Category, ClassificationResult, CustomerInfo, DealInfo, QualityMetrics
)
from .scoring import ActivityScorer

logger = logging.getLogger(__name__)


class ClassificationUpdates(BaseModel):
    """Reviewer corrections applied while confirming a classification"""
    category: Optional[Category] = None
    sub_category: Optional[str] = None
    customer_info: Optional[CustomerInfo] = None
    deal_info: Optional[DealInfo] = None
    action_items: Optional[List[str]] = None


def merge_info(existing: BaseModel, incoming: BaseModel) -> BaseModel:
    """Shallow merge: incoming non-empty values win, everything else survives"""
    updates = {k: v for k, v in incoming.model_dump().items() if v is not None and v != ""}
    return existing.model_copy(update=updates)


def apply_classification(activity: Activity, result: ClassificationResult,
                         scorer: Optional[ActivityScorer] = None) -> Activity:
    """Copy of the activity with the classification merged in and its score refreshed"""
    scorer = scorer or ActivityScorer()
    updated = Activity.normalize(activity)
    had_quality_metrics = updated.has_quality_metrics
    extracted = result.extracted_data

    updated.category = result.category
    updated.sub_category = result.sub_category
    updated.customer_info = merge_info(updated.customer_info, extracted.customer_info)
    updated.deal_info = merge_info(updated.deal_info, extracted.deal_info)
    # Action items accumulate across runs
    updated.action_items = updated.action_items + list(extracted.action_items)

    updated.ai_classification = AIClassification(
        suggested_category=result.category,
        suggested_sub_category=result.sub_category,
        confidence=result.confidence,
        extracted_data=extracted.model_copy(deep=True),
        human_confirmed=False,
    )

    updated.activity_score = scorer.score(updated).total_score

    if not had_quality_metrics:
        updated.quality_metrics = QualityMetrics(
            duration=updated.transcription_duration or 0,
            engagement=math.floor(result.quality_score / 10),
            outcomes=min(10, len(extracted.action_items)),
            follow_up_completed=False,
        )

    return updated


def refresh_score(activity: Activity, scorer: Optional[ActivityScorer] = None) -> Activity:
    scorer = scorer or ActivityScorer()
    updated = Activity.normalize(activity)
    updated.activity_score = scorer.score(updated).total_score
    return updated


def confirm_classification(activity: Activity, confirmed: bool, reviewer_id: str,
                           updates: Optional[ClassificationUpdates] = None,
                           now: Optional[datetime] = None,
                           scorer: Optional[ActivityScorer] = None) -> Activity:
    """
    Record a human review of the AI classification.

    Reviewer corrections are only applied to classified activities. The
    score is recomputed either way.
    """
    updated = Activity.normalize(activity)

    if updated.is_classified:
        review = updated.ai_classification
        review.human_confirmed = confirmed
        review.reviewed_by = reviewer_id
        review.reviewed_at = now or datetime.now(timezone.utc)

        if updates:
            if updates.category:
                updated.category = updates.category
                review.suggested_category = updates.category
            if updates.sub_category:
                updated.sub_category = updates.sub_category
                review.suggested_sub_category = updates.sub_category
            if updates.customer_info:
                updated.customer_info = merge_info(updated.customer_info, updates.customer_info)
            if updates.deal_info:
                updated.deal_info = merge_info(updated.deal_info, updates.deal_info)
            if updates.action_items is not None:
                updated.action_items = list(updates.action_items)

        logger.info(
            "Classification %s for activity %s by %s",
            "confirmed" if confirmed else "rejected", updated.id, reviewer_id
        )
    else:
        logger.warning("Activity %s has no classification to review", updated.id)

    return refresh_score(updated, scorer)


def pending_review(activities: Iterable[Activity], limit: int = 10) -> List[Activity]:
    """Classified activities still awaiting human confirmation, newest first"""
    pending = [a for a in activities if a.is_classified and not a.ai_classification.human_confirmed]
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    pending.sort(key=lambda a: a.created_at or oldest, reverse=True)
    return pending[:limit]


class ActivityEnricher:
    """Classifies an activity's transcript and folds the result back into the activity"""

    def __init__(self, classifier: Optional[ActivityClassifier] = None,
                 scorer: Optional[ActivityScorer] = None):
        self.classifier = classifier or ActivityClassifier()
        self.scorer = scorer or ActivityScorer()

    def enrich(self, activity: Any) -> Activity:
        """Classified and rescored copy; a missing or whitespace-only transcript returns the activity as is"""
        activity = Activity.normalize(activity)
        if not activity.transcript or not activity.transcript.strip():
            return activity

        outcome = self.classifier.classify_with_outcome(activity.transcript, activity.activity_type)
        logger.debug("Activity %s classified via %s path as %s",
                     activity.id, outcome.path, outcome.result.category)
        return apply_classification(activity, outcome.result, self.scorer)

    def enrich_many(self, activities: Iterable[Any]) -> List[Activity]:
        return [self.enrich(activity) for activity in activities]
