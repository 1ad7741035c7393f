from typing import Any, Dict, List

from .schemas import Activity, ActivityScore, ScoreBreakdown


CATEGORY_BONUS: Dict[str, int] = {
    "prospecting": 5,
    "qualification": 10,
    "presentation": 15,
    "negotiation": 20,
    "closing": 25,
    "follow-up": 8,
    "support": 5,
}
DEFAULT_CATEGORY_BONUS = 5

# (upper bound in seconds, points); anything longer scores MAX_DURATION_SCORE
DURATION_BUCKETS = [(60, 5), (300, 15), (900, 25), (1800, 30)]
MAX_DURATION_SCORE = 35

GRADE_THRESHOLDS = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]

RECOMMENDATIONS = {
    "duration": "ใช้เวลาในการสนทนากับลูกค้าให้มากขึ้นเพื่อสร้างความสัมพันธ์",
    "engagement": "ถามคำถามเพิ่มเติมเพื่อเข้าใจความต้องการของลูกค้า",
    "outcomes": "กำหนด action items และขั้นตอนถัดไปให้ชัดเจน",
    "action_items": "บันทึก action items หลังการสนทนาเสมอ",
    "estimated_value": "ประเมินมูลค่าของโอกาสทางการขาย",
    "prospecting": "เพิ่มการวิจัยข้อมูลลูกค้าก่อนติดต่อ",
}


class ActivityScorer:
    """
    Composite 0-100 quality score for a single activity.

    Five bounded components (duration 35, engagement 25, outcomes 25,
    follow-up 15, category bonus 25) are summed and capped at 100.
    Scoring reads only the activity's own fields.
    """

    def score(self, activity: Any) -> ActivityScore:
        activity = Activity.normalize(activity)
        breakdown = ScoreBreakdown(
            duration=self.duration_score(activity),
            engagement=self.engagement_score(activity),
            outcomes=self.outcomes_score(activity),
            follow_up=self.follow_up_score(activity),
            category_bonus=self.category_bonus(activity),
        )

        total_score = min(100, breakdown.duration + breakdown.engagement + breakdown.outcomes
                          + breakdown.follow_up + breakdown.category_bonus)

        return ActivityScore(
            total_score=total_score,
            breakdown=breakdown,
            grade=self.grade(total_score),
            recommendations=self.recommendations(activity, breakdown, total_score),
        )

    def duration_score(self, activity: Activity) -> int:
        duration = activity.transcription_duration or activity.quality_metrics.duration or 0

        for upper_bound, points in DURATION_BUCKETS:
            if duration < upper_bound:
                return points
        return MAX_DURATION_SCORE

    def engagement_score(self, activity: Activity) -> float:
        score = activity.quality_metrics.engagement * 2

        # Rich transcription data and captured customer/deal details indicate good discovery
        if activity.is_enhanced:
            score += 5
        if activity.customer_info.name or activity.customer_info.company:
            score += 5
        if activity.deal_info.value or activity.deal_info.status:
            score += 5

        return min(25, score)

    def outcomes_score(self, activity: Activity) -> float:
        score = activity.quality_metrics.outcomes * 2
        score += min(10, len(activity.action_items) * 2)

        if activity.estimated_value and activity.estimated_value > 0:
            score += 5

        return min(25, score)

    def follow_up_score(self, activity: Activity) -> int:
        score = 0

        if activity.status == "completed":
            score += 10
        elif activity.status == "follow-up":
            score += 5

        if activity.completed_date and activity.due_date:
            score += 5 if activity.completed_date <= activity.due_date else -5

        if activity.quality_metrics.follow_up_completed:
            score += 5

        return max(0, min(15, score))

    def category_bonus(self, activity: Activity) -> int:
        return CATEGORY_BONUS.get(activity.category, DEFAULT_CATEGORY_BONUS)

    @staticmethod
    def grade(total_score: float) -> str:
        for threshold, letter in GRADE_THRESHOLDS:
            if total_score >= threshold:
                return letter
        return "F"

    def recommendations(self, activity: Activity, breakdown: ScoreBreakdown, total_score: float) -> List[str]:
        recommendations = []

        if breakdown.duration < 20:
            recommendations.append(RECOMMENDATIONS["duration"])
        if breakdown.engagement < 15:
            recommendations.append(RECOMMENDATIONS["engagement"])
        if breakdown.outcomes < 15:
            recommendations.append(RECOMMENDATIONS["outcomes"])
        if not activity.action_items:
            recommendations.append(RECOMMENDATIONS["action_items"])
        if not activity.estimated_value:
            recommendations.append(RECOMMENDATIONS["estimated_value"])
        if activity.category == "prospecting" and total_score < 60:
            recommendations.append(RECOMMENDATIONS["prospecting"])

        return recommendations
