import pytest
from datetime import datetime, timezone
from sales_intel.schemas import Activity, QualityMetrics
from sales_intel.scoring import ActivityScorer, RECOMMENDATIONS


class TestActivityScorer:
    def setup_method(self):
        self.scorer = ActivityScorer()

    def test_score_default_activity(self):
        activity = Activity(title="Empty call")

        result = self.scorer.score(activity)

        assert result.breakdown.duration == 5
        assert result.breakdown.engagement == 10
        assert result.breakdown.outcomes == 10
        assert result.breakdown.follow_up == 0
        assert result.breakdown.category_bonus == 5
        assert result.total_score == 30
        assert result.grade == "F"
        assert RECOMMENDATIONS["action_items"] in result.recommendations
        assert RECOMMENDATIONS["estimated_value"] in result.recommendations
        assert RECOMMENDATIONS["prospecting"] in result.recommendations

    def test_engagement_maxed(self):
        activity = Activity.normalize({
            "qualityMetrics": {"engagement": 10},
            "isEnhanced": True,
            "customerInfo": {"name": "สมชาย"},
            "dealInfo": {"value": "2 ล้านบาท"},
        })

        assert self.scorer.engagement_score(activity) == 25

    def test_engagement_zero_is_respected(self):
        activity = Activity(quality_metrics=QualityMetrics(engagement=0))

        assert self.scorer.engagement_score(activity) == 0

    @pytest.mark.parametrize("seconds,points", [
        (0, 5), (59, 5), (60, 15), (299, 15), (300, 25), (899, 25), (900, 30), (1799, 30), (1800, 35), (7200, 35),
    ])
    def test_duration_buckets(self, seconds, points):
        activity = Activity(transcription_duration=seconds)

        assert self.scorer.duration_score(activity) == points

    def test_duration_falls_back_to_quality_metrics(self):
        activity = Activity(quality_metrics=QualityMetrics(duration=400))

        assert self.scorer.duration_score(activity) == 25

    def test_transcription_duration_takes_precedence(self):
        activity = Activity(transcription_duration=30, quality_metrics=QualityMetrics(duration=2000))

        assert self.scorer.duration_score(activity) == 5

    def test_outcomes_capped(self):
        activity = Activity(
            quality_metrics=QualityMetrics(outcomes=10),
            action_items=["a", "b", "c", "d", "e", "f"],
            estimated_value=100000,
        )

        assert self.scorer.outcomes_score(activity) == 25

    def test_outcomes_action_items(self):
        activity = Activity(action_items=["ส่งใบเสนอราคา", "โทรกลับ"])

        assert self.scorer.outcomes_score(activity) == 14

    def test_follow_up_completed_on_time(self):
        activity = Activity(
            status="completed",
            due_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
            completed_date=datetime(2026, 3, 9, tzinfo=timezone.utc),
            quality_metrics=QualityMetrics(follow_up_completed=True),
        )

        assert self.scorer.follow_up_score(activity) == 15

    def test_follow_up_completed_late(self):
        activity = Activity(
            status="completed",
            due_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
            completed_date=datetime(2026, 3, 12, tzinfo=timezone.utc),
        )

        assert self.scorer.follow_up_score(activity) == 5

    def test_follow_up_never_negative(self):
        activity = Activity(
            status="pending",
            due_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
            completed_date=datetime(2026, 3, 12, tzinfo=timezone.utc),
        )

        assert self.scorer.follow_up_score(activity) == 0

    def test_follow_up_status(self):
        assert self.scorer.follow_up_score(Activity(status="follow-up")) == 5

    @pytest.mark.parametrize("category,bonus", [
        ("prospecting", 5), ("qualification", 10), ("presentation", 15), ("negotiation", 20),
        ("closing", 25), ("follow-up", 8), ("support", 5),
    ])
    def test_category_bonus(self, category, bonus):
        assert self.scorer.category_bonus(Activity(category=category)) == bonus

    def test_total_capped_at_100(self):
        activity = Activity(
            category="closing",
            status="completed",
            transcription_duration=2400,
            is_enhanced=True,
            customer_info={"name": "สมชาย"},
            deal_info={"status": "closing"},
            quality_metrics=QualityMetrics(engagement=10, outcomes=10, follow_up_completed=True),
            action_items=["a", "b", "c", "d", "e"],
            estimated_value=500000,
        )

        result = self.scorer.score(activity)

        assert result.total_score == 100
        assert result.grade == "A"
        assert result.recommendations == []

    @pytest.mark.parametrize("total,grade", [
        (100, "A"), (90, "A"), (89.9, "B"), (80, "B"), (79, "C"), (70, "C"), (69, "D"), (60, "D"), (59.5, "F"), (0, "F"),
    ])
    def test_grade_thresholds(self, total, grade):
        assert ActivityScorer.grade(total) == grade

    def test_score_is_pure(self):
        activity = Activity(title="Demo", category="presentation", transcription_duration=600)
        before = activity.model_dump()

        first = self.scorer.score(activity)
        second = self.scorer.score(activity)

        assert first == second
        assert activity.model_dump() == before

    def test_score_from_camel_case_document(self):
        activity = Activity.normalize({
            "_id": "act-1",
            "category": "negotiation",
            "transcriptionDuration": 400,
            "qualityMetrics": {"engagement": 6, "outcomes": 4, "followUpCompleted": False},
            "actionItems": ["ส่งใบเสนอราคา"],
            "estimatedValue": 200000,
            "status": "follow-up",
        })

        result = self.scorer.score(activity)

        # 25 + 12 + (8 + 2 + 5) + 5 + 20
        assert result.total_score == 77
        assert result.grade == "C"

    def test_score_accepts_stored_document(self):
        document = {"category": "closing", "qualityMetrics": None, "actionItems": None}

        result = self.scorer.score(document)

        # duration 5, engagement 10, outcomes 10, bonus 25
        assert result.total_score == 50
        assert result.grade == "F"
