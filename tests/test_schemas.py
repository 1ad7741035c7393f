from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sales_intel.schemas import Activity


class TestActivity:
    def test_normalize_camel_case_document(self):
        activity = Activity.normalize({
            "_id": "a1",
            "transcription": "สวัสดีครับ",
            "customerInfo": None,
            "qualityMetrics": None,
            "actionItems": None,
            "createdAt": "2026-05-01T10:00:00",
        })

        assert activity.id == "a1"
        assert activity.transcript == "สวัสดีครับ"
        assert activity.customer_info.name is None
        assert activity.action_items == []
        assert activity.created_at.tzinfo == timezone.utc
        assert not activity.has_quality_metrics

    def test_supplied_quality_metrics_are_tracked(self):
        activity = Activity.normalize({"qualityMetrics": {"engagement": 7}})

        assert activity.has_quality_metrics
        assert activity.quality_metrics.outcomes == 5

    def test_normalize_copies_activity(self):
        original = Activity(action_items=["โทรกลับ"])

        copy = Activity.normalize(original)
        copy.action_items.append("ส่งอีเมล")

        assert original.action_items == ["โทรกลับ"]

    def test_dump_round_trips_to_stored_shape(self):
        activity = Activity(_id="a1", quality_metrics={"follow_up_completed": True})

        document = activity.model_dump(by_alias=True)

        assert document["_id"] == "a1"
        assert document["qualityMetrics"]["followUpCompleted"] is True
        assert Activity.normalize(document) == activity

    def test_negative_estimated_value_is_rejected(self):
        with pytest.raises(ValidationError):
            Activity.normalize({"estimatedValue": -1})

    def test_overdue(self):
        past = datetime.now(timezone.utc) - timedelta(days=2)

        assert Activity(due_date=past).is_overdue
        assert not Activity(due_date=past, status="completed").is_overdue
        assert not Activity().is_overdue

    def test_days_until_due(self):
        future = datetime.now(timezone.utc) + timedelta(days=3, hours=1)

        assert Activity(due_date=future).days_until_due == 4
        assert Activity().days_until_due is None
