import csv
import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from .schemas import Activity, ActivityScore, ScoredActivity, UserPerformanceScore


def to_scored_activity(activity: Activity, score: ActivityScore,
                       scored_at: Optional[datetime] = None) -> ScoredActivity:
    return ScoredActivity(
        activity_id=activity.id,
        title=activity.title,
        customer=activity.customer_info.company or activity.customer_info.name or activity.customer_name,
        category=activity.category,
        sub_category=activity.sub_category,
        total_score=score.total_score,
        grade=score.grade,
        breakdown=score.breakdown,
        recommendations=score.recommendations,
        scored_at=scored_at or datetime.now(timezone.utc),
    )


class ReportGenerator:
    def generate_json_output(self, results: List[ScoredActivity], output_path: Path):
        output_data = [result.model_dump(mode='json', by_alias=True) for result in results]

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=2, ensure_ascii=False, default=self._json_serializer)

    def generate_activities_output(self, activities: Iterable[Activity], output_dir: Path):
        """One camelCase JSON document per activity, named by id"""
        for i, activity in enumerate(activities, 1):
            output_path = output_dir / f"{activity.id or f'activity-{i}'}.json"
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(activity.model_dump(mode='json', by_alias=True), f, indent=2, ensure_ascii=False)

    def generate_csv_output(self, results: List[ScoredActivity], output_path: Path):
        if not results:
            return

        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)

            writer.writerow([
                'activity_id', 'title', 'customer', 'category', 'sub_category', 'total_score', 'grade',
                'duration', 'engagement', 'outcomes', 'follow_up', 'category_bonus', 'recommendations'
            ])

            for result in results:
                writer.writerow([
                    result.activity_id or '',
                    result.title,
                    result.customer or '',
                    result.category,
                    result.sub_category or '',
                    result.total_score,
                    result.grade,
                    result.breakdown.duration,
                    result.breakdown.engagement,
                    result.breakdown.outcomes,
                    result.breakdown.follow_up,
                    result.breakdown.category_bonus,
                    ' | '.join(result.recommendations)
                ])

    def generate_leaderboard(self, results: List[ScoredActivity], output_path: Path):
        if not results:
            return

        ranked = sorted(results, key=lambda r: r.total_score, reverse=True)
        average = sum(r.total_score for r in results) / len(results)
        grade_counts = {grade: 0 for grade in "ABCDF"}
        for result in results:
            grade_counts[result.grade] += 1

        markdown_content = f"""# Sales Activity Leaderboard

## Summary Statistics
- **Total Activities Scored**: {len(results)}
- **Average Score**: {average:.1f}/100

## Grade Distribution
""" + "".join(f"- **{grade}**: {count} activities\n" for grade, count in grade_counts.items()) + """
## Ranked Results

| Rank | Activity | Customer | Category | Score | Grade | Duration | Engagement | Outcomes | Follow-up | Bonus |
|------|----------|----------|----------|-------|-------|----------|------------|----------|-----------|-------|
"""

        for i, result in enumerate(ranked, 1):
            b = result.breakdown
            markdown_content += (
                f"| {i} | {result.title or result.activity_id or 'N/A'} | {result.customer or 'N/A'} "
                f"| {result.category} | **{result.total_score:g}** | {result.grade} | {b.duration:g} "
                f"| {b.engagement:g} | {b.outcomes:g} | {b.follow_up:g} | {b.category_bonus:g} |\n"
            )

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(markdown_content)

    def generate_performance_summary(self, performance: UserPerformanceScore, output_path: Path):
        trends = performance.trends
        markdown_content = f"""# Performance Summary: {performance.user_id or 'Unknown user'}

- **Level**: {performance.level}
- **Activities**: {performance.activity_count}
- **Average Activity Score**: {performance.average_activity_score:.1f}
- **Last 7 Days**: {trends.last_7_days:.1f}
- **Last 30 Days**: {trends.last_30_days:.1f}
- **Growth**: {trends.growth:+.1f}%

## By Category

| Category | Activities | Total | Average |
|----------|------------|-------|---------|
"""
        for category, entry in sorted(performance.category_scores.items()):
            markdown_content += f"| {category} | {entry.count} | {entry.score:g} | {entry.average:.1f} |\n"

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(markdown_content)

    def _json_serializer(self, obj):
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
