import json

from typer.testing import CliRunner
from sales_intel.cli import app


runner = CliRunner()


class TestCli:
    def test_classify_json(self):
        result = runner.invoke(app, ["classify", "--no-ai", "--json", "--text", "พร้อมเซ็นสัญญาแล้ว"])

        assert result.exit_code == 0
        assert '"category": "closing"' in result.output

    def test_classify_requires_input(self):
        result = runner.invoke(app, ["classify", "--no-ai"])

        assert result.exit_code == 1

    def test_score(self, tmp_path):
        activity_file = tmp_path / "activity.json"
        activity_file.write_text(json.dumps({"_id": "a1", "title": "Demo", "category": "presentation"}),
                                 encoding="utf-8")

        result = runner.invoke(app, ["score", str(activity_file)])

        assert result.exit_code == 0
        assert "Total" in result.output

    def test_score_missing_file(self, tmp_path):
        result = runner.invoke(app, ["score", str(tmp_path / "missing.json")])

        assert result.exit_code == 1

    def test_enrich_writes_outputs(self, tmp_path):
        input_dir = tmp_path / "activities"
        input_dir.mkdir()
        (input_dir / "a1.json").write_text(json.dumps({"_id": "a1", "transcript": "พร้อมเซ็นสัญญาแล้ว"}),
                                           encoding="utf-8")
        output_dir = tmp_path / "out"

        result = runner.invoke(app, ["enrich", "--no-ai", "--in", str(input_dir), "--out", str(output_dir)])

        assert result.exit_code == 0
        enriched = json.loads((output_dir / "activities" / "a1.json").read_text(encoding="utf-8"))
        assert enriched["category"] == "closing"
        assert (output_dir / "scores.csv").exists()
        assert (output_dir / "leaderboard.md").exists()

    def test_performance_report(self, tmp_path):
        input_dir = tmp_path / "activities"
        input_dir.mkdir()
        for i in range(3):
            (input_dir / f"a{i}.json").write_text(
                json.dumps({"_id": f"a{i}", "createdBy": "user-1", "activityScore": 70}), encoding="utf-8"
            )
        report = tmp_path / "summary.md"

        result = runner.invoke(app, ["performance", "--in", str(input_dir), "--user", "user-1",
                                     "--report", str(report)])

        assert result.exit_code == 0
        assert "# Performance Summary: user-1" in report.read_text(encoding="utf-8")
