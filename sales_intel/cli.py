import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.progress import track
from rich.table import Table

from .classifier import ActivityClassifier
from .config import LLMSettings
from .drafting import draft_activity
from .enrichment import ActivityEnricher
from .language_model import build_language_model
from .performance import PerformanceAggregator
from .reports import ReportGenerator, to_scored_activity
from .schemas import Activity
from .scoring import ActivityScorer

app = typer.Typer(help="Sales activity classification and scoring")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _build_classifier(use_ai: bool, model: Optional[str]) -> ActivityClassifier:
    if not use_ai:
        return ActivityClassifier()

    settings = LLMSettings.from_env()
    if model:
        settings.model = model
    try:
        language_model = build_language_model(settings)
    except ValueError as e:
        console.print(f"[red]Error initializing language model: {e}[/red]")
        raise typer.Exit(1)
    if language_model is None:
        console.print("[yellow]OPENAI_API_KEY not set, using rule-based classification[/yellow]")
    return ActivityClassifier(language_model)


def _read_transcript(text: Optional[str], file: Optional[Path]) -> str:
    if file is not None:
        if not file.exists():
            console.print(f"[red]Error: File {file} does not exist[/red]")
            raise typer.Exit(1)
        return file.read_text(encoding='utf-8')
    if text is None:
        console.print("[red]Error: Provide --text or --file[/red]")
        raise typer.Exit(1)
    return text


def _load_activity(path: Path) -> Activity:
    with open(path, encoding='utf-8') as f:
        return Activity.normalize(json.load(f))


def _load_activities(input_dir: Path) -> List[Activity]:
    if not input_dir.exists():
        console.print(f"[red]Error: Input directory {input_dir} does not exist[/red]")
        raise typer.Exit(1)

    json_files = sorted(input_dir.glob("*.json"))
    if not json_files:
        console.print(f"[red]Error: No JSON files found in {input_dir}[/red]")
        raise typer.Exit(1)

    activities = []
    for json_file in track(json_files, description="Loading activities..."):
        try:
            activities.append(_load_activity(json_file))
        except (json.JSONDecodeError, ValidationError) as e:
            console.print(f"[red]✗[/red] Failed to load {json_file.name}: {e}")
    return activities


@app.command()
def classify(
    text: Optional[str] = typer.Option(None, "--text", help="Transcript text"),
    file: Optional[Path] = typer.Option(None, "--file", help="File containing the transcript"),
    activity_type: Optional[str] = typer.Option(None, "--type", help="Activity type hint"),
    use_ai: bool = typer.Option(True, "--ai/--no-ai", help="Use the language model when configured"),
    model: Optional[str] = typer.Option(None, "--model", help="LLM model to use"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw classification JSON")
):
    """Classify a transcript into a sales funnel stage."""
    transcript = _read_transcript(text, file)
    classifier = _build_classifier(use_ai, model)
    outcome = classifier.classify_with_outcome(transcript, activity_type)
    result = outcome.result

    if as_json:
        console.print_json(json.dumps(result.model_dump(mode='json', by_alias=True), ensure_ascii=False))
        return

    table = Table(title=f"Classification ({outcome.path} path)")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Category", result.category)
    table.add_row("Sub-category", result.sub_category)
    table.add_row("Confidence", f"{result.confidence:.2f}")
    table.add_row("Quality Score", f"{result.quality_score:g}/100")
    table.add_row("Customer", result.extracted_data.customer_info.name or "-")
    table.add_row("Company", result.extracted_data.customer_info.company or "-")
    table.add_row("Deal Value", result.extracted_data.deal_info.value or "-")
    table.add_row("Action Items", "\n".join(result.extracted_data.action_items) or "-")
    table.add_row("Reasoning", result.reasoning)
    console.print(table)

    if outcome.fallback_reason:
        console.print(f"[yellow]Fell back to rules: {outcome.fallback_reason}[/yellow]")


@app.command()
def draft(
    text: Optional[str] = typer.Option(None, "--text", help="Transcript text"),
    file: Optional[Path] = typer.Option(None, "--file", help="File containing the transcript")
):
    """Build a pre-filled activity form from a transcript."""
    transcript = _read_transcript(text, file)
    activity_draft = draft_activity(transcript)
    console.print_json(json.dumps(activity_draft.model_dump(mode='json', by_alias=True), ensure_ascii=False))


@app.command()
def score(
    activity_file: Path = typer.Argument(..., help="Activity JSON document")
):
    """Show the score breakdown for one activity."""
    if not activity_file.exists():
        console.print(f"[red]Error: File {activity_file} does not exist[/red]")
        raise typer.Exit(1)

    try:
        activity = _load_activity(activity_file)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Invalid activity document: {e}[/red]")
        raise typer.Exit(1)

    result = ActivityScorer().score(activity)

    table = Table(title=f"Activity Score: {activity.title or activity.id or activity_file.stem}")
    table.add_column("Component", style="cyan")
    table.add_column("Points", style="magenta")

    table.add_row("Duration", f"{result.breakdown.duration:g}/35")
    table.add_row("Engagement", f"{result.breakdown.engagement:g}/25")
    table.add_row("Outcomes", f"{result.breakdown.outcomes:g}/25")
    table.add_row("Follow-up", f"{result.breakdown.follow_up:g}/15")
    table.add_row("Category Bonus", f"{result.breakdown.category_bonus:g}")
    table.add_row("[bold]Total[/bold]", f"[bold]{result.total_score:g}/100 ({result.grade})[/bold]")
    console.print(table)

    for recommendation in result.recommendations:
        console.print(f"• {recommendation}")


@app.command()
def enrich(
    input_dir: Path = typer.Option(Path("data/activities"), "--in", help="Directory of activity JSON files"),
    output_dir: Path = typer.Option(Path("out"), "--out", help="Output directory"),
    use_ai: bool = typer.Option(True, "--ai/--no-ai", help="Use the language model when configured"),
    model: Optional[str] = typer.Option(None, "--model", help="LLM model to use"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output")
):
    """Classify and score every activity in a directory."""
    activities = _load_activities(input_dir)
    if not activities:
        console.print("[red]No activities could be loaded[/red]")
        raise typer.Exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    activities_dir = output_dir / "activities"
    activities_dir.mkdir(exist_ok=True)

    enricher = ActivityEnricher(classifier=_build_classifier(use_ai, model))
    generator = ReportGenerator()

    enriched = []
    results = []
    for activity in track(activities, description="Classifying and scoring..."):
        updated = enricher.enrich(activity)
        enriched.append(updated)
        results.append(to_scored_activity(updated, enricher.scorer.score(updated)))

        if verbose:
            console.print(f"[green]✓[/green] {updated.id or updated.title}: {updated.category} "
                          f"({updated.activity_score:g})")

    json_output = output_dir / "scores.json"
    csv_output = output_dir / "scores.csv"
    markdown_output = output_dir / "leaderboard.md"

    console.print("Generating output files...")
    generator.generate_activities_output(enriched, activities_dir)
    generator.generate_json_output(results, json_output)
    generator.generate_csv_output(results, csv_output)
    generator.generate_leaderboard(results, markdown_output)

    average = sum(r.total_score for r in results) / len(results)
    table = Table(title="Enrichment Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Activities", str(len(results)))
    table.add_row("Average Score", f"{average:.1f}/100")
    table.add_row("Grade A/B", str(sum(1 for r in results if r.grade in ("A", "B"))))
    console.print(table)

    console.print(f"\n[bold green]Enrichment completed![/bold green]")
    console.print(f"Activities: {activities_dir}")
    console.print(f"JSON output: {json_output}")
    console.print(f"CSV output: {csv_output}")
    console.print(f"Leaderboard: {markdown_output}")


@app.command()
def performance(
    input_dir: Path = typer.Option(Path("data/activities"), "--in", help="Directory of activity JSON files"),
    user_id: Optional[str] = typer.Option(None, "--user", help="Only include activities created by this user"),
    rescore: bool = typer.Option(False, "--rescore", help="Recompute scores instead of using stored ones"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a Markdown summary to this path")
):
    """Summarize a user's performance across their activities."""
    activities = _load_activities(input_dir)
    if user_id:
        activities = [a for a in activities if a.created_by == user_id]

    summary = PerformanceAggregator().aggregate(activities, user_id=user_id, rescore=rescore)

    table = Table(title=f"Performance: {summary.user_id or 'all users'}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Level", summary.level)
    table.add_row("Activities", str(summary.activity_count))
    table.add_row("Average Score", f"{summary.average_activity_score:.1f}")
    table.add_row("Last 7 Days", f"{summary.trends.last_7_days:.1f}")
    table.add_row("Last 30 Days", f"{summary.trends.last_30_days:.1f}")
    table.add_row("Growth", f"{summary.trends.growth:+.1f}%")
    console.print(table)

    if summary.category_scores:
        category_table = Table(title="By Category")
        category_table.add_column("Category", style="cyan")
        category_table.add_column("Count", style="magenta")
        category_table.add_column("Average", style="green")
        for category, entry in sorted(summary.category_scores.items()):
            category_table.add_row(category, str(entry.count), f"{entry.average:.1f}")
        console.print(category_table)

    if report:
        ReportGenerator().generate_performance_summary(summary, report)
        console.print(f"Report: {report}")


if __name__ == "__main__":
    app()
