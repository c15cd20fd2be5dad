"""Command-line interface for the Strava threshold tool."""

import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import config
from .db import get_db, SqlAlchemyActivityQuery, SqlAlchemyProfileStore
from .exceptions import ThresholdError
from .profile.service import TrainingProfileService

console = Console()


def _service(session) -> TrainingProfileService:
    return TrainingProfileService(SqlAlchemyProfileStore(session), SqlAlchemyActivityQuery(session))


def _fmt(value, suffix: str = "") -> str:
    if value is None:
        return "[dim]-[/dim]"
    return f"{value}{suffix}"


def _zone_table(title: str, zones, unit: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Zone", style="cyan")
    table.add_column("Name")
    table.add_column("% Range", justify="right")
    table.add_column(unit, justify="right")

    for zone in zones:
        if unit == "Watts":
            low, high = zone.min_watts, zone.max_watts
        else:
            low, high = zone.min_hr, zone.max_hr
        table.add_row(str(zone.number), zone.name, f"{zone.min_percent}-{zone.max_percent}%", f"{low}-{high}")
    return table


@click.group()
def cli():
    """Strava Threshold Inference Tool."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("init-db")
@click.option("--reset", is_flag=True, help="Drop all profiles, history and activities first")
def init_db(reset):
    """Create the database tables."""
    db = get_db()
    if reset:
        if not click.confirm("This will delete all data. Are you sure?"):
            console.print("[black]Operation cancelled.[/black]")
            return
        db.reset()

    console.print(f"[green]✅ Database initialized: {', '.join(db.table_names())}[/green]")


@cli.command()
@click.option("--athlete", required=True, help="Athlete ID")
@click.option("--max-hr", type=float, help="Custom max heart rate (BPM)")
@click.option("--model", "zone_model", help="Zone model to suggest with a custom max HR (e.g. coggan)")
def zones(athlete, max_hr, zone_model):
    """Analyze heart rate data and suggest training zones."""
    console.print(Panel.fit(f"❤️  Training Zones: {athlete}", style="bold blue"))

    with get_db().get_session() as session:
        result = _service(session).analyze_zones(athlete, max_heart_rate=max_hr, zone_model=zone_model)

    stats = result.overall
    console.print(f"  • Activities with HR: {stats.activities_with_hr}/{stats.total_activities}")
    console.print(f"  • Data quality: {stats.hr_data_quality}")
    console.print(f"  • Max HR: {_fmt(stats.max_heart_rate, ' BPM')}")
    console.print(f"  • Confidence: {result.confidence}")
    if result.max_hr_estimated:
        console.print("[yellow]⚠️  Zones are based on an age-predicted max heart rate[/yellow]")

    model = result.suggested_zone_model
    console.print(_zone_table(f"{model.name}: {model.description}", model.zones, "BPM"))
    console.print("Alternatives: " + ", ".join(m.name for m in result.alternative_models))

    for sport in result.sport_specific:
        console.print(f"  • {sport.sport}: {sport.activity_count} activities, max {sport.max_hr}, avg {sport.avg_hr}")

    if result.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for rec in result.recommendations:
            console.print(f"  • {rec}")


@cli.command()
@click.option("--athlete", required=True, help="Athlete ID")
def recalculate(athlete):
    """Estimate thresholds from activities and update the profile."""
    console.print(Panel.fit(f"🔬 Threshold Calculation: {athlete}", style="bold blue"))

    try:
        with get_db().get_session() as session:
            estimation, profile = _service(session).recalculate(athlete)
    except ThresholdError as e:
        console.print(f"[red]❌ {e}[/red]")
        return

    values = estimation.estimated_values
    scores = estimation.confidence_scores

    table = Table(title="Estimated Thresholds", box=box.ROUNDED)
    table.add_column("Threshold", style="cyan")
    table.add_column("Estimate", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Profile", justify="right")
    table.add_row("Max HR", _fmt(values.max_heart_rate), f"{scores.max_heart_rate:.0%}",
                  _fmt(profile.max_heart_rate))
    table.add_row("Resting HR", _fmt(values.resting_heart_rate), f"{scores.resting_heart_rate:.0%}",
                  _fmt(profile.resting_heart_rate))
    table.add_row("LTHR", _fmt(values.lactate_threshold_hr), f"{scores.lactate_threshold_hr:.0%}",
                  _fmt(profile.lactate_threshold_hr))
    table.add_row("FTP", _fmt(values.functional_threshold_power), f"{scores.functional_threshold_power:.0%}",
                  _fmt(profile.functional_threshold_power))
    console.print(table)

    quality = estimation.data_quality
    console.print(f"Analyzed {quality.activities_analyzed} activities over {quality.date_range_days} days "
                  f"(overall confidence {scores.overall:.0%})")
    for rec in estimation.recommendations:
        console.print(f"  • {rec}")


@cli.group()
def profile():
    """View and edit the training profile."""
    pass


@profile.command("show")
@click.option("--athlete", required=True, help="Athlete ID")
def show_profile(athlete):
    """Show profile, completeness and personalized zones."""
    with get_db().get_session() as session:
        service = _service(session)
        complete = service.get_complete_profile(athlete)
        analysis = service.analyze_profile(complete)
        personal_zones = service.generate_training_zones(complete.profile)

    tp = complete.profile
    console.print(Panel.fit(f"👤 Training Profile: {athlete}", style="bold blue"))

    table = Table(box=box.SIMPLE)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Source")
    table.add_row("Max HR", _fmt(tp.max_heart_rate), tp.max_hr_source)
    table.add_row("Resting HR", _fmt(tp.resting_heart_rate), tp.resting_hr_source)
    table.add_row("LTHR", _fmt(tp.lactate_threshold_hr), "")
    table.add_row("FTP", _fmt(tp.functional_threshold_power), tp.ftp_source)
    table.add_row("Weekly TSS", _fmt(tp.weekly_tss_target), tp.tss_target_source)
    table.add_row("Experience", tp.experience_level, "")
    table.add_row("Philosophy", tp.training_philosophy, "")
    console.print(table)

    console.print(f"Completeness: {analysis.completeness_score}% (confidence {analysis.confidence_level})")
    for rec in analysis.recommendations:
        console.print(f"  • {rec}")

    if personal_zones.heart_rate_zones:
        console.print(_zone_table("Heart Rate Zones", personal_zones.heart_rate_zones, "BPM"))
    if personal_zones.power_zones:
        console.print(_zone_table("Power Zones", personal_zones.power_zones, "Watts"))


@profile.command("set")
@click.option("--athlete", required=True, help="Athlete ID")
@click.option("--max-hr", type=int, help="Max heart rate (BPM)")
@click.option("--resting-hr", type=int, help="Resting heart rate (BPM)")
@click.option("--lthr", type=int, help="Lactate threshold heart rate (BPM)")
@click.option("--ftp", type=int, help="Functional threshold power (W)")
@click.option("--tss-target", type=int, help="Weekly TSS target")
@click.option("--experience", help="beginner, intermediate, advanced or elite")
@click.option("--philosophy", help="volume, intensity, balanced or polarized")
@click.option("--age", type=int, help="Age in years")
@click.option("--weight", type=float, help="Weight in kg")
@click.option("--sex", help="M or F")
@click.option("--hours", type=float, help="Weekly training hours target")
def set_profile(athlete, max_hr, resting_hr, lthr, ftp, tss_target, experience, philosophy,
                age, weight, sex, hours):
    """Manually edit the training profile."""
    options = {
        "max_heart_rate": max_hr,
        "resting_heart_rate": resting_hr,
        "lactate_threshold_hr": lthr,
        "functional_threshold_power": ftp,
        "weekly_tss_target": tss_target,
        "experience_level": experience,
        "training_philosophy": philosophy,
        "age": age,
        "weight": weight,
        "sex": sex,
        "weekly_training_hours_target": hours,
    }
    changes = {name: value for name, value in options.items() if value is not None}
    if not changes:
        console.print("[yellow]Nothing to update.[/yellow]")
        return

    try:
        with get_db().get_session() as session:
            _service(session).update_profile(athlete, **changes)
    except ThresholdError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(1)

    console.print(f"[green]✅ Updated {', '.join(sorted(changes))}[/green]")


@cli.command()
@click.option("--athlete", required=True, help="Athlete ID")
@click.option("--limit", default=config.HISTORY_LIMIT, help="Number of calculations to show")
def history(athlete, limit):
    """Show recent threshold calculations."""
    with get_db().get_session() as session:
        entries = SqlAlchemyProfileStore(session).recent_history(athlete, limit=limit)

    if not entries:
        console.print("[yellow]No threshold calculations yet.[/yellow]")
        return

    table = Table(title=f"Threshold History: {athlete}", box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Activities", justify="right")
    table.add_column("Max HR", justify="right")
    table.add_column("Resting HR", justify="right")
    table.add_column("LTHR", justify="right")
    table.add_column("FTP", justify="right")
    table.add_column("Confidence", justify="right")

    for entry in entries:
        table.add_row(
            entry.calculation_date.strftime("%Y-%m-%d %H:%M"),
            str(entry.activities_analyzed),
            _fmt(entry.estimated_max_hr),
            _fmt(entry.estimated_resting_hr),
            _fmt(entry.estimated_lthr),
            _fmt(entry.estimated_ftp),
            f"{entry.confidence_score:.0%}",
        )
    console.print(table)


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[orange]Operation cancelled by user.[/orange]")


if __name__ == "__main__":
    main()
