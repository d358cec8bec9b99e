import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

# Load environment variables BEFORE importing local modules that use them
load_dotenv()

from .config.settings import Config, ConfigurationError
from .config_loader import Project, load_project
from .domain.entities import Schedule
from .domain.enums import ExportType, TableType
from .pipeline.exporter import Exporter
from .profiles import ProfileStore
from .schema.catalog import SchemaCatalog
from .schema.validator import ExportValidator
from .types import CancelFlag, ExportError, ExportOutcome
from .utils import setup_logging

app = typer.Typer(help="Route export: schema-driven database and text exports of planned routes")

logger = logging.getLogger(__name__)

_CLI_ERRORS = (ConfigurationError, ExportError, ValueError, OSError)

ProjectOption = Annotated[Optional[Path], typer.Option("--project", "-p", help="YAML project document")]
ProfilesOption = Annotated[Optional[Path], typer.Option("--profiles-file", help="Export profile document")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")]


def _load(project_path: Optional[Path]) -> tuple[Config, Optional[Project], SchemaCatalog]:
    """Settings, optional project and the catalog expanded for the project."""
    config = Config()
    project = load_project(project_path) if project_path is not None else None
    catalog = SchemaCatalog(
        capacities_info=project.capacities_info if project else (),
        order_custom_properties_info=project.order_custom_properties_info if project else (),
        address_fields=project.address_fields if project else (),
        structure_path=config.paths.structure_path,
    )
    return config, project, catalog


def _select_schedules(project: Project, schedule_name: Optional[str]) -> list[Schedule]:
    if schedule_name is None:
        return project.schedules
    schedule = project.find_schedule(schedule_name)
    if schedule is None:
        available = ", ".join(s.name for s in project.schedules)
        raise ValueError(f"Schedule '{schedule_name}' not found. Available: {available}")
    return [schedule]


def _fail(error: Exception) -> None:
    typer.echo(f"ERROR: {error}", err=True)
    raise typer.Exit(1) from error


@app.command("fields")
def list_fields(
    table_type: Annotated[TableType, typer.Argument(help="Table to describe: Schedules, Routes, Stops, Orders, Schema")],
    project: ProjectOption = None,
    short: Annotated[bool, typer.Option("--short", help="Show short names")] = False,
    verbose: VerboseOption = False,
):
    """
    List the expanded fields of a table.

    Capacity, custom property and address fields appear once per project
    dimension when --project is given.

    Examples:
        routexport fields Routes --project project.yml
    """
    setup_logging(verbose)
    try:
        _, _, catalog = _load(project)
    except _CLI_ERRORS as e:
        _fail(e)

    description = catalog.get_table_description(table_type)
    if description is None:
        typer.echo(f"ERROR: Table {table_type.value} is not defined", err=True)
        raise typer.Exit(1)

    typer.echo(f"{catalog.get_table_name(table_type)} fields")
    typer.echo("=" * 50)
    for info in description.fields:
        title = info.short_name if short else info.long_name
        flags = []
        if info.is_default:
            flags.append("default")
        if info.is_hidden:
            flags.append("hidden")
        if info.is_image:
            flags.append("image")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        typer.echo(f"  {info.name:<32} {info.data_type.value:<14} {title}{suffix}")
    typer.echo(f"\nFound {len(description)} fields")


@app.command("profiles")
def list_profiles(
    profiles_file: ProfilesOption = None,
    project: ProjectOption = None,
    verbose: VerboseOption = False,
):
    """List stored export profiles."""
    setup_logging(verbose)
    try:
        config, _, catalog = _load(project)
        profiles = ProfileStore(profiles_file or config.paths.profiles_path, catalog).load()
    except _CLI_ERRORS as e:
        _fail(e)

    if not profiles:
        typer.echo("No export profiles stored")
        return

    for profile in profiles:
        default = " (default)" if profile.is_default else ""
        typer.echo(f"\n* {profile.name}{default}")
        typer.echo(f"   Type: {profile.type.value}")
        typer.echo(f"   File: {profile.file_path}")
        if profile.description:
            typer.echo(f"   Description: {profile.description}")
        for table in profile.tables:
            typer.echo(f"   {table.name}: {', '.join(table.fields)}")
    typer.echo(f"\nFound {len(profiles)} profiles")


@app.command("add-profile")
def add_profile(
    export_type: Annotated[ExportType, typer.Argument(help="Export type: Access, TextRoutes, TextStops, TextOrders")],
    file_path: Annotated[Path, typer.Argument(help="Output file the profile exports to")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Profile name (default: file stem)")] = None,
    fields: Annotated[Optional[list[str]], typer.Option("--field", "-f", help="Field to select; replaces the default selection")] = None,
    description: Annotated[str, typer.Option("--description", help="Profile description")] = "",
    default: Annotated[bool, typer.Option("--default", help="Mark as default profile")] = False,
    profiles_file: ProfilesOption = None,
    project: ProjectOption = None,
    verbose: VerboseOption = False,
):
    """
    Create a profile and store it.

    Examples:
        routexport add-profile TextRoutes exports/routes.csv -f Name -f TotalMiles
    """
    setup_logging(verbose)
    try:
        config, _, catalog = _load(project)
        store = ProfileStore(profiles_file or config.paths.profiles_path, catalog)
        exporter = Exporter(catalog, config.get_locale_settings(), profiles=store.load())

        profile = exporter.create_profile(export_type, file_path, name)
        profile.description = description
        profile.is_default = default
        if fields:
            for table in profile.tables:
                selected = [f for f in fields if f in table.supported_fields]
                if not selected:
                    continue
                table.clear_fields()
                for field_name in selected:
                    table.add_field(field_name)
            unknown = [f for f in fields if not any(f in t.supported_fields for t in profile.tables)]
            if unknown:
                raise ValueError(f"Fields not available for {export_type.value}: {', '.join(unknown)}")

        exporter.add_profile(profile)
        store.save(exporter.profiles)
    except _CLI_ERRORS as e:
        _fail(e)

    typer.echo(f"Profile '{profile.name}' saved to {store.path}")


@app.command("check-name")
def check_name(
    name: Annotated[str, typer.Argument(help="Proposed custom order property name")],
    project: ProjectOption = None,
    verbose: VerboseOption = False,
):
    """
    Check that a custom order property name does not collide with export fields.

    Exits with status 1 when the name is taken.
    """
    setup_logging(verbose)
    try:
        config, _, catalog = _load(project)
        validator = ExportValidator(catalog.capacities_info, catalog.address_fields,
                                    structure_path=config.paths.structure_path)
        existing = [info.name for info in catalog.order_custom_properties_info] + [name]
        unique = validator.is_custom_order_field_name_unique(name, existing)
    except _CLI_ERRORS as e:
        _fail(e)

    if not unique:
        typer.echo(f"ERROR: Name '{name}' collides with an export field or property", err=True)
        raise typer.Exit(1)
    typer.echo(f"Name '{name}' is available")


@app.command("export")
def export_profile(
    profile_name: Annotated[str, typer.Argument(help="Stored profile to export with")],
    project: Annotated[Path, typer.Option("--project", "-p", help="YAML project document")],
    profiles_file: ProfilesOption = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Override the profile's output file")] = None,
    schedule: Annotated[Optional[str], typer.Option("--schedule", "-s", help="Export only this schedule")] = None,
    verbose: VerboseOption = False,
    log_to_file: Annotated[bool, typer.Option("--log-to-file", help="Create timestamped log files")] = False,
):
    """
    Export a project's schedules with a stored profile.

    Examples:
        routexport export "Daily routes" --project project.yml
        routexport export Full --project project.yml -o exports/full.db
    """
    setup_logging(verbose, "export", log_to_file)
    try:
        config, loaded, catalog = _load(project)
        profiles = ProfileStore(profiles_file or config.paths.profiles_path, catalog).load()
        exporter = Exporter(catalog, config.get_locale_settings(), profiles=profiles)

        profile = exporter.get_profile(profile_name)
        if profile is None:
            available = ", ".join(p.name for p in exporter.profiles) or "none"
            raise ValueError(f"Profile '{profile_name}' not found. Available: {available}")
        if output is not None:
            profile.file_path = output

        outcome = exporter.do_export(profile, _select_schedules(loaded, schedule), CancelFlag())
    except _CLI_ERRORS as e:
        _fail(e)

    if outcome is ExportOutcome.CANCELLED:
        typer.echo("Export cancelled")
        raise typer.Exit(1)
    typer.echo(f"Exported to {profile.file_path}")


@app.command("report")
def report_source(
    output: Annotated[Path, typer.Argument(help="Report source database to create")],
    project: Annotated[Path, typer.Option("--project", "-p", help="YAML project document")],
    extended: Annotated[Optional[list[str]], typer.Option("--extended", "-e", help="Extended field to include")] = None,
    schedule: Annotated[Optional[str], typer.Option("--schedule", "-s", help="Export only this schedule")] = None,
    route: Annotated[Optional[list[str]], typer.Option("--route", "-r", help="Export only these routes of the schedule")] = None,
    verbose: VerboseOption = False,
):
    """
    Build a report source database with every default and hidden field.

    Examples:
        routexport report exports/report.db --project project.yml -e TotalCO2Emission
    """
    setup_logging(verbose, "report")
    extended_fields = extended or []
    try:
        config, loaded, catalog = _load(project)
        exporter = Exporter(catalog, config.get_locale_settings())

        unknown = [name for name in extended_fields if name not in exporter.extended_fields]
        if unknown:
            raise ValueError(f"Not extended fields: {', '.join(unknown)}")
        if exporter.is_split_required(extended_fields):
            logger.warning("Requested fields include hard fields; consider splitting the report by route")

        schedules = _select_schedules(loaded, schedule)
        routes = None
        if route:
            if len(schedules) != 1:
                raise ValueError("--route needs exactly one schedule (use --schedule)")
            routes = [r for r in schedules[0].routes if r.name in route]
            missing = set(route) - {r.name for r in routes}
            if missing:
                raise ValueError(f"Routes not found: {', '.join(sorted(missing))}")

        outcome = exporter.do_report_source(output, schedules, extended_fields, routes, CancelFlag())
    except _CLI_ERRORS as e:
        _fail(e)

    if outcome is ExportOutcome.CANCELLED:
        typer.echo("Report source cancelled")
        raise typer.Exit(1)
    typer.echo(f"Report source written to {output}")


@app.command("version")
def version():
    """Display version information."""
    from . import __version__
    typer.echo(f"routexport version: {__version__}")


if __name__ == "__main__":
    app()
