"""Command line entry point for the form mirror"""

import asyncio
import json
import logging
from pathlib import Path

import click

from chat import ChatResponder, FORM_TEMPLATES
from core.enums import Persistence
from core.exceptions import ExportError, FormMirrorError, ValidationError
from core.models import FormDefinition, FormSubmission, PersistResult
from db import create_remote_store
from export import (
    write_workbook, export_submissions, export_single_form_type,
    summary_report, report_filename
)
from services import FormDataService
from storage import JsonFileStorage
from config import settings


def get_service(store_path: str) -> FormDataService:
    """Initialize the form data service"""
    return FormDataService(JsonFileStorage(store_path), create_remote_store())


def echo_result(result: PersistResult, action: str) -> None:
    if result.persisted == Persistence.REMOTE:
        click.echo(f"✓ {action}")
    else:
        click.echo(f"✓ {action} locally (not yet synced: {result.error})")


def load_json_file(path: Path) -> dict:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read {path}: {e}")


@click.group()
@click.option("--store", "store_path", default=settings.LOCAL_STORE_PATH, show_default=True,
              help="Local mirror JSON file")
@click.option("--log-level", default=settings.LOG_LEVEL, show_default=True, help="Logging level")
@click.pass_context
def cli(ctx: click.Context, store_path: str, log_level: str):
    """Form submission mirror commands"""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = get_service(store_path)


@cli.command()
@click.pass_obj
def sheets(service: FormDataService):
    """List sheets, active sheet first"""
    metadata = service.mirror.list_sheet_metadata()
    if not metadata:
        click.echo("No sheets yet")
        return
    for sheet in metadata:
        marker = "*" if sheet.is_active else " "
        click.echo(f"{marker} {sheet.name}  id={sheet.sheet_id or 'N/A'}  rows={sheet.row_count}")


@cli.command("new-sheet")
@click.option("--form", "form_file", type=click.Path(exists=True, path_type=Path),
              help="Form definition JSON file")
@click.option("--template", type=click.Choice(sorted(FORM_TEMPLATES)), help="Built-in form template")
@click.pass_obj
def new_sheet(service: FormDataService, form_file: Path, template: str):
    """Activate a form configuration and start a new sheet for it"""
    if form_file:
        form = FormDefinition.model_validate(load_json_file(form_file))
    elif template:
        form = FORM_TEMPLATES[template]
    else:
        raise click.UsageError("Pass --form or --template")

    result = asyncio.run(service.save_form_configuration(form))
    echo_result(result, f"Form {result.form_id} active, new sheet {result.sheet_name}")


@cli.command()
@click.argument("data_file", type=click.Path(exists=True, path_type=Path))
@click.option("--title", default=None, help="Form title (defaults to the active form)")
@click.pass_obj
def submit(service: FormDataService, data_file: Path, title: str):
    """Save a submission from a JSON file of field id -> value"""
    data = load_json_file(data_file)
    try:
        form = service.validate_submission(data)
    except ValidationError as e:
        for field_id, message in e.errors.items():
            click.echo(f"✗ {field_id}: {message}", err=True)
        raise click.Abort()

    submission = FormSubmission(
        form_id=form.id if form else "unknown",
        form_title=title or (form.title if form else ""),
        data=data,
        user_agent="cli",
    )
    result = asyncio.run(service.save_submission(submission))
    echo_result(result, f"Submission {result.row_id} saved to {result.sheet_name}")


@cli.command()
@click.argument("row_id")
@click.option("--set", "assignments", multiple=True, metavar="COLUMN=VALUE", required=True,
              help="Column to update (repeatable)")
@click.pass_obj
def modify(service: FormDataService, row_id: str, assignments: tuple[str, ...]):
    """Update columns of a submission row by ID"""
    updates = {}
    for assignment in assignments:
        column, sep, value = assignment.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected COLUMN=VALUE, got {assignment}")
        updates[column] = value

    result = asyncio.run(service.modify_submission(row_id, updates))
    if not result.found:
        raise click.ClickException(f"Submission {row_id} not found")
    echo_result(result, f"Submission {row_id} updated")


@cli.command()
@click.argument("row_id")
@click.pass_obj
def delete(service: FormDataService, row_id: str):
    """Delete a submission row by ID"""
    result = asyncio.run(service.delete_submission(row_id))
    if not result.found:
        raise click.ClickException(f"Submission {row_id} not found")
    echo_result(result, f"Submission {row_id} deleted")


@cli.command()
@click.option("--output-dir", type=click.Path(path_type=Path), default=None, help="Output directory")
@click.pass_obj
def export(service: FormDataService, output_dir: Path):
    """Write all sheets to form_submissions_with_ids_<date>.xlsx"""
    output_dir = output_dir or settings.get_output_path()
    output_dir.mkdir(parents=True, exist_ok=True)
    path = write_workbook(service.mirror.get_sheets(), output_dir)
    click.echo(f"✓ Workbook written to {path}")


@cli.command()
@click.option("--kind", type=click.Choice(["summary", "by-form"]), default="summary", show_default=True)
@click.option("--form-type", default=None, help="Only export submissions of this form title")
@click.option("--output-dir", type=click.Path(path_type=Path), default=None, help="Output directory")
@click.pass_obj
def report(service: FormDataService, kind: str, form_type: str, output_dir: Path):
    """Export submission reports (summary or one tab per form)"""
    output_dir = output_dir or settings.get_output_path("reports")
    output_dir.mkdir(parents=True, exist_ok=True)

    loaded = asyncio.run(service.load_submissions())
    form = service.config_store.get_active_form()
    try:
        if form_type:
            filename, content = export_single_form_type(loaded.items, form_type, form)
        elif kind == "summary":
            filename, content = report_filename("report"), summary_report(loaded.items, form)
        else:
            filename, content = report_filename("submissions"), export_submissions(loaded.items, form)
    except ExportError as e:
        raise click.ClickException(str(e))

    path = output_dir / filename
    path.write_bytes(content)
    click.echo(f"✓ Report written to {path} ({loaded.source.value} data)")


@cli.command()
@click.pass_obj
def stats(service: FormDataService):
    """Show sheet and submission statistics"""
    statistics = service.sheet_statistics()
    click.echo(f"Sheets: {statistics.total_sheets}")
    click.echo(f"Active sheet: {statistics.current_active_sheet or 'none'} "
               f"(ID: {statistics.current_active_sheet_id or 'N/A'})")
    click.echo(f"Active form: {statistics.current_form_title} ({statistics.current_form_id})")

    submission_stats = asyncio.run(service.submission_stats())
    click.echo(f"Submissions: {submission_stats['total_submissions']} ({submission_stats['source']})")
    for form_type, count in submission_stats["form_type_count"].items():
        click.echo(f"  {form_type or 'Unknown'}: {count}")


@cli.command()
@click.argument("message")
@click.pass_obj
def chat(service: FormDataService, message: str):
    """Answer a chat message with the keyword responder"""
    loaded = asyncio.run(service.load_custom_qa())
    reply = ChatResponder(custom_qa=loaded.items).respond(message)
    click.echo(reply.text)
    if reply.form:
        click.echo(f"[form: {reply.form.title}]")


def main():
    try:
        cli()
    except FormMirrorError as e:
        click.echo(f"✗ {e}", err=True)
        return 1
    return 0


if __name__ == "__main__":
    exit(main())
