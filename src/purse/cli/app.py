from __future__ import annotations

"""
Purse CLI Wrapper (Typer + Rich)

Local-only CLI for tracking spending against budgets.

All paths are resolved from a single workspace root:
  --data-dir / PURSE_DATA env var / current working directory
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from purse.services.lifecycle import LifecycleAction
from purse.workspace import ENV_VAR, Workspace

HELP_WRITE = "Persist changes (default: dry-run)"

APP_HELP = "Purse budget engine CLI (local-only)"
HELP_BUDGET_ID = "Budget ID (see `purse list`)"
DATE_FORMATS = ["%Y-%m-%d"]

app = typer.Typer(no_args_is_help=True, add_completion=False, help=APP_HELP)


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        envvar=ENV_VAR,
        help="Workspace root directory (default: current directory)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show informational log output"),
):
    """Purse CLI: all paths resolved from a single workspace root."""
    from purse.cli.command.util import configure_logging

    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = Workspace.resolve(data_dir)


def _ws(ctx: typer.Context) -> Workspace:
    return ctx.obj["workspace"]


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


@app.command()
def init(ctx: typer.Context):
    """Initialize a new workspace with the budget database and an example budget.

    Safe to run on an existing workspace; skips anything that already exists.

    Examples:
      purse --data-dir ~/budgets init
      purse init
    """
    from purse.cli.command import init as cmd_init

    code = cmd_init.run(workspace=_ws(ctx))
    raise typer.Exit(code=code)


@app.command()
def create(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="YAML budget definition"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Create a budget from a YAML definition file.

    Examples:
      purse create config/budgets/groceries.yml
      purse create config/budgets/groceries.yml --write

    Safety: dry-run by default. Use --write to persist changes.
    """
    from purse.cli.command import create as cmd_create

    code = cmd_create.run(path=path, workspace=_ws(ctx), write=write)
    raise typer.Exit(code=code)


@app.command(name="list")
def list_budgets(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Only these statuses (comma-separated)"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Match budget names containing this text"),
    date_from: Optional[datetime] = typer.Option(None, "--from", formats=DATE_FORMATS, help="Only budgets running on or after this date"),
    date_to: Optional[datetime] = typer.Option(None, "--to", formats=DATE_FORMATS, help="Only budgets starting on or before this date"),
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Budgets per page"),
    include_archived: bool = typer.Option(False, "--all", help="Include archived budgets"),
):
    """List budgets: active first, then suspended, paused and archived; newest period first.

    Examples:
      purse list
      purse list --status active,paused
      purse list --from 2025-01-01 --to 2025-03-31
      purse list --search groceries --all
    """
    from purse.cli.command import budgets as cmd_budgets

    code = cmd_budgets.run(
        workspace=_ws(ctx),
        status=status,
        search=search,
        date_from=_as_date(date_from),
        date_to=_as_date(date_to),
        page=page,
        limit=limit,
        include_archived=include_archived,
    )
    raise typer.Exit(code=code)


@app.command()
def upcoming(
    ctx: typer.Context,
    days: int = typer.Option(30, "--days", "-d", min=1, help="How many days ahead to look"),
):
    """List budgets that start within the next N days."""
    from purse.cli.command import upcoming as cmd_upcoming

    code = cmd_upcoming.run(workspace=_ws(ctx), days=days)
    raise typer.Exit(code=code)


@app.command()
def show(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
):
    """Show a budget with allocated, spent and remaining amounts per category.

    Examples:
      purse show 3f2c9a1e-...
    """
    from purse.cli.command import show as cmd_show

    code = cmd_show.run(budget_id=budget_id, workspace=_ws(ctx))
    raise typer.Exit(code=code)


@app.command()
def overview(ctx: typer.Context):
    """Show totals and category health across all visible budgets."""
    from purse.cli.command import overview as cmd_overview

    code = cmd_overview.run(workspace=_ws(ctx))
    raise typer.Exit(code=code)


@app.command()
def transactions(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
):
    """List the expenses counted toward a budget (pauses and account scope applied)."""
    from purse.cli.command import transactions as cmd_transactions

    code = cmd_transactions.run(budget_id=budget_id, workspace=_ws(ctx))
    raise typer.Exit(code=code)


@app.command()
def history(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
):
    """Show every recorded change to a budget, oldest first."""
    from purse.cli.command import history as cmd_history

    code = cmd_history.run(budget_id=budget_id, workspace=_ws(ctx))
    raise typer.Exit(code=code)


@app.command()
def edit(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    name: Optional[str] = typer.Option(None, "--name", help="New budget name"),
    start: Optional[datetime] = typer.Option(None, "--start", formats=DATE_FORMATS, help="New start date"),
    end: Optional[datetime] = typer.Option(None, "--end", formats=DATE_FORMATS, help="New end date"),
    open_ended: bool = typer.Option(False, "--open-ended", help="Remove the end date"),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Renewal period: none, weekly, monthly, quarterly, yearly"),
    carry_over: Optional[bool] = typer.Option(None, "--carry-over/--no-carry-over", help="Roll unspent amounts into the next period"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Edit a budget's name, dates, renewal period or carry-over.

    Examples:
      purse edit 3f2c9a1e-... --name "Household" --no-carry-over
      purse edit 3f2c9a1e-... --end 2025-03-31 --write

    Safety: dry-run by default. Use --write to persist changes.
    """
    from purse.cli.command import edit as cmd_edit

    code = cmd_edit.run(
        budget_id=budget_id,
        workspace=_ws(ctx),
        name=name,
        start_date=_as_date(start),
        end_date=_as_date(end),
        open_ended=open_ended,
        period=period,
        carry_over=carry_over,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def allocate(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    category_id: str = typer.Argument(..., help="Category to allocate"),
    amount: Optional[str] = typer.Argument(None, help="Allocated amount (omit with --remove)"),
    category_name: Optional[str] = typer.Option(None, "--name", help="Display name for the category"),
    remove: bool = typer.Option(False, "--remove", help="Remove the category from the budget"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Set or remove one category allocation.

    Examples:
      purse allocate 3f2c9a1e-... dining 150 --name "Dining Out" --write
      purse allocate 3f2c9a1e-... dining --remove --write
    """
    from purse.cli.command import allocate as cmd_allocate

    code = cmd_allocate.run(
        budget_id=budget_id,
        category_id=category_id,
        workspace=_ws(ctx),
        amount=amount,
        category_name=category_name,
        remove=remove,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def delete(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Delete a budget with no tracked expenses; otherwise archive it instead."""
    from purse.cli.command import delete as cmd_delete

    code = cmd_delete.run(budget_id=budget_id, workspace=_ws(ctx), write=write)
    raise typer.Exit(code=code)


def _lifecycle(ctx: typer.Context, budget_id: str, action: LifecycleAction, write: bool, reason: Optional[str] = None):
    from purse.cli.command import lifecycle as cmd_lifecycle

    code = cmd_lifecycle.run(
        budget_id=budget_id,
        action=action,
        workspace=_ws(ctx),
        reason=reason,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def pause(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Why tracking is paused"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Pause expense tracking (stats freeze at the pause date)."""
    _lifecycle(ctx, budget_id, LifecycleAction.pause_tracking, write, reason)


@app.command(name="resume-tracking")
def resume_tracking(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Resume expense tracking, keeping renewal suspension if it was set."""
    _lifecycle(ctx, budget_id, LifecycleAction.resume_tracking, write)


@app.command()
def suspend(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Suspend automatic renewal; expense tracking continues."""
    _lifecycle(ctx, budget_id, LifecycleAction.suspend_renewal, write)


@app.command()
def resume(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Reactivate a suspended or paused budget fully."""
    _lifecycle(ctx, budget_id, LifecycleAction.resume_budget, write)


@app.command()
def archive(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Archive a budget (read-only until restored)."""
    _lifecycle(ctx, budget_id, LifecycleAction.archive_budget, write)


@app.command()
def restore(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Restore an archived budget to active."""
    _lifecycle(ctx, budget_id, LifecycleAction.restore_budget, write)


@app.command()
def renew(
    ctx: typer.Context,
    budget_id: Optional[str] = typer.Argument(None, help=HELP_BUDGET_ID),
    due: bool = typer.Option(False, "--due", help="Renew every active budget whose period has ended"),
    allow_negative: bool = typer.Option(False, "--allow-negative", help="Carry overspend forward as a negative amount"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Create the next period of a recurring budget, carrying over unspent amounts.

    Examples:
      purse renew 3f2c9a1e-...
      purse renew 3f2c9a1e-... --write
      purse renew --due --write

    Safety: dry-run by default. Use --write to persist changes.
    """
    from purse.cli.command import renew as cmd_renew

    code = cmd_renew.run(
        workspace=_ws(ctx),
        budget_id=budget_id,
        due=due,
        allow_negative_carry_over=allow_negative,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def ingest(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Transaction CSV (one row per item)"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Import transactions from CSV.

    Examples:
      purse ingest imports/january.csv
      purse ingest imports/january.csv --write
    """
    from purse.cli.command import ingest as cmd_ingest

    code = cmd_ingest.run(path=path, workspace=_ws(ctx), write=write)
    raise typer.Exit(code=code)


@app.command()
def export(
    ctx: typer.Context,
    budget_id: str = typer.Argument(..., help=HELP_BUDGET_ID),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output YAML path (default: config/budgets/<name>.yml)"),
):
    """Export a budget as a YAML definition."""
    from purse.cli.command import export as cmd_export

    code = cmd_export.run(budget_id=budget_id, workspace=_ws(ctx), output=output)
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()  # pragma: no cover
