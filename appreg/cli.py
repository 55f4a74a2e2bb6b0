"""appreg CLI — manage the release record and node directory from a shell."""

from __future__ import annotations

import functools
import json

import click
from rich.console import Console
from rich.table import Table

from appreg import __version__
from appreg.config import load_settings
from appreg.errors import RegistryError
from appreg.logging_config import setup_logging

console = Console()

caller_option = click.option(
    "--as", "caller", required=True, envvar="APPREG_CALLER", help="Principal performing the call"
)


def _handle_errors(func):
    """Print registry errors in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RegistryError as exc:
            console.print(f"[red]{exc.code}:[/] {exc.message}")
            raise SystemExit(1)

    return wrapper


def _registry(ctx: click.Context):
    from appreg.runtime import open_registry

    return open_registry(ctx.obj["settings"])


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to an appreg.yaml settings file")
@click.option("--state", "state_path", default=None, help="Registry state file (overrides config)")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, state_path: str | None, log_level: str | None):
    """appreg — permissioned application-release and node registry.

    Keeps the current release record of an application and a directory of
    node endpoints that managers admit through a pending -> approved review.
    """
    settings = load_settings(config_path)
    if state_path:
        settings.state_path = state_path
    if log_level:
        settings.log_level = log_level
    setup_logging("appreg", settings.log_level, settings.log_file or None)
    ctx.obj = {"settings": settings}


@main.command()
@click.argument("owner")
@click.pass_context
@_handle_errors
def init(ctx: click.Context, owner: str):
    """Create a new registry owned by OWNER."""
    from appreg.runtime import create_registry

    reg = create_registry(ctx.obj["settings"], owner)
    console.print(f"\n[bold blue]appreg[/] — Registry created at {reg.state_path}")
    console.print(f"  Owner: [cyan]{reg.get_owner()}[/]")


# ── Ownership ────────────────────────────────────────────────────────


@main.group()
def owner():
    """Inspect or transfer ownership."""


@owner.command(name="show")
@click.pass_context
@_handle_errors
def owner_show(ctx: click.Context):
    console.print(_registry(ctx).get_owner())


@owner.command(name="transfer")
@click.argument("new_owner")
@caller_option
@click.pass_context
@_handle_errors
def owner_transfer(ctx: click.Context, new_owner: str, caller: str):
    """Transfer ownership to NEW_OWNER."""
    _registry(ctx).transfer_ownership(caller, new_owner)
    console.print(f"  [green]v[/] Ownership transferred to {new_owner}")


# ── Managers ─────────────────────────────────────────────────────────


@main.group()
def manager():
    """Manage the manager roster."""


@manager.command(name="add")
@click.argument("principal")
@caller_option
@click.pass_context
@_handle_errors
def manager_add(ctx: click.Context, principal: str, caller: str):
    _registry(ctx).add_manager(caller, principal)
    console.print(f"  [green]v[/] {principal} is now a manager")


@manager.command(name="remove")
@click.argument("principal")
@caller_option
@click.pass_context
@_handle_errors
def manager_remove(ctx: click.Context, principal: str, caller: str):
    _registry(ctx).remove_manager(caller, principal)
    console.print(f"  [green]v[/] {principal} is no longer a manager")


@manager.command(name="check")
@click.argument("principal")
@click.pass_context
@_handle_errors
def manager_check(ctx: click.Context, principal: str):
    """Print whether PRINCIPAL has manager capability."""
    is_manager = _registry(ctx).is_manager(principal)
    console.print("[green]yes[/]" if is_manager else "[red]no[/]")


@manager.command(name="list")
@click.pass_context
@_handle_errors
def manager_list(ctx: click.Context):
    reg = _registry(ctx)
    console.print(f"  Owner: [cyan]{reg.get_owner()}[/] (implicit manager)")
    for principal in reg.list_managers():
        console.print(f"  {principal}")


# ── Release metadata ─────────────────────────────────────────────────


@main.group()
def app():
    """Show or update the current release record."""


@app.command(name="show")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
@_handle_errors
def app_show(ctx: click.Context, as_json: bool):
    info = _registry(ctx).get_app_info()
    if as_json:
        click.echo(json.dumps(
            {"version": info.version, "download_link": info.download_link, "update_content": info.update_content}
        ))
        return
    console.print(f"  Version:  {info.version or '-'}")
    console.print(f"  Download: {info.download_link or '-'}")
    console.print(f"  Notes:    {info.update_content or '-'}")


@app.command(name="update")
@click.option("--version", "version", required=True)
@click.option("--link", "download_link", default="", help="Download link")
@click.option("--notes", "update_content", default="", help="Update notes")
@caller_option
@click.pass_context
@_handle_errors
def app_update(ctx: click.Context, version: str, download_link: str, update_content: str, caller: str):
    """Overwrite the release record. Owner only."""
    _registry(ctx).update_app_info(caller, version, download_link, update_content)
    console.print(f"  [green]v[/] Release record set to {version}")


@app.command(name="set-version")
@click.argument("version")
@caller_option
@click.pass_context
@_handle_errors
def app_set_version(ctx: click.Context, version: str, caller: str):
    """Change only the version; link and notes stay. Owner only."""
    _registry(ctx).update_version(caller, version)
    console.print(f"  [green]v[/] Version set to {version}")


# ── Nodes ────────────────────────────────────────────────────────────


@main.group()
def node():
    """Manage the node directory."""


@node.command(name="add")
@click.argument("url")
@caller_option
@click.pass_context
@_handle_errors
def node_add(ctx: click.Context, url: str, caller: str):
    """Submit URL. Submissions by managers are approved at once."""
    record = _registry(ctx).add_node(caller, url)
    status = "[green]approved[/]" if record.is_approved else "[yellow]pending[/]"
    console.print(f"  Added: {url} ({status})")


@node.command(name="approve")
@click.argument("url")
@caller_option
@click.pass_context
@_handle_errors
def node_approve(ctx: click.Context, url: str, caller: str):
    _registry(ctx).approve_node(caller, url)
    console.print(f"  [green]v[/] Approved {url}")


@node.command(name="approve-batch")
@click.argument("urls", nargs=-1, required=True)
@caller_option
@click.pass_context
@_handle_errors
def node_approve_batch(ctx: click.Context, urls: tuple, caller: str):
    """Approve every pending URL; unknown or approved ones are skipped."""
    approved = _registry(ctx).approve_nodes(caller, list(urls))
    console.print(f"  [green]v[/] Approved {len(approved)} of {len(urls)}")
    for url in approved:
        console.print(f"    {url}")


@node.command(name="remove")
@click.argument("url")
@caller_option
@click.pass_context
@_handle_errors
def node_remove(ctx: click.Context, url: str, caller: str):
    _registry(ctx).remove_node(caller, url)
    console.print(f"  [green]v[/] Removed {url}")


@node.command(name="remove-batch")
@click.argument("urls", nargs=-1, required=True)
@caller_option
@click.pass_context
@_handle_errors
def node_remove_batch(ctx: click.Context, urls: tuple, caller: str):
    """Remove every tracked URL; unknown ones are skipped."""
    removed = _registry(ctx).remove_nodes(caller, list(urls))
    console.print(f"  [green]v[/] Removed {len(removed)} of {len(urls)}")


@node.command(name="info")
@click.argument("url")
@click.pass_context
@_handle_errors
def node_info(ctx: click.Context, url: str):
    record = _registry(ctx).get_node_info(url)
    console.print(f"  {url}: {'approved' if record.is_approved else 'pending'}")


@node.command(name="list")
@click.option("--status", default="all", type=click.Choice(["all", "approved", "pending"]))
@click.pass_context
@_handle_errors
def node_list(ctx: click.Context, status: str):
    """List tracked nodes. Order is not stable across removals."""
    reg = _registry(ctx)
    rows = []
    if status in ("all", "approved"):
        rows += [(url, "[green]approved[/]") for url in reg.get_approved_node_urls()]
    if status in ("all", "pending"):
        rows += [(url, "[yellow]pending[/]") for url in reg.get_pending_node_urls()]

    if not rows:
        console.print("[yellow]No nodes.[/]")
        return

    table = Table(
        title=f"Nodes ({reg.get_approved_node_count()} approved, {reg.get_pending_node_count()} pending)"
    )
    table.add_column("URL", style="cyan")
    table.add_column("Status")
    for url, label in rows:
        table.add_row(url, label)
    console.print(table)


# ── Webhooks ─────────────────────────────────────────────────────────


@main.group()
def webhook():
    """Manage outbound webhooks fired on registry events."""


@webhook.command(name="add")
@click.argument("url")
@click.option("--event", "-e", "events", multiple=True, help="Event kind (default: all)")
@click.option("--secret", default="", help="HMAC signing secret")
@click.option("--name", default="", help="Display name")
@click.pass_context
def webhook_add(ctx: click.Context, url: str, events: tuple, secret: str, name: str):
    from appreg.security.webhook_manager import WebhookManager

    settings = ctx.obj["settings"]
    manager = WebhookManager(settings.webhook_dir, timeout=settings.webhook_timeout)
    try:
        wh = manager.register_webhook(url, list(events), secret=secret, name=name)
    except ValueError as exc:
        console.print(f"[red]{exc}[/]")
        raise SystemExit(1)
    console.print(f"  Registered webhook [cyan]{wh.id}[/] -> {wh.url}")


@webhook.command(name="list")
@click.pass_context
def webhook_list(ctx: click.Context):
    from appreg.security.webhook_manager import WebhookManager

    hooks = WebhookManager(ctx.obj["settings"].webhook_dir).list_webhooks()
    if not hooks:
        console.print("[yellow]No webhooks registered.[/]")
        return

    table = Table(title=f"Webhooks ({len(hooks)})")
    table.add_column("ID", style="dim")
    table.add_column("URL", style="cyan")
    table.add_column("Events")
    table.add_column("Active", justify="center")
    for wh in hooks:
        table.add_row(wh.id, wh.url, ", ".join(wh.events), "[green]Y[/]" if wh.active else "[red]N[/]")
    console.print(table)


@webhook.command(name="deliveries")
@click.option("--webhook-id", default=None)
@click.option("--limit", default=20)
@click.pass_context
def webhook_deliveries(ctx: click.Context, webhook_id: str | None, limit: int):
    from appreg.security.webhook_manager import WebhookManager

    deliveries = WebhookManager(ctx.obj["settings"].webhook_dir).get_deliveries(webhook_id, limit)
    for d in deliveries:
        status = "[green]OK[/]" if d.success else "[red]FAIL[/]"
        console.print(f"  {status} {d.delivered_at} {d.event} -> {d.webhook_id} ({d.response_status})")


# ── Audit ────────────────────────────────────────────────────────────


@main.group()
def audit():
    """Query the audit log of registry changes."""


@audit.command(name="list")
@click.option("--actor", default=None)
@click.option("--action", default=None, help="Event kind, e.g. node-added")
@click.option("--limit", default=50)
@click.pass_context
def audit_list(ctx: click.Context, actor: str | None, action: str | None, limit: int):
    from appreg.security.audit_log import AuditLogger

    entries = AuditLogger(ctx.obj["settings"].audit_dir).get_events(
        actor=actor, action=action, limit=limit
    )
    if not entries:
        console.print("[yellow]No audit entries.[/]")
        return

    table = Table(title=f"Audit log ({len(entries)} entries)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Time")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Resource")
    for e in entries:
        table.add_row(str(e.sequence), e.timestamp, e.actor, e.action, f"{e.resource_type}:{e.resource_id}")
    console.print(table)


@audit.command(name="export")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.pass_context
def audit_export(ctx: click.Context, fmt: str):
    from appreg.security.audit_log import AuditLogger

    click.echo(AuditLogger(ctx.obj["settings"].audit_dir).export_events(fmt))


if __name__ == "__main__":
    main()
