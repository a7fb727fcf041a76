"""CLI tools for campaign store administration."""

import click

from campaign_store.core.config import settings
from campaign_store.core.errors import StoreError
from campaign_store.core.logging import configure_logging
from campaign_store.core.migrations import ensure_migrations, get_migration_status, upgrade_to_head
from campaign_store.db.session import create_store_engine
from campaign_store.store import RelationalStore


@click.group()
@click.version_option(settings.VERSION, prog_name="campaign-store")
@click.option("--database-url", envvar="DATABASE_URL", default=None, help="SQLAlchemy database URL")
@click.option("--log-level", default=None, help="Log level (defaults to LOG_LEVEL)")
@click.pass_context
def cli(ctx: click.Context, database_url: str | None, log_level: str | None):
    """Campaign store CLI tools."""
    configure_logging(log_level)
    engine = create_store_engine(database_url or settings.DATABASE_URL)
    ctx.call_on_close(engine.dispose)
    ctx.obj = engine
    if settings.AUTO_MIGRATE and ctx.invoked_subcommand != "migrate":
        ensure_migrations(engine, auto_migrate=True)


def _store(ctx: click.Context) -> RelationalStore:
    return RelationalStore(ctx.obj)


@cli.command()
@click.pass_context
def migrate(ctx: click.Context):
    """Upgrade the database schema to the latest revision."""
    upgrade_to_head(ctx.obj)
    status = get_migration_status(ctx.obj)
    click.echo(f"✓ Schema at {', '.join(status.current_heads) or 'base'}")


@cli.command("migration-status")
@click.pass_context
def migration_status(ctx: click.Context):
    """Show current and head schema revisions."""
    status = get_migration_status(ctx.obj)
    click.echo(f"Current: {', '.join(status.current_heads) or 'none'}")
    click.echo(f"Head:    {', '.join(status.head_revisions) or 'none'}")
    if not status.is_up_to_date:
        click.echo("❌ Database is behind; run `migrate`")
        ctx.exit(1)
    click.echo("✓ Up to date")


@cli.command("check-integrity")
@click.pass_context
def check_integrity(ctx: click.Context):
    """Scan every foreign key for orphaned rows."""
    report = _store(ctx).check_integrity()
    for table, count in report.row_counts.items():
        click.echo(f"  {table}: {count} rows")
    if not report.ok:
        for column, count in report.orphans.items():
            click.echo(f"❌ {column}: {count} orphaned rows")
        ctx.exit(1)
    click.echo("✓ No orphaned rows")


@cli.command("create-user")
@click.option("--username", required=True, help="Account name")
@click.option("--email", required=True, help="Login email address")
@click.option("--user-id", type=int, default=None, help="Explicit user id (Mailchimp user id)")
@click.pass_context
def create_user(ctx: click.Context, username: str, email: str, user_id: int | None):
    """
    Create a user.

    Example:
        campaign-store create-user --username alice --email alice@example.com --user-id 1
    """
    try:
        user = _store(ctx).create_user(username, email, user_id=user_id)
    except StoreError as e:
        click.echo(f"❌ Error: {e}")
        ctx.exit(1)
    click.echo(f"✓ Created user: {user.username}")
    click.echo(f"  ID: {user.id}")


@cli.command("delete-user")
@click.option("--user-id", type=int, required=True, help="User id to delete")
@click.confirmation_option(prompt="Delete the user with all sessions, campaigns and members?")
@click.pass_context
def delete_user(ctx: click.Context, user_id: int):
    """Delete a user and everything it owns."""
    counts = _store(ctx).delete_user(user_id)
    if not counts:
        click.echo(f"User {user_id} does not exist; nothing deleted")
        return
    for table, count in counts.items():
        click.echo(f"✓ Deleted {count} {table} rows")


@cli.command("rename-user")
@click.option("--old-id", type=int, required=True, help="Current user id")
@click.option("--new-id", type=int, required=True, help="New user id")
@click.pass_context
def rename_user(ctx: click.Context, old_id: int, new_id: int):
    """Change a user's id; sessions and campaigns follow."""
    try:
        user = _store(ctx).update_user_id(old_id, new_id)
    except StoreError as e:
        click.echo(f"❌ Error: {e}")
        ctx.exit(1)
    if user is None:
        click.echo(f"❌ User {old_id} does not exist")
        ctx.exit(1)
    click.echo(f"✓ User {old_id} is now {user.id}")


def main():
    cli()


if __name__ == "__main__":
    main()
