import os
import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import upgrade as alembic_upgrade, stamp as alembic_stamp, migrate as alembic_migrate


def _assert_safe_for_upgrade():
    # Prevent accidental prod upgrades unless explicitly allowed
    app_env = (os.getenv("APP_ENV") or "").lower()
    if app_env == "production":
        if (os.getenv("ALLOW_DB_MIGRATIONS") or "").lower() not in ("1", "true", "yes"):
            raise click.ClickException("Refusing to run DB migration in production without ALLOW_DB_MIGRATIONS=true")


@click.command("db-migrate-safe")
@click.option("-m", "--message", default="auto migration", help="Migration message")
@with_appcontext
def db_migrate_safe(message):
    """Generate a new migration script from the cart and catalog models."""
    alembic_migrate(message=message)
    click.echo("Migration script generated.")


@click.command("db-upgrade-safe")
@with_appcontext
def db_upgrade_safe():
    """Apply migrations to the configured database."""
    _assert_safe_for_upgrade()
    alembic_upgrade()
    click.echo("Database upgraded.")


@click.command("cart-show")
@click.argument("user_id")
@with_appcontext
def cart_show(user_id):
    """Print a user's cart and its order summary."""
    from app.services.cart_store import get_cart_store

    view = get_cart_store().get_cart(user_id)
    for item in view.items:
        click.echo(f"{item.quantity:>3} x {item.product.product_code:<16} {item.product.price:>10.2f}  {item.product.description}")
    for saved in view.saved_items:
        click.echo(f"saved {saved.product.product_code:<16} {saved.product.description}")
    summary = view.summary
    if view.applied_promo_code:
        click.echo(f"promo     {view.applied_promo_code.code}")
    click.echo(f"subtotal  {summary.subtotal:.2f}")
    click.echo(f"discount  {summary.discount:.2f}")
    click.echo(f"tax       {summary.tax:.2f}")
    click.echo(f"shipping  {summary.shipping:.2f}")
    click.echo(f"total     {summary.total:.2f}")


@click.command("cart-validate")
@click.argument("user_id")
@with_appcontext
def cart_validate(user_id):
    """Run a validation pass over a user's cart."""
    from app.services.cart_store import get_cart_store

    result = get_cart_store().validate(user_id)
    for message in result.errors:
        click.echo(message)
    click.echo("Cart is valid." if result.ok else f"{len(result.errors)} correction(s) applied.")
    current_app.logger.info(f"cart-validate {user_id}: ok={result.ok}")


def register_cli(app):
    app.cli.add_command(db_migrate_safe)
    app.cli.add_command(db_upgrade_safe)
    app.cli.add_command(cart_show)
    app.cli.add_command(cart_validate)
