# Overview: Flask CLI command groups for bootstrap, catalog seeding and user inspection.

# backend/farmstore/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@farmstore.local --admin-password "Password123!"]
#   Idempotent bootstrap: creates tables, seeds the catalog and the default super admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed
#   Insert catalog products that do not exist yet (never resets stock).
# - python -m flask catalog list [--category vegetables]
#   List products with stock and bulk tiers.
#
# Users:
# - python -m flask users list
#   List all users with role, classification and active status.
# - python -m flask users create-admin --email ops@farmstore.local --password "Password123!" --name "Ops" [--super]
#   Create an admin (or super admin) account.

import click
from flask.cli import with_appcontext

from .catalog_data import CATALOG
from .extensions import db
from .models import User
from .models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from .services import catalog_service
from .services.auth_service import PasswordValidationError, create_user
from .validation import ConflictError, ValidationError


DEFAULT_ADMIN_EMAIL = "admin@farmstore.local"
DEFAULT_ADMIN_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default=DEFAULT_ADMIN_EMAIL, help='Super admin email')
@click.option('--admin-password', default=DEFAULT_ADMIN_PASSWORD, help='Super admin password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Initialize the store: schema, catalog and the default super admin.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing farmstore...")

    db.create_all()
    click.echo("PASS Tables ready")

    created, skipped = catalog_service.seed_catalog(CATALOG)
    click.echo(f"PASS Catalog seeded: {created} created, {skipped} already present")

    existing = db.session.query(User).filter_by(email=admin_email.strip().lower()).first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email} ({existing.role})")
    else:
        try:
            admin = create_user(admin_email, admin_password, name="Store Admin", role=ROLE_SUPER_ADMIN)
        except PasswordValidationError as e:
            raise click.ClickException(str(e))
        admin.is_email_verified = True
        db.session.commit()
        click.echo(f"PASS Created super admin: {admin.email}")

    click.echo("\nDONE Initialization complete.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('catalog')
def catalog_group():
    """Product catalog commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Load the static catalog (idempotent by product id)."""
    try:
        created, skipped = catalog_service.seed_catalog(CATALOG)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {created} products created, {skipped} already present")


@catalog_group.command('list')
@click.option('--category', default=None, help='Only this category')
@with_appcontext
def list_catalog(category):
    """List products with stock and bulk tiers."""
    products = catalog_service.list_products(category=category)
    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<5} {'Name':<28} {'Category':<12} {'Price':>9} {'Stock':>6}  Tiers")
    click.echo("-" * 80)
    for p in products:
        tiers = ", ".join(f"{t.min_quantity}+@{t.price_per_unit}" for t in p.bulk_tiers) or "-"
        flag = " LOW" if p.is_low_stock else (" OUT" if not p.in_stock else "")
        click.echo(f"{p.id:<5} {p.name[:28]:<28} {p.category:<12} {p.base_price:>9} {p.stock:>6}  {tiers}{flag}")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role, classification and status."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Email':<32} {'Role':<12} {'Classification':<22} Active")
    click.echo("-" * 80)
    for u in users:
        click.echo(f"{u.id:<5} {u.email[:32]:<32} {u.role:<12} {u.classification:<22} {'yes' if u.is_active else 'no'}")


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Admin email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
@click.option('--name', default='Admin', help='Display name')
@click.option('--super', 'is_super', is_flag=True, help='Create a super admin')
@with_appcontext
def create_admin(email, password, name, is_super):
    """Create an admin account."""
    try:
        user = create_user(email, password, name=name, role=ROLE_SUPER_ADMIN if is_super else ROLE_ADMIN)
    except (PasswordValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    user.is_email_verified = True
    db.session.commit()
    click.echo(f"PASS Created {user.role}: {user.email} (ID: {user.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(users_group)
