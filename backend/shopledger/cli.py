# Overview: Flask CLI commands for database bootstrap, tenant accounts, and maintenance.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask shop <command> [options]
#
# Database:
# - python -m flask shop init-db
#   Create any missing tables (idempotent, keeps data).
# - python -m flask shop reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenants (shop admin accounts):
# - python -m flask shop list-tenants
#   List all tenants with product and transaction counts.
# - python -m flask shop create-tenant --name "Corner Store" --email owner@example.com
#   Create a tenant (prompts for anything omitted, including the password).
#
# Maintenance:
# - python -m flask shop cleanup-sessions --retention-days 7
#   Delete sessions that expired or were revoked before the retention window.
# - python -m flask shop cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Tenant, Product, Transaction
from .services import auth_service, maintenance_service
from .validation import ConflictError, ValidationError


@click.group('shop')
def shop_group():
    """Database, tenant and maintenance commands."""


@shop_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@shop_group.command('reset-db')
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

    click.echo("PASS Database reset complete.")


@shop_group.command('list-tenants')
@with_appcontext
def list_tenants():
    """List all tenants."""
    tenants = db.session.query(Tenant).order_by(Tenant.id).all()

    if not tenants:
        click.echo("No tenants found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<30} {'Products':<9} {'Sales'}")
    click.echo("="*80)

    for tenant in tenants:
        product_count = db.session.query(Product).filter_by(tenant_id=tenant.id).count()
        sale_count = db.session.query(Transaction).filter_by(tenant_id=tenant.id).count()
        click.echo(f"{tenant.id:<5} {tenant.name:<25} {tenant.email:<30} {product_count:<9} {sale_count}")

    click.echo("="*80 + "\n")


@shop_group.command('create-tenant')
@click.option('--name', prompt=True, help='Shop admin name')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--phone', prompt=True, help='Contact phone')
@click.option('--city', prompt=True, help='City')
@click.option('--branch', prompt=True, help='Branch name')
@click.option('--gstin', prompt=True, help='GST identification number')
@with_appcontext
def create_tenant_cli(name, email, password, phone, city, branch, gstin):
    """
    Create a tenant account.

    Password must be at least 8 characters with a letter and a digit.
    """
    try:
        tenant = auth_service.register_tenant(
            name=name,
            email=email,
            password=password,
            phone=phone,
            city=city,
            branch=branch,
            gstin=gstin,
        )
    except ConflictError as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Validation failed: {e}")

    click.echo(f"PASS Created tenant: {tenant.name} ({tenant.email}) ID {tenant.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@shop_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=7, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete dead sessions older than the retention window."""
    deleted = maintenance_service.cleanup_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


@shop_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """Delete security events older than the retention window."""
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(shop_group)
