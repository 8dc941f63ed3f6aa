# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/shoppos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all staff accounts.
# - python -m flask users create --email ana@shop.local --name "Ana" --password "Password123!"
#   Create a staff account (prompts if options are omitted).
#
# Maintenance:
# - python -m flask maintenance audit-credits [--fix]
#   Check every credit account against its payment log; --fix repairs balances.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user, PasswordValidationError
from .services import maintenance_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables and data are left alone)."""
    db.create_all()
    click.echo("PASS Database initialized.")


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

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """Staff account commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--name', 'display_name', prompt=True, help='Display name shown on receipts')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(email, display_name, password):
    """
    Create a staff account without the registration key.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email=email, password=password, display_name=display_name)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.display_name} ({user.email})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all staff accounts."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {(user.display_name or '-'):<25} {user.email:<35} {active_str}")

    click.echo("="*80 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Data reconciliation commands."""


@maintenance_group.command('audit-credits')
@click.option('--fix', is_flag=True, help='Recompute remaining balance and status from the payment log')
@with_appcontext
def audit_credits(fix):
    """Check total - remaining == sum(payments) for every credit account."""
    findings = maintenance_service.audit_credit_accounts(fix=fix)

    if not findings:
        click.echo("PASS All credit accounts reconcile with their payment logs.")
        return

    for finding in findings:
        click.echo(f"FAIL Credit #{finding['credit_account_id']} ({finding['customer_name']})")
        for problem in finding["problems"]:
            click.echo(f"     {problem}")

    if fix:
        click.echo(f"PASS Repaired {len(findings)} credit account(s).")
    else:
        click.echo(f"WARN {len(findings)} inconsistent account(s). Re-run with --fix to repair.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
