# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to backoffice (PowerShell: $env:FLASK_APP="backoffice").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent: creates missing tables, default admin roles and default preferences.
#
# Admin user inspection/bootstrap:
# - python -m flask users list
#   List all admin users with their role.
# - python -m flask users create-admin --email admin@example.com --password "secret1" --role super_admin
#   Create an admin user (prompts if options are omitted).
#
# Category inspection:
# - python -m flask categories tree
#   Print the category hierarchy, one indented line per category.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import AdminRole, AdminUser, ProductCategory
from .category_tree import build_category_tree, walk_tree
from .services import system_service
from .services.admin_users_service import create_admin_user
from .services.auth_service import PasswordValidationError
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed default roles and preferences.

    Safe to run repeatedly: existing rows are left alone.
    """
    click.echo("START Initializing back office...")
    db.create_all()

    created = system_service.seed_defaults()
    if created["roles"]:
        click.echo(f"PASS Created roles: {', '.join(created['roles'])}")
    else:
        click.echo("PASS Roles already present")
    if created["preferences"]:
        click.echo(f"PASS Created preferences: {', '.join(created['preferences'])}")
    else:
        click.echo("PASS Preferences already present")

    click.echo("DONE Back office initialized")


@click.group('users')
def users_group():
    """Admin user commands."""


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Plain-text password')
@click.option('--role', 'role_name', default='super_admin', show_default=True, help='Admin role name')
@click.option('--first-name', default=None)
@click.option('--last-name', default=None)
@with_appcontext
def create_admin(email, password, role_name, first_name, last_name):
    """Create an admin user."""
    role = db.session.query(AdminRole).filter_by(role_name=role_name).first()
    if role is None:
        click.echo(f"FAIL Role '{role_name}' not found (run 'flask system init' first)")
        raise SystemExit(1)

    try:
        user = create_admin_user(
            patch={
                "email": email.strip(),
                "role_id": role.id,
                "first_name": first_name,
                "last_name": last_name,
            },
            password=password,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        raise SystemExit(1)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created admin user: {user['email']} (ID: {user['id']}) with role '{role_name}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all admin users with their role."""
    users = db.session.query(AdminUser).order_by(AdminUser.id.asc()).all()

    if not users:
        click.echo("No admin users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Role'}")
    click.echo("="*80)

    for user in users:
        name = " ".join(part for part in (user.first_name, user.last_name) if part) or "-"
        role_name = user.role.role_name if user.role else "none"
        click.echo(f"{user.id:<5} {user.email:<35} {name:<25} {role_name}")

    click.echo("="*80 + "\n")


@click.group('categories')
def categories_group():
    """Product category commands."""


@categories_group.command('tree')
@with_appcontext
def print_tree():
    """Print the category hierarchy."""
    categories = db.session.query(ProductCategory).all()
    if not categories:
        click.echo("No categories found.")
        return

    for depth, node in walk_tree(build_category_tree(categories)):
        click.echo(f"{'  ' * depth}- {node.name} (ID: {node.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(categories_group)
