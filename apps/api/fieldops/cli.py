"""CLI tools for field ops administration."""

import json
from uuid import UUID

import click
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from fieldops.core.exceptions import InspectionServiceError
from fieldops.db.enums import Role
from fieldops.db.models import Company, Membership, User
from fieldops.db.session import SessionLocal
from fieldops.schemas.auth import UserSession
from fieldops.schemas.checklist import TemplateVersionCreate
from fieldops.services import template_service


@click.group()
def cli():
    """Field ops CLI tools."""
    pass


def _admin_session(db, company_id: UUID) -> UserSession:
    row = db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(
            Membership.organization_id == company_id,
            Membership.role == Role.ADMIN.value,
        )
        .order_by(Membership.created_at)
        .limit(1)
    ).first()
    if not row:
        raise click.ClickException(f"No admin found for company {company_id}")
    membership, user = row
    return UserSession(
        user_id=user.id,
        org_id=company_id,
        role=Role.ADMIN,
        email=user.email,
        display_name=user.display_name,
    )


@cli.command()
@click.option("--name", required=True, help="Company name")
@click.option("--admin-email", required=True, help="Admin email address")
@click.option("--admin-name", default="Admin", help="Admin display name")
def create_company(name: str, admin_email: str, admin_name: str):
    """
    Create a company and its first admin user.

    Example:
        python -m fieldops.cli create-company --name "Acme Cleaning" --admin-email "admin@acme.com"
    """
    db = SessionLocal()
    try:
        email = admin_email.lower().strip()
        if db.query(User).filter(User.email == email).first():
            raise click.ClickException(f"User already exists: {email}")

        company = Company(name=name.strip())
        user = User(email=email, display_name=admin_name)
        db.add_all([company, user])
        db.flush()
        db.add(
            Membership(
                user_id=user.id,
                organization_id=company.id,
                role=Role.ADMIN.value,
            )
        )
        db.commit()

        click.echo(f"✓ Created company: {company.name}")
        click.echo(f"  ID: {company.id}")
        click.echo(f"✓ Created admin {email} ({user.id})")
    except SQLAlchemyError as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--company-id", required=True, type=click.UUID, help="Company ID")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file: a list of items, or {name, description, template_id, items}",
)
@click.option("--name", default=None, help="Version name (overrides the file)")
@click.option("--activate/--no-activate", default=True, help="Activate the new version")
def seed_checklist(company_id: UUID, file_path: str, name: str | None, activate: bool):
    """
    Create a checklist version with items from a JSON file.

    Example:
        python -m fieldops.cli seed-checklist --company-id <uuid> --file checklist_v1.json
    """
    with open(file_path, encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, list):
        payload = {"items": payload}
    payload.setdefault("name", "Checklist")
    if name:
        payload["name"] = name
    payload["activate"] = activate

    try:
        data = TemplateVersionCreate.model_validate(payload)
    except ValidationError as e:
        raise click.ClickException(f"Invalid checklist file: {e}")

    db = SessionLocal()
    try:
        session = _admin_session(db, company_id)
        version = template_service.create_template_version(db, session, data)
        db.commit()

        click.echo(f"✓ Created version {version.version_number}: {version.name}")
        click.echo(f"  ID: {version.id}")
        click.echo(f"  Items: {len(data.items)}")
        if activate:
            click.echo("✓ Activated")
    except (InspectionServiceError, SQLAlchemyError) as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--company-id", required=True, type=click.UUID, help="Company ID")
@click.option("--version-id", required=True, type=click.UUID, help="Template version ID")
def activate_version(company_id: UUID, version_id: UUID):
    """Make a checklist version the company's only active version."""
    db = SessionLocal()
    try:
        version = template_service.activate_template_version(db, company_id, version_id)
        db.commit()
        item_count = template_service.count_items(db, company_id, version.id)
        click.echo(f"✓ Activated version {version.version_number}: {version.name}")
        for warning in template_service.template_warnings(item_count):
            click.echo(f"⚠ {warning}")
    except (InspectionServiceError, SQLAlchemyError) as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m fieldops.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            raise click.ClickException(f"User not found: {email}")

        old_version = user.token_version
        user.token_version += 1
        db.commit()

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
