from __future__ import annotations

import asyncio
import json

import typer
import uvicorn

from recy.infra.db.models.user import ProfileType
from recy.infra.db.session import async_session_factory, close_db, init_db
from recy.infra.db.repositories import DocumentRepository
from recy.services.forms_service import REPORTED_PROFILE_TYPES
from recy.services.users_service import UsersService


app = typer.Typer(help="RECY CLI")
users_app = typer.Typer(help="Manage users")
forms_app = typer.Typer(help="Inspect forms")
app.add_typer(users_app, name="users")
app.add_typer(forms_app, name="forms")


@app.command()
def serve(
	host: str = typer.Option("127.0.0.1", help="Host interface"),
	port: int = typer.Option(8000, help="Port to bind"),
	reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
	"""Start the RECY API server."""

	uvicorn.run(
		"recy.main:create_app",
		host=host,
		port=port,
		reload=reload,
		factory=True,
	)


@app.command("init-db")
def init_db_command():
	"""Create all database tables."""

	async def _run():
		await init_db()
		await close_db()

	asyncio.run(_run())
	typer.echo("Database initialized")


@users_app.command("create")
def users_create(
	auth_user_id: str = typer.Argument(..., help="Identity issued by the auth provider"),
	email: str = typer.Option(..., help="User email"),
	profile_type: ProfileType = typer.Option(ProfileType.RECYCLER, help="Profile type"),
):
	"""Register a user directly in the database."""

	async def _run():
		async with async_session_factory() as session:
			user = await UsersService(session).register(auth_user_id, email, profile_type)
		await close_db()
		return user

	user = asyncio.run(_run())
	typer.echo(f"{user.id}\t{user.profile_type}\t{user.email}")


@forms_app.command("aggregate")
def forms_aggregate():
	"""Print declared kilograms per profile type as JSON."""

	async def _run():
		async with async_session_factory() as session:
			repo = DocumentRepository(session)
			totals = {
				profile_type.value: await repo.sum_amount_by_profile_type(profile_type.value)
				for profile_type in REPORTED_PROFILE_TYPES
			}
		await close_db()
		return totals

	typer.echo(json.dumps(asyncio.run(_run()), indent=2))


if __name__ == "__main__":
	app()
