from __future__ import annotations

import click

from src.chesslobby.infrastructure.config import load_config
from src.chesslobby.infrastructure.persistence.base import (
    Base,
    create_engine_from_config,
    create_session_factory,
)
from src.chesslobby.infrastructure.persistence.user_repository import SqlAlchemyIdentityDirectory


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """Multiplayer chess session service."""


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=5000, show_default=True)
@click.option("--debug", is_flag=True, help="Enable the Flask debugger and reloader.")
def serve(host: str, port: int, debug: bool) -> None:
    """Run the HTTP API and Socket.IO relay."""
    from src.chesslobby.interface.http.app import create_app

    app = create_app()
    socketio = app.extensions["socketio"]
    click.echo(f"Serving on http://{host}:{port}", err=True)
    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)


@cli.command("add-user")
@click.argument("user_id")
@click.argument("username")
@click.option("--display-name", default=None, help="Name shown to opponents (defaults to USERNAME).")
def add_user(user_id: str, username: str, display_name: str | None) -> None:
    """Register or update USER_ID in the identity directory."""
    config = load_config()
    engine = create_engine_from_config(config)
    Base.metadata.create_all(bind=engine)

    directory = SqlAlchemyIdentityDirectory(create_session_factory(engine))
    try:
        account = directory.register(user_id, username, display_name)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="USERNAME") from exc

    click.secho(f"User {account.user_id} registered as {account.username!r}", fg="green")


if __name__ == "__main__":  # pragma: no cover
    cli()


__all__ = ["cli"]
