"""CLI command implementations"""

from types import SimpleNamespace
from typing import Annotated, Optional

import typer
from sqlmodel import Session, SQLModel

from slugkeeper.config import Settings, load_config
from slugkeeper.core.allocator import allocate
from slugkeeper.core.lookup import classify, current_path, resolve_from_path
from slugkeeper.core.models import OwnerRef, SlugPolicy, SlugState
from slugkeeper.core.utils.slug import slugify
from slugkeeper.crud.database import init_db, make_engine
from slugkeeper.crud.slugs import delete_slugs_for, slugs_for
from slugkeeper.errors import SlugError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url, settings.isolation_level)
    init_db(engine)
    return engine


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url, settings.isolation_level)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def assign_cmd(
    owner_type: Annotated[str, typer.Argument(help="Owner type, e.g. User")],
    owner_id: Annotated[int, typer.Argument(help="Owner id")],
    texts: Annotated[list[str], typer.Argument(help="Candidate texts in priority order")],
    scope: Annotated[Optional[str], typer.Option("--scope", help="Path prefix scoping uniqueness, slash included")] = None,
    separator: Annotated[Optional[str], typer.Option("--id-separator", help="Separator for last-resort slugs")] = None,
    ):
    """Allocate the active slug for a record from literal candidate texts."""
    settings = _settings(overrides={"id_separator": separator})
    engine = _engine(settings)
    owner = SimpleNamespace(id=owner_id, scope=scope)
    policy = SlugPolicy.from_settings(
        owner_type,
        *[(lambda _owner, text=text: text) for text in texts],
        settings=settings,
        scope="scope" if scope else None,
    )

    try:
        with Session(engine) as session:
            slug = allocate(session, owner, policy, retries=settings.conflict_retries)
            session.commit()
            path = slug.path
    except (SlugError, ValueError) as e:
        _fail("Allocation failed", e)
    typer.echo(path)


def resolve_cmd(
    owner_type: Annotated[str, typer.Argument(help="Owner type, e.g. User")],
    path: Annotated[str, typer.Argument(help="Slug, optionally prefixed by its scope")],
    ):
    """Find the record a slug path points to and whether the path is current."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        owner = resolve_from_path(session, owner_type, path)
        if owner is None:
            typer.echo(f"No {owner_type} found for '{path}'.")
            raise typer.Exit(1)
        canonical = current_path(session, owner)

    state = SlugState.active if canonical == path else SlugState.inactive
    typer.echo(f"{owner.owner_type} {owner.owner_id} ({state.value})")
    if state is SlugState.inactive and canonical:
        typer.echo(f"  current: {canonical}")


def classify_cmd(
    owner_type: Annotated[str, typer.Argument(help="Owner type, e.g. User")],
    owner_id: Annotated[int, typer.Argument(help="Owner id")],
    slug: Annotated[str, typer.Argument(help="Slug to check")],
    ):
    """Print active, inactive or unknown for one record's slug."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        state = classify(session, OwnerRef(owner_type, owner_id), slug)
    typer.echo(state.value)


def history_cmd(
    owner_type: Annotated[str, typer.Argument(help="Owner type, e.g. User")],
    owner_id: Annotated[int, typer.Argument(help="Owner id")],
    ):
    """List every slug a record has held, marking the active one with '*'."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        rows = slugs_for(session, OwnerRef(owner_type, owner_id))
        lines = [
            f"{'*' if row.active else ' '} {row.path}"
            + (f"  ({row.created_at:%Y-%m-%d %H:%M})" if row.created_at else "")
            for row in rows
        ]
    if not lines:
        typer.echo(f"No slugs found for {owner_type} {owner_id}.")
        raise typer.Exit(1)
    for line in lines:
        typer.echo(line)


def purge_cmd(
    owner_type: Annotated[str, typer.Argument(help="Owner type, e.g. User")],
    owner_id: Annotated[int, typer.Argument(help="Owner id")],
    ):
    """Delete all slugs of a record, e.g. after the record was deleted."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        deleted = delete_slugs_for(session, OwnerRef(owner_type, owner_id))
        session.commit()
    typer.echo(f"Deleted {deleted} slug(s) for {owner_type} {owner_id}.")


def slugify_cmd(
    text: Annotated[str, typer.Argument(help="Text to slugify")],
    ):
    """Print the default slugification of text."""
    typer.echo(slugify(text))
