from __future__ import annotations

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import List, Optional

import typer
from tqdm import tqdm

from .config import get_settings
from .integrations.base import StorageError
from .models import PhotoUpload
from .services.photo_service import PhotoValidationError, create_photo_service
from .utils.object_keys import build_storage_path, describe_code_points, sanitize_key

app = typer.Typer(help="Sanitize file names into storage keys and upload inspiration photos.")
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def sanitize(name: str = typer.Argument(..., help="Raw file name")) -> None:
    """Print the storage key fragment for NAME."""

    typer.echo(sanitize_key(name))


@app.command()
def path(
    owner_id: str = typer.Argument(..., help="Owner identifier, e.g. an inspiration item id"),
    name: str = typer.Argument(..., help="Raw file name"),
    index: int = typer.Option(0, "--index", "-i", min=0, help="Position of the file in its batch"),
    timestamp: Optional[int] = typer.Option(None, help="Fixed epoch milliseconds instead of the current time"),
) -> None:
    """Print the full storage path for NAME under OWNER_ID."""

    clock = (lambda: timestamp) if timestamp is not None else None
    typer.echo(build_storage_path(owner_id, name, index, clock=clock))


@app.command()
def inspect(name: str = typer.Argument(..., help="Raw file name")) -> None:
    """Show every code point of NAME and flag invisible ones."""

    problematic = 0
    typer.echo(f"Length: {len(name)}")
    for info in describe_code_points(name):
        marker = " " if info.is_visible else "!"
        if info.is_problematic:
            problematic += 1
        typer.echo(f"{marker} {info.index:>3}  {info.code_point_hex:<8} {info.character!r:<10} {info.description}")
    if problematic:
        typer.secho(f"{problematic} problematic character(s) found", fg=typer.colors.YELLOW)
    else:
        typer.echo("No problematic characters found")
    typer.echo(f"Key: {sanitize_key(name)}")


@app.command()
def upload(
    inspiration_id: str = typer.Argument(..., help="Inspiration item the photos belong to"),
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    start_order: int = typer.Option(0, min=0, help="Number of photos the item already has"),
) -> None:
    """Upload image FILES for an inspiration item and record them."""

    try:
        service = create_photo_service(get_settings())
    except StorageError as exc:
        raise typer.BadParameter(str(exc)) from exc

    photos = [_read_photo(file) for file in files]
    with tqdm(total=len(photos), desc=inspiration_id, unit="photo") as progress:
        try:
            records = asyncio.run(
                service.upload_photos(
                    inspiration_id,
                    photos,
                    start_order=start_order,
                    on_uploaded=lambda _record: progress.update(1),
                )
            )
        except PhotoValidationError as exc:
            raise typer.BadParameter(str(exc)) from exc
        except StorageError as exc:
            logger.error("Upload failed: %s", exc)
            raise typer.Exit(code=1) from exc

    for record in records:
        typer.echo(f"{record.photo_order}\t{record.photo_url}")


def _read_photo(file: Path) -> PhotoUpload:
    content_type, _ = mimetypes.guess_type(file.name)
    return PhotoUpload(
        filename=file.name,
        content_type=content_type or "application/octet-stream",
        content=file.read_bytes(),
    )


if __name__ == "__main__":
    app()
