"""Command-line interface for bucket-storage.

This module exposes the file storage operations of a single bucket.

Commands:
    - ls: List files matching a prefix or wildcard pattern
    - info: Show size and modification time of a file
    - exists: Check whether a file exists
    - get: Download a file
    - put: Upload a local file
    - cp / mv / rm: Copy, rename and delete files
    - rm-many: Delete every file matching a pattern

The bucket is selected with a connection string, passed via
--connection-string or the BUCKET_STORAGE_CONNECTION_STRING variable.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from . import __version__
from .models import FileSpec
from .storage import FileStorage

app = typer.Typer(
    name="bucket-storage",
    help="File operations on S3-compatible object storage buckets.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        typer.echo(f"bucket-storage {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, help="Show version."),
    ] = None,
) -> None:
    """
    Bucket-Storage: treat an object storage bucket as a file store.
    """
    pass


ConnectionStringOption = Annotated[
    Optional[str],
    typer.Option(
        "--connection-string",
        "-c",
        envvar="BUCKET_STORAGE_CONNECTION_STRING",
        help="AccessKey=..;SecretKey=..;EndPoint=..;Bucket=..",
    ),
]


def _open_storage(connection_string: Optional[str]) -> FileStorage:
    return FileStorage(connection_string)


def _format_size(size: int) -> str:
    if size >= 1024**3:
        return f"{size / (1024**3):.2f} GB"
    elif size >= 1024**2:
        return f"{size / (1024**2):.2f} MB"
    elif size >= 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size} bytes"


def _echo_spec(spec: FileSpec) -> None:
    modified = spec.modified.isoformat() if spec.modified else "-"
    typer.echo(f"{spec.path}\t{spec.size}\t{modified}")


@app.command("ls")
def list_cmd(
    pattern: Annotated[
        Optional[str],
        typer.Argument(help="Key prefix or wildcard pattern, e.g. 'logs/*.json'"),
    ] = None,
    connection_string: ConnectionStringOption = None,
    page_size: Annotated[
        int, typer.Option("--page-size", help="Files fetched per request page")
    ] = 100,
    limit: Annotated[
        Optional[int], typer.Option("--limit", help="Maximum number of files to list")
    ] = None,
    skip: Annotated[
        Optional[int], typer.Option("--skip", help="Matching files to skip first")
    ] = None,
) -> None:
    """
    List files in the bucket.

    Examples:
        bucket-storage ls "reports/"
        bucket-storage ls "reports/*.csv" --limit 10
    """
    try:
        with _open_storage(connection_string) as storage:
            if limit is not None or skip is not None:
                for spec in storage.get_file_list(pattern, limit=limit, skip=skip):
                    _echo_spec(spec)
                return

            page = storage.get_paged_file_list(page_size=page_size, pattern=pattern)
            while True:
                for spec in page:
                    _echo_spec(spec)
                if not page.has_more:
                    break
                page = page.next_page()

    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("info")
def info_cmd(
    path: Annotated[str, typer.Argument(help="File path in the bucket")],
    connection_string: ConnectionStringOption = None,
) -> None:
    """Show metadata for a file."""
    try:
        with _open_storage(connection_string) as storage:
            spec = storage.get_file_info(path)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if spec is None:
        typer.echo(f"Error: file not found: {path}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Path: {spec.path}")
    typer.echo(f"Size: {spec.size:,} bytes ({_format_size(spec.size)})")
    typer.echo(f"Modified: {spec.modified.isoformat() if spec.modified else '-'}")


@app.command("exists")
def exists_cmd(
    path: Annotated[str, typer.Argument(help="File path in the bucket")],
    connection_string: ConnectionStringOption = None,
) -> None:
    """Exit with status 0 if the file exists, 1 otherwise."""
    try:
        with _open_storage(connection_string) as storage:
            found = storage.exists(path)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("yes" if found else "no")
    if not found:
        raise typer.Exit(1)


@app.command("get")
def get_cmd(
    path: Annotated[str, typer.Argument(help="File path in the bucket")],
    connection_string: ConnectionStringOption = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Local file to write; stdout if omitted"),
    ] = None,
) -> None:
    """Download a file."""
    try:
        with _open_storage(connection_string) as storage:
            stream = storage.get_file_stream(path)
            if stream is None:
                typer.echo(f"Error: unable to read {path}", err=True)
                raise typer.Exit(1)
            try:
                data = stream.read()
            finally:
                stream.close()
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if output is None:
        typer.get_binary_stream("stdout").write(data)
    else:
        output.write_bytes(data)
        typer.echo(f"Saved {len(data):,} bytes to {output}")


@app.command("put")
def put_cmd(
    source: Annotated[
        Path, typer.Argument(help="Local file to upload", exists=True, dir_okay=False)
    ],
    path: Annotated[str, typer.Argument(help="Destination path in the bucket")],
    connection_string: ConnectionStringOption = None,
) -> None:
    """Upload a local file."""
    try:
        with _open_storage(connection_string) as storage, source.open("rb") as stream:
            saved = storage.save_file(path, stream)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not saved:
        typer.echo(f"Error: unable to save {path}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Saved {source} to {path}")


@app.command("cp")
def copy_cmd(
    path: Annotated[str, typer.Argument(help="Source path in the bucket")],
    target_path: Annotated[str, typer.Argument(help="Target path in the bucket")],
    connection_string: ConnectionStringOption = None,
) -> None:
    """Copy a file within the bucket."""
    _run_bool(
        lambda storage: storage.copy_file(path, target_path),
        connection_string,
        f"Copied {path} to {target_path}",
        f"unable to copy {path} to {target_path}",
    )


@app.command("mv")
def move_cmd(
    path: Annotated[str, typer.Argument(help="Source path in the bucket")],
    new_path: Annotated[str, typer.Argument(help="New path in the bucket")],
    connection_string: ConnectionStringOption = None,
) -> None:
    """Rename a file within the bucket."""
    _run_bool(
        lambda storage: storage.rename_file(path, new_path),
        connection_string,
        f"Renamed {path} to {new_path}",
        f"unable to rename {path} to {new_path}",
    )


@app.command("rm")
def delete_cmd(
    path: Annotated[str, typer.Argument(help="File path in the bucket")],
    connection_string: ConnectionStringOption = None,
) -> None:
    """Delete a file."""
    _run_bool(
        lambda storage: storage.delete_file(path),
        connection_string,
        f"Deleted {path}",
        f"unable to delete {path}",
    )


@app.command("rm-many")
def delete_many_cmd(
    pattern: Annotated[
        Optional[str],
        typer.Argument(help="Key prefix or wildcard pattern; omit to empty the bucket"),
    ] = None,
    connection_string: ConnectionStringOption = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")
    ] = False,
) -> None:
    """Delete every file matching a pattern."""
    if not yes:
        typer.confirm(f"Delete all files matching '{pattern or '*'}'?", abort=True)

    try:
        with _open_storage(connection_string) as storage:
            count = storage.delete_files(pattern)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Deleted {count:,} files")


def _run_bool(operation, connection_string: Optional[str], success: str, failure: str) -> None:
    try:
        with _open_storage(connection_string) as storage:
            ok = operation(storage)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not ok:
        typer.echo(f"Error: {failure}", err=True)
        raise typer.Exit(1)
    typer.echo(success)


if __name__ == "__main__":
    app()
