"""CLI for heartbeat outlines (show, search, edit, import/export, MCP server)."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from heartbeat.config import API_URL, DEFAULT_DOCUMENT_KEY, resolve_data_directory
from heartbeat.core.tree.markdown import render_subtree_as_markdown
from heartbeat.editor import ExportFormat, OutlineEditor
from heartbeat.errors import DocumentParseError, PersistenceError
from heartbeat.logging_config import configure_logging
from heartbeat.protocols import DocumentStoreProtocol
from heartbeat.store.documents import fallback_for
from heartbeat.store.file_store import FileStore
from heartbeat.store.http_store import HttpStore

app = typer.Typer(help="Heartbeat: a keyboard-driven outliner.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory with <document>.json files"),
]
UrlOption = Annotated[
    str | None,
    typer.Option("--url", "-u", help="Remote document API (overrides --data-dir)"),
]
DocumentOption = Annotated[
    str | None,
    typer.Option("--document", "-D", help="Document key"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write detailed logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)


def _store(data_dir: Path | None, url: str | None) -> DocumentStoreProtocol:
    url = url or API_URL
    if url:
        return HttpStore(url)
    return FileStore(data_dir or resolve_data_directory())


def _open_editor(data_dir: Path | None, url: str | None, document: str | None) -> OutlineEditor:
    key = document or DEFAULT_DOCUMENT_KEY
    try:
        return OutlineEditor.open(_store(data_dir, url), key, fallback=fallback_for(key))
    except (PersistenceError, DocumentParseError, ValueError) as e:
        logger.error("Cannot open document {}: {}", key, e)
        raise typer.Exit(1) from e


def _finish(editor: OutlineEditor) -> None:
    """Wait for the save of the last change and report a failure."""
    saved = editor.flush()
    editor.close()
    if not saved:
        error = editor.autosaver.last_error if editor.autosaver else None
        logger.error("Changes to {} were not saved: {}", editor.key, error)
        raise typer.Exit(1)


@app.command()
def show(
    node_id: str = typer.Argument("root", help="Node to show"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Show a node and its subtree as markdown."""
    editor = _open_editor(data_dir, url, document)
    try:
        md = render_subtree_as_markdown(editor.tree, node_id=node_id, max_depth=max_depth, checkboxes=True)
        if not md:
            typer.echo(f"Node '{node_id}' not found.")
            raise typer.Exit(1)
        typer.echo(md, nl=False)
    finally:
        editor.close()


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(10, "--limit", "-n", help="Max results"),
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Search for nodes whose text contains a query."""
    editor = _open_editor(data_dir, url, document)
    try:
        results = editor.search(query, limit=limit)
        if output_json:
            data = {
                "results": [
                    {
                        "node_id": r.node.id,
                        "text": r.node.text,
                        "snippet": r.snippet,
                        "path": [c.text for c in r.breadcrumbs],
                    }
                    for r in results
                ],
                "count": len(results),
            }
            typer.echo(json.dumps(data, indent=2))
        else:
            typer.echo(f"Found {len(results)} results:\n")
            for r in results:
                typer.echo(f"  {r.node.text[:80]}")
                path = " > ".join(c.text[:30] for c in r.breadcrumbs)
                typer.echo(f"    id={r.node.id}  path={path}")
                typer.echo()
    finally:
        editor.close()


@app.command()
def add(
    text: str = typer.Argument(..., help="Text of the new node (/check makes a checklist item)"),
    parent: str = typer.Option("root", "--parent", "-p", help="Parent node ID"),
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Add a node as the last child of a parent."""
    editor = _open_editor(data_dir, url, document)
    new_id = editor.add_child(text, parent_id=parent)
    if new_id is None:
        editor.close()
        typer.echo(f"Parent '{parent}' not found.")
        raise typer.Exit(1)
    _finish(editor)
    typer.echo(new_id)


@app.command()
def edit(
    node_id: str = typer.Argument(..., help="Node to edit"),
    text: str = typer.Argument(..., help="New text"),
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Replace a node's text."""
    editor = _open_editor(data_dir, url, document)
    if editor.node(node_id) is None:
        editor.close()
        typer.echo(f"Node '{node_id}' not found.")
        raise typer.Exit(1)
    changed = editor.edit_text(node_id, text)
    _finish(editor)
    typer.echo("Updated." if changed else "Unchanged.")


@app.command()
def delete(
    node_id: str = typer.Argument(..., help="Node to delete, with its subtree"),
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Delete a node and everything below it."""
    editor = _open_editor(data_dir, url, document)
    if not editor.delete(node_id):
        editor.close()
        typer.echo(f"Cannot delete '{node_id}'.")
        raise typer.Exit(1)
    _finish(editor)
    typer.echo("Deleted.")


@app.command()
def move(
    node_id: str = typer.Argument(..., help="Node to move"),
    new_parent: str = typer.Argument(..., help="Destination parent node ID"),
    index: int = typer.Option(-1, "--index", "-i", help="Position among siblings (-1 = last)"),
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Move a node under a new parent."""
    editor = _open_editor(data_dir, url, document)
    if not editor.move(node_id, new_parent, index):
        editor.close()
        typer.echo(f"Cannot move '{node_id}' under '{new_parent}'.")
        raise typer.Exit(1)
    _finish(editor)
    typer.echo("Moved.")


@app.command()
def export(
    fmt: ExportFormat = typer.Option(ExportFormat.JSON, "--format", "-f", help="Output format"),
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to a file instead of stdout"),
    ] = None,
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Export the document as JSON, markdown or tab-indented text."""
    editor = _open_editor(data_dir, url, document)
    try:
        contents = editor.export(fmt)
    finally:
        editor.close()
    if output is None:
        typer.echo(contents, nl=not contents.endswith("\n"))
    else:
        output.write_text(contents, encoding="utf-8")
        logger.info("Exported {} to {}", editor.key, output)


@app.command(name="import")
def import_cmd(
    source: Path = typer.Argument(..., help="File to import", exists=True, dir_okay=False),
    fmt: ExportFormat = typer.Option(ExportFormat.JSON, "--format", "-f", help="Input format"),
    data_dir: DataDirOption = None,
    url: UrlOption = None,
    document: DocumentOption = None,
) -> None:
    """Replace the document with the contents of a JSON or tab-indented text file."""
    editor = _open_editor(data_dir, url, document)
    try:
        editor.import_document(source.read_text(encoding="utf-8"), fmt)
    except DocumentParseError as e:
        editor.close()
        logger.error("Import failed, document left unchanged: {}", e)
        raise typer.Exit(1) from e
    _finish(editor)
    typer.echo(f"Imported {source} into {editor.key}.")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from heartbeat.mcp.server import run_mcp_server

    run_mcp_server()
