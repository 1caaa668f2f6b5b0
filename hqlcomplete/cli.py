"""hql-complete CLI - query the completion engine from a shell.

Commands:
    hql-complete complete <text>        Ranked candidates for text at cursor
    hql-complete files <query>          File index search results
    hql-complete apply <text> <label>   Apply one candidate and show the edit
    hql-complete repl                   Prompt with engine-backed completion
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from hqlcomplete.completion.complete import EngineCompleter
from hqlcomplete.completion.index import search_files
from hqlcomplete.completion.providers import build_default_registry
from hqlcomplete.completion.render import DROPDOWN_STYLE
from hqlcomplete.completion.session import CompletionSession
from hqlcomplete.completion.state import SelectIndex
from hqlcomplete.completion.types import TYPE_LABELS, CompletionAction, ProviderId, SideEffectType
from hqlcomplete.config import CompletionConfig, load_config
from hqlcomplete.exceptions import ConfigError
from hqlcomplete.logs import disable_debug, enable_debug

app = typer.Typer(
    name="hql-complete",
    help="Completion engine for a line-oriented code REPL",
    no_args_is_help=True,
)

console = Console()

RootOption = Annotated[
    Optional[Path],
    typer.Option("--root", "-r", help="Project root to index (default: cwd)"),
]
CursorOption = Annotated[
    Optional[int],
    typer.Option("--cursor", "-c", help="Cursor offset (default: end of text)"),
]
DebugOption = Annotated[
    bool,
    typer.Option("--debug", help="Write engine logs to .hqlcomplete/debug.log"),
]


def _load(root: Path | None) -> CompletionConfig:
    try:
        return load_config(root or Path.cwd())
    except ConfigError as e:
        raise typer.BadParameter(str(e))


def _session(root: Path | None, bindings: list[str] | None = None) -> CompletionSession:
    config = _load(root)
    registry = build_default_registry(config, root=root)
    return CompletionSession(
        registry,
        visible_count=config.max_visible_items,
        user_bindings=bindings or [],
    )


def _cursor(text: str, cursor: int | None) -> int:
    if cursor is None:
        return len(text)
    if not 0 <= cursor <= len(text):
        raise typer.BadParameter(f"cursor {cursor} is outside 0..{len(text)}")
    return cursor


@app.command("complete")
def complete(
    text: Annotated[str, typer.Argument(help="Input buffer")],
    cursor: CursorOption = None,
    root: RootOption = None,
    binding: Annotated[
        Optional[list[str]],
        typer.Option("--binding", "-b", help="User binding name (repeatable)"),
    ] = None,
    dropdown: Annotated[
        bool,
        typer.Option("--dropdown", help="Print the dropdown as the REPL paints it"),
    ] = False,
    debug: DebugOption = False,
):
    """Show ranked completions for TEXT.

    Examples:
        hql-complete complete "(ma"
        hql-complete complete "@src/fi" --root ~/project
        hql-complete complete "/cl" --dropdown
    """
    handler = enable_debug() if debug else None
    try:
        session = _session(root, binding)
        state = asyncio.run(session.trigger(text, _cursor(text, cursor), force=True))
    finally:
        disable_debug(handler)

    if not state.is_open:
        console.print("[dim]no completions[/dim]")
        return

    if dropdown:
        typer.echo("".join(chunk for _, chunk in session.render()))
        return

    provider = state.provider_id.value if state.provider_id else "-"
    table = Table(show_header=True, header_style="bold", title=f"{provider} @ {state.anchor_position}")
    table.add_column("LABEL")
    table.add_column("TYPE")
    table.add_column("SCORE", justify="right")
    table.add_column("DESCRIPTION")
    for item in state.items:
        table.add_row(item.label, TYPE_LABELS[item.type], f"{item.score:g}", item.description or "")
    console.print(table)


@app.command("files")
def files(
    query: Annotated[str, typer.Argument(help="File query (fuzzy, or absolute path)")] = "",
    root: RootOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Maximum results"),
    ] = None,
    refresh: Annotated[
        bool,
        typer.Option("--refresh", help="Rebuild the file index before searching"),
    ] = False,
    debug: DebugOption = False,
):
    """Search the file index the @-mention provider uses."""
    handler = enable_debug() if debug else None
    try:
        config = _load(root)
        provider = build_default_registry(config, root=root).get(ProviderId.FILE)
        if refresh:
            provider.indexer.get(force_refresh=True)
        matches = search_files(query, provider.indexer, limit or config.file_max_results)
    finally:
        disable_debug(handler)

    if not matches:
        console.print("[dim]no matches[/dim]")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("PATH")
    table.add_column("KIND")
    table.add_column("SCORE", justify="right")
    for m in matches:
        table.add_row(m.path, "dir" if m.is_directory else "file", f"{m.score:g}")
    console.print(table)


@app.command("apply")
def apply(
    text: Annotated[str, typer.Argument(help="Input buffer")],
    label: Annotated[str, typer.Argument(help="Label of the candidate to apply")],
    cursor: CursorOption = None,
    action: Annotated[
        str,
        typer.Option("--action", "-a", help="SELECT, DRILL or INSERT"),
    ] = "SELECT",
    root: RootOption = None,
    binding: Annotated[
        Optional[list[str]],
        typer.Option("--binding", "-b", help="User binding name (repeatable)"),
    ] = None,
):
    """Apply the candidate LABEL to TEXT and print the resulting edit."""
    try:
        chosen = CompletionAction(action.upper())
    except ValueError:
        raise typer.BadParameter(f"unknown action {action!r}; use SELECT, DRILL or INSERT")

    session = _session(root, binding)
    state = asyncio.run(session.trigger(text, _cursor(text, cursor), force=True))
    index = next((i for i, item in enumerate(state.items) if item.label == label), None)
    if index is None:
        typer.echo(f"Error: no completion labelled {label!r}", err=True)
        raise typer.Exit(1)
    item = state.items[index]
    if not item.supports(chosen):
        supported = ", ".join(sorted(a.value for a in item.available_actions))
        typer.echo(f"Error: {label!r} supports {supported}", err=True)
        raise typer.Exit(1)

    session.dispatch(SelectIndex(index))
    result = session.apply_selected(chosen)
    typer.echo(f"text:   {result.text!r}")
    typer.echo(f"cursor: {result.cursor_position}")
    effect = result.side_effect
    if effect.type != SideEffectType.NONE:
        detail = effect.path or " ".join(effect.params)
        typer.echo(f"effect: {effect.type.value} {detail}".rstrip())
    mime = item.metadata.get("mime_type")
    if mime:
        typer.echo(f"mime:   {mime}")


@app.command("repl")
def repl(
    root: RootOption = None,
    debug: DebugOption = False,
):
    """Echo prompt with engine-backed completion, for trying providers by hand."""
    from prompt_toolkit import PromptSession

    handler = enable_debug() if debug else None
    try:
        session = _session(root)
        prompt = PromptSession(
            completer=EngineCompleter(session),
            complete_while_typing=True,
            style=DROPDOWN_STYLE,
        )
        while True:
            try:
                line = prompt.prompt("hql> ")
            except KeyboardInterrupt:
                continue
            except EOFError:
                break
            typer.echo(line)
    finally:
        disable_debug(handler)


def main():
    app()


if __name__ == "__main__":
    main()
