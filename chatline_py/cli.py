"""CLI entry point for chatline."""

from __future__ import annotations

import sys
from pathlib import Path

import anyio
import anyio.to_thread
import click
from click.core import ParameterSource

from chatline_py import __version__
from chatline_py.client import ConversationClient, HistoryLoadError
from chatline_py.config import LOG_LEVELS, ChatConfig
from chatline_py.controller import TurnController, TurnState
from chatline_py.logs import configure_logging
from chatline_py.render import render_page
from chatline_py.transcript import merge_history
from chatline_py.ui import PlainUI, RichUI, get_ui, resolve_ui_mode

EXIT_WORDS = {"/quit", "/exit"}


def _use_cli_value(ctx: click.Context, name: str) -> bool:
    return ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE


def _build_config(ctx: click.Context) -> ChatConfig:
    """Environment defaults first, then options given on the command line."""
    params = ctx.params
    config = ChatConfig.from_env()
    if _use_cli_value(ctx, "url"):
        config.base_url = params["url"]
    if _use_cli_value(ctx, "path"):
        config.chat_path = params["path"]
    if _use_cli_value(ctx, "timeout"):
        config.timeout = params["timeout"]
    if _use_cli_value(ctx, "ui"):
        config.ui_mode = params["ui"]
    if _use_cli_value(ctx, "no_color"):
        config.no_color = params["no_color"]
    if _use_cli_value(ctx, "ascii"):
        config.ascii_only = params["ascii"]
    if _use_cli_value(ctx, "log_level"):
        config.log_level = params["log_level"].upper()
    if _use_cli_value(ctx, "log_file"):
        config.log_file = params["log_file"]
    return config


def _prepare(config: ChatConfig, ui_impl: PlainUI | RichUI, console_logs: bool = True) -> None:
    errors = config.validate()
    if errors:
        for error in errors:
            ui_impl.err(error)
        sys.exit(2)
    configure_logging(
        config.log_level_value,
        config.log_file,
        console=console_logs,
        no_color=config.no_color,
    )


def _client(config: ChatConfig) -> ConversationClient:
    return ConversationClient(config.base_url, config.chat_path, config.timeout)


def connection_options(func):
    """Options shared by every client command."""
    options = [
        click.option("--url", help="Backend base URL (default: $CHAT_URL)"),
        click.option("--path", help="Conversation resource path (default: /chat)"),
        click.option("--timeout", type=float, help="Request timeout in seconds"),
        click.option(
            "--ui",
            type=click.Choice(["auto", "textual", "rich", "plain"]),
            default="auto",
            help="UI mode",
        ),
        click.option("--no-color", is_flag=True, help="Disable colors"),
        click.option("--ascii", is_flag=True, help="Use ASCII characters only"),
        click.option(
            "--log-level",
            type=click.Choice(sorted(LOG_LEVELS), case_sensitive=False),
            help="Log level",
        ),
        click.option(
            "--log-file",
            type=click.Path(dir_okay=False, path_type=Path),
            help="Also write logs to this file",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """chatline - stream a conversation with an agent backend."""
    pass


def _read_line(ui_impl: PlainUI | RichUI) -> str:
    if isinstance(ui_impl, RichUI):
        return ui_impl.prompt()
    return input("you > ")


async def _interactive_session(client: ConversationClient, ui_impl: PlainUI | RichUI) -> None:
    async with client:
        controller = TurnController(client, ui_impl)
        await controller.load_history()
        while True:
            try:
                text = await anyio.to_thread.run_sync(_read_line, ui_impl)
            except EOFError:
                break
            if text.strip() in EXIT_WORDS:
                break
            await controller.submit(text)


@cli.command()
@connection_options
def chat(**_: object) -> None:
    """Open an interactive chat session.

    History is loaded first; each line you enter starts one turn. Type
    /quit to leave the line-oriented modes.
    """
    ctx = click.get_current_context()
    config = _build_config(ctx)
    mode = resolve_ui_mode(config.ui_mode, interactive=True)

    if mode == "textual":
        from chatline_py.ui.textual_ui import run_textual_app

        _prepare(config, PlainUI(no_color=config.no_color), console_logs=False)
        client = _client(config)
        sys.exit(run_textual_app(client, title=f"chatline - {client.url}", on_close=client.aclose))

    ui_impl = get_ui(mode, config.no_color, config.ascii_only)
    _prepare(config, ui_impl)
    try:
        anyio.run(_interactive_session, _client(config), ui_impl)
    except KeyboardInterrupt:
        ui_impl.info("Interrupted")
        sys.exit(130)


@cli.command()
@click.argument("text")
@click.option("--with-history", is_flag=True, help="Show the stored history before the turn")
@connection_options
def send(text: str, with_history: bool, **_: object) -> None:
    """Send TEXT as one user turn and print the reply.

    Exits with status 1 when the reply stream fails.
    """
    ctx = click.get_current_context()
    config = _build_config(ctx)
    ui_impl = get_ui(config.ui_mode, config.no_color, config.ascii_only)
    _prepare(config, ui_impl)

    if not text.strip():
        ui_impl.err("Nothing to send")
        sys.exit(2)

    async def _run_turn() -> TurnState:
        async with _client(config) as client:
            controller = TurnController(client, ui_impl)
            if with_history:
                await controller.load_history()
            await controller.submit(text)
            return controller.state

    state = anyio.run(_run_turn)
    sys.exit(1 if state == TurnState.ERROR else 0)


@cli.command()
@click.option(
    "--html",
    "html_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the transcript as a standalone HTML page",
)
@click.option("--title", default="Conversation", help="Page title for --html")
@connection_options
def history(html_path: Path | None, title: str, **_: object) -> None:
    """Print the merged conversation history."""
    ctx = click.get_current_context()
    config = _build_config(ctx)
    ui_impl = get_ui(config.ui_mode, config.no_color, config.ascii_only)
    _prepare(config, ui_impl)

    async def _fetch():
        async with _client(config) as client:
            return await client.fetch_history()

    try:
        messages = anyio.run(_fetch)
    except HistoryLoadError as exc:
        ui_impl.err(f"Error loading history: {exc}")
        sys.exit(1)

    entries = merge_history(messages)
    if html_path is not None:
        html_path.parent.mkdir(parents=True, exist_ok=True)
        html_path.write_text(render_page(entries, title=title), encoding="utf-8")
        ui_impl.info(f"Wrote {len(entries)} entries to {html_path}")
        return
    ui_impl.reset(entries)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind host")
@click.option("--port", type=int, default=8080, help="Bind port")
@click.option("--delay", type=float, default=0.05, help="Seconds between echoed chunks")
@click.option("--words", type=int, default=1, help="Words per echoed chunk")
def serve(host: str, port: int, delay: float, words: int) -> None:
    """Run the development backend (echoes every message back)."""
    from chatline_py.backend import EchoResponder, start

    configure_logging()
    start(host=host, port=port, responder=EchoResponder(delay=delay, words_per_chunk=words))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
