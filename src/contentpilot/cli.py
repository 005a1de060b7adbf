"""CLI entrypoints for ContentPilot."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import typer

from contentpilot.actions.parser import parse_response
from contentpilot.actions.policy import describe_for_client
from contentpilot.config import load_settings
from contentpilot.llm.client import ChatMessage
from contentpilot.logging import configure_logging, get_logger
from contentpilot.orchestrator.runner import run_turn
from contentpilot.streaming.remote import RemoteChatClient

app = typer.Typer(add_completion=False, help="ContentPilot chat-driven content editing CLI")
logger = get_logger(__name__)


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        raise typer.BadParameter(f"No such file: {source}")
    return path.read_text(encoding="utf-8")


@app.command()
def parse(
    source: str = typer.Argument("-", help="File holding a model response, or '-' for stdin."),
    actions_only: bool = typer.Option(False, "--actions-only", help="Print only the actions JSON"),
) -> None:
    """Extract actions and display text from a saved model response."""

    settings = load_settings()
    configure_logging(settings.log_level)

    parsed = parse_response(_read_text(source), max_actions=settings.max_actions_per_response)
    actions = [describe_for_client(a) for a in parsed.actions]
    if not actions_only:
        typer.echo(parsed.display_text)
        typer.echo("")
    typer.echo(json.dumps(actions, indent=2, ensure_ascii=False))


@app.command()
def chat(
    message: str = typer.Argument(..., help="What you want done to the content."),
    system_file: Path | None = typer.Option(
        None,
        "--system-file",
        help="Path to a UTF-8 text file holding the system prompt.",
    ),
    server: str | None = typer.Option(
        None,
        "--server",
        help="Stream from a running ContentPilot server (e.g. http://localhost:8000) instead of the model.",
    ),
) -> None:
    """Stream one model reply; print its display text and the actions it proposes."""

    settings = load_settings()
    configure_logging(settings.log_level)

    messages: list[ChatMessage] = []
    if system_file is not None:
        system = system_file.read_text(encoding="utf-8").strip()
        if not system:
            raise typer.BadParameter("The system prompt file is empty.")
        messages.append(ChatMessage(role="system", content=system))
    messages.append(ChatMessage(role="user", content=message))

    remote: RemoteChatClient | None = None
    if server is not None:
        remote = RemoteChatClient(
            server,
            timeout_s=settings.openai_timeout_s,
            done_marker=settings.stream_done_marker,
        )

    logger.info("CLI chat requested", extra={"server": server})
    try:
        turn = asyncio.run(run_turn(messages, settings=settings, llm=remote))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(turn.state.display_text)
    typer.echo("")

    stream = turn.state.stream
    if stream is not None and stream.error:
        typer.echo(f"Response incomplete: {stream.error}", err=True)

    actions = [describe_for_client(a) for a in turn.state.actions]
    typer.echo(json.dumps(actions, indent=2, ensure_ascii=False))
    typer.echo(f"turn: {turn.turn_id}", err=True)
    if remote is not None and remote.turn_id:
        typer.echo(f"remote turn: {remote.turn_id}", err=True)


if __name__ == "__main__":
    app()
