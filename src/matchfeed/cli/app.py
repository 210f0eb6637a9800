from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
import uvicorn

from matchfeed.api.app import create_app
from matchfeed.config import get_settings
from matchfeed.core.runtime import get_service
from matchfeed.db.init import init_database
from matchfeed.logging_config import configure_logging

app = typer.Typer(help="Matchfeed CLI")
resume_app = typer.Typer(help="Manage the stored resume")
jobs_app = typer.Typer(help="Job feed commands")

app.add_typer(resume_app, name="resume")
app.add_typer(jobs_app, name="jobs")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Create tables and the demo user."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve(
    host: str = typer.Option("", "--host"),
    port: int = typer.Option(0, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(), host=host or settings.app_host, port=port or settings.app_port)


@app.command("seed")
def seed(term: str = typer.Option("", "--term")) -> None:
    """Reset jobs and applications and pull fresh listings."""
    configure_logging()
    ensure_initialized()
    search_term = term or get_settings().seed_search_term
    inserted = asyncio.run(get_service().reseed(search_term))
    typer.echo(json.dumps({"term": search_term, "inserted": inserted}, indent=2))


@resume_app.command("set")
def resume_set(file: Path = typer.Option(..., "--file", exists=True, readable=True)) -> None:
    configure_logging()
    ensure_initialized()
    text = file.read_text(encoding="utf-8").strip()
    if not text:
        typer.echo("Resume file is empty", err=True)
        raise typer.Exit(code=1)

    version = asyncio.run(get_service().upload_resume(text))
    typer.echo(json.dumps({"resume_version": version}, indent=2))


@jobs_app.command("ranked")
def jobs_ranked(limit: int = typer.Option(10, "--limit", min=1)) -> None:
    configure_logging()
    ensure_initialized()
    ranked = asyncio.run(get_service().get_ranked_jobs())
    rows = [
        {
            "id": job.id,
            "title": job.title,
            "company": job.company,
            "score": job.match_score,
            "reason": job.match_reason,
        }
        for job in ranked.jobs[:limit]
    ]
    typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))


@app.command("chat")
def chat(message: str = typer.Argument(...)) -> None:
    configure_logging()
    ensure_initialized()
    reply = asyncio.run(get_service().handle_chat(message))
    typer.echo(reply.model_dump_json(indent=2, exclude_none=True))


if __name__ == "__main__":
    app()
