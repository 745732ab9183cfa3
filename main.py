"""Phoneme Review Runner."""

import asyncio
from pathlib import Path

import typer
from loguru import logger

from phoneme_review.config import ReviewConfig, load_config
from phoneme_review.core.session import ReviewSession
from phoneme_review.exceptions import ReviewError
from phoneme_review.utils.file_operations import FileExportSink, load_document_file, read_audio_file
from phoneme_review.utils.logging import setup_logging
from phoneme_review.views.export import summarize_export
from phoneme_review.views.filtering import filtered_phonemes, filtered_words, total_filtered_count
from phoneme_review.views.formatting import format_time
from phoneme_review.views.samples import load_samples, pick_sample

app: typer.Typer = typer.Typer(
    help="Review phoneme alignments of transcription documents", no_args_is_help=True
)


def _configure(*, config_path: str | None, json_logs: bool) -> ReviewConfig:
    config = load_config(config_path=config_path)
    setup_logging(service="cli", level=config.log_level, json_logs=config.json_logs or json_logs)
    return config


def _print_review(session: ReviewSession, *, phoneme_filter: str | None) -> None:
    session.set_filter(phoneme_filter)
    active_filter = session.focus.phoneme_filter

    typer.echo(f"Text: {session.full_text or '<none>'}")
    ipa = session.ipa_transcription()
    if ipa:
        typer.echo(f"IPA:  {ipa}")
    typer.echo(f"Phoneme family: {session.document.phoneme_family}")
    typer.echo("")

    for word in filtered_words(session.words, active_filter):
        if not word.is_aligned:
            typer.echo(f"{word.surface_text:<20} (unaligned)")
            continue
        phonemes = filtered_phonemes(word.phonemes, active_filter)
        symbols = " ".join(p.symbol for p in phonemes)
        span = f"{format_time(word.start)} - {format_time(word.end)}"
        typer.echo(f"{word.surface_text:<20} {span}  {symbols}")

    typer.echo("")
    typer.echo(f"Unique phonemes: {' '.join(session.unique_phonemes()) or '<none>'}")
    if active_filter:
        count = total_filtered_count(session.words, active_filter)
        typer.echo(f"Filter '{active_filter}': {count} occurrences")

    stats = session.stats()
    typer.echo(
        f"Statistics: total={stats.total} correct={stats.correct} "
        f"incorrect={stats.incorrect} not_evaluated={stats.not_evaluated}"
    )


@app.command()
def review(
    document_path: str = typer.Argument(..., help="Path to a transcription JSON document"),
    phoneme_filter: str = typer.Option(
        None, "--filter", help="Only show words containing this phoneme", show_default=False
    ),
    config_path: str = typer.Option(
        None, help="Path to configuration YAML file", show_default=False
    ),
    export_dir: str = typer.Option(
        None,
        "--export-dir",
        help="Directory to write the evaluation export to",
        show_default=False,
    ),
    samples_path: str = typer.Option(
        None,
        "--samples",
        help="Sample sentence file; reports whether the transcript reads a random sample",
        show_default=False,
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Align a transcription document and print words with their phonemes."""
    try:
        config = _configure(config_path=config_path, json_logs=json_logs)
    except (ReviewError, FileNotFoundError) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1) from e

    session = ReviewSession(config=config)
    if not session.load_document_file(document_path):
        typer.echo(session.document_error, err=True)
        raise typer.Exit(1)

    _print_review(session, phoneme_filter=phoneme_filter)

    if samples_path:
        try:
            sample = pick_sample(load_samples(samples_path))
        except ReviewError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1) from e
        if sample is not None:
            typer.echo(f"Sample: {sample.text} /{sample.ipa}/")
            verdict = "matches" if session.shows_phonemes(sample) else "does not match"
            typer.echo(f"Transcript {verdict} the sample")

    if export_dir:
        written = session.save_export(FileExportSink(output_dir=export_dir))
        if written is None:
            raise typer.Exit(1)
        typer.echo(f"Export written to {written}")


@app.command()
def transcribe(
    audio_path: str = typer.Argument(..., help="Path to an audio file"),
    endpoint: str = typer.Option(
        None, "--endpoint", help="Transcription API endpoint", show_default=False
    ),
    language: str = typer.Option(None, "--language", help="Transcription language"),
    config_path: str = typer.Option(
        None, help="Path to configuration YAML file", show_default=False
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Upload an audio file, wait for its transcription and print the review."""
    try:
        config = _configure(config_path=config_path, json_logs=json_logs)
        audio = read_audio_file(audio_path)
    except (ReviewError, FileNotFoundError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e

    async def _run() -> bool:
        session = ReviewSession(config=config)
        if endpoint:
            session.endpoint = endpoint
        if language:
            session.language = language
        try:
            success = await session.upload_and_transcribe(audio)
            if not success:
                typer.echo(
                    session.upload.error or session.transcription.error or "Transcription failed",
                    err=True,
                )
                return False
            _print_review(session, phoneme_filter=None)
            return True
        finally:
            await session.aclose()

    if not asyncio.run(_run()):
        raise typer.Exit(1)


@app.command()
def summarize(
    export_path: str = typer.Argument(..., help="Path to an exported evaluation file"),
) -> None:
    """Print statistics of an exported evaluation file."""
    setup_logging(service="cli")
    try:
        document = load_document_file(Path(export_path))
    except ReviewError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e

    if not isinstance(document, dict):
        typer.echo("Export file must contain a JSON object", err=True)
        raise typer.Exit(1)

    stats = summarize_export(document)
    logger.debug(f"Summarized {export_path}")
    typer.echo(
        f"{document.get('sourceName', '')}: total={stats.total} correct={stats.correct} "
        f"incorrect={stats.incorrect} not_evaluated={stats.not_evaluated}"
    )


if __name__ == "__main__":
    app()
