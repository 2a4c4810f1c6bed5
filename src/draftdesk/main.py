"""CLI entrypoint for draftdesk."""

import logging
from pathlib import Path

import rich_click as click

from draftdesk import __version__
from draftdesk.controllers import (
    CollectCommand,
    ControllerResult,
    DraftDeskCliController,
    EditDraftCommand,
    GenerateCommand,
    ListDraftsCommand,
    ReviseCommand,
    VerifyUrlCommand,
    VoiceBuildCommand,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = DraftDeskCliController()
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.version_option(version=__version__, prog_name="draftdesk")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Root logger level.",
)
def draftdesk(log_level: str) -> None:
    """Generate and review social post drafts from news, social and on-chain data."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@draftdesk.command("generate")
@click.option(
    "--drafts-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for daily draft files.",
)
@click.option(
    "--input",
    "input_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="JSON file with `news`, `posts` and `metrics` to generate from.",
)
@click.option(
    "--scrape/--no-scrape",
    "scrape_first",
    default=True,
    show_default=True,
    help="Collect fresh source data first (ignores --input).",
)
@click.option("--parallel", is_flag=True, help="Run the source connectors concurrently.")
def generate(
    drafts_dir: Path | None,
    input_path: Path | None,
    scrape_first: bool,
    parallel: bool,
) -> None:
    """Generate today's drafts and save them."""

    _finish(
        CONTROLLER.generate(
            GenerateCommand(
                drafts_dir=drafts_dir,
                input_path=input_path,
                scrape_first=scrape_first and input_path is None,
                parallel=parallel,
            ),
        ),
    )


@draftdesk.command("collect")
@click.option("--parallel", is_flag=True, help="Run the source connectors concurrently.")
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write the collected input as JSON (usable with `generate --input`).",
)
def collect(parallel: bool, output_path: Path | None) -> None:
    """Run the enabled source connectors without generating."""

    _finish(
        CONTROLLER.collect(
            CollectCommand(drafts_dir=None, parallel=parallel, output_path=output_path),
        ),
    )


@draftdesk.group()
def drafts() -> None:
    """Saved draft commands."""


@drafts.command("list")
@click.option(
    "--drafts-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for daily draft files.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=7,
    show_default=True,
    help="How many dates to print.",
)
def drafts_list(drafts_dir: Path | None, limit: int) -> None:
    """List saved batches, newest first."""

    _finish(CONTROLLER.list_drafts(ListDraftsCommand(drafts_dir=drafts_dir, limit=limit)))


@drafts.command("edit")
@click.argument("draft_id")
@click.argument("content")
@click.option(
    "--drafts-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for daily draft files.",
)
def drafts_edit(draft_id: str, content: str, drafts_dir: Path | None) -> None:
    """Replace the text of a saved draft."""

    _finish(
        CONTROLLER.edit_draft(
            EditDraftCommand(drafts_dir=drafts_dir, draft_id=draft_id, content=content),
        ),
    )


@draftdesk.command("revise")
@click.argument("draft_id")
@click.option("--feedback", required=True, help="What to change.")
@click.option(
    "--original",
    "original_content",
    default=None,
    help="Text to revise. Defaults to the saved draft's content.",
)
@click.option("--apply", is_flag=True, help="Store the revised text on the saved draft.")
@click.option(
    "--drafts-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for daily draft files.",
)
def revise(
    draft_id: str,
    feedback: str,
    original_content: str | None,
    apply: bool,
    drafts_dir: Path | None,
) -> None:
    """Rewrite one draft according to feedback."""

    _finish(
        CONTROLLER.revise(
            ReviseCommand(
                drafts_dir=drafts_dir,
                draft_id=draft_id,
                feedback=feedback,
                original_content=original_content,
                apply=apply,
            ),
        ),
    )


@draftdesk.command("verify-url")
@click.argument("url")
def verify_url(url: str) -> None:
    """Check whether a news URL is reachable."""

    _finish(CONTROLLER.verify_url(VerifyUrlCommand(url=url)))


@draftdesk.group()
def voice() -> None:
    """Voice profile commands."""


@voice.command("build")
@click.option("--handle", default=None, help="Account to analyze. Defaults to the voice handle.")
@click.option(
    "--max-posts",
    type=click.IntRange(min=5, max=3200),
    default=200,
    show_default=True,
    help="How many recent original posts to fetch.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=Path("data/voice-profile.json"),
    show_default=True,
    help="Where to write the profile JSON (point DRAFTDESK_VOICE_PROFILE_PATH here).",
)
def voice_build(handle: str | None, max_posts: int, output_path: Path) -> None:
    """Analyze an account's posts and write a voice profile."""

    _finish(
        CONTROLLER.voice_build(
            VoiceBuildCommand(handle=handle, max_posts=max_posts, output_path=output_path),
        ),
    )


def _finish(result: ControllerResult) -> None:
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Command failed.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    draftdesk()
