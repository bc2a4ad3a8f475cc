import argparse
import asyncio
import time
import webbrowser
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt

from curator import rss
from curator.aggregator import assemble_pool, demo_stories, enabled_sources
from curator.config import load_settings
from curator.gemini import ask_proxy
from curator.llm_utils import analysis_prompt, briefing_prompt
from curator.logging_config import configure_logging
from curator.models import Action, Story, View
from curator.profile import build_user_profile
from curator.scoring import score_story
from curator.session import ReaderSession
from curator.sources import DEFAULT_SOURCES, get_source
from curator.storage import (
    STATE_DIR,
    history_repository,
    prefs_repository,
    saves_repository,
)

console = Console()

HELP_TEXT = (
    "[dim]Commands: o N (open), s N (save/unsave), d N (dismiss), a N (analyze), "
    "b (briefing), / TEXT (search), v personalized|latest|saved, r (refresh), q (quit)[/]"
)


def load_session(state_dir: Path = STATE_DIR) -> ReaderSession:
    return ReaderSession(
        history_repository(state_dir),
        saves_repository(state_dir),
        prefs_repository(state_dir),
    )


async def fetch_pool(session: ReaderSession, now: float) -> list[Story]:
    """Fetch enabled sources and assemble the candidate pool."""
    sources = enabled_sources(session.preferences)
    if not sources:
        console.print("[yellow]No sources enabled, showing demo stories.[/]")
        return demo_stories(now)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as progress:
        progress.add_task(f"[cyan]Fetching {len(sources)} feeds...", total=None)
        batches = await rss.fetch_batches(sources)

    failed = [b.source_key for b in batches if not b.ok]
    if failed:
        console.print(f"[dim]Could not fetch: {', '.join(failed)}[/]")
    return assemble_pool(batches, now)


def render_stories(
    session: ReaderSession, stories: list[Story], top: int, now: float
) -> None:
    view = session.preferences.view
    console.print(f"\n[bold green]{view.value.title()} ({len(stories)} stories)[/]\n")
    if not stories:
        console.print("[dim]Nothing to show. Try clearing the search or unmuting topics.[/]")
        return

    profile = build_user_profile(session.history, now)
    for i, story in enumerate(stories[:top], start=1):
        saved_mark = "[magenta]*[/] " if story.id in session.saves else ""
        line = f"[dim]{i:3d}.[/] {saved_mark}[bold]{escape(story.title)}[/bold]"
        if view is View.PERSONALIZED:
            score = score_story(story, profile, now)
            score_color = "green" if score > 1.0 else "yellow" if score > 0.5 else "white"
            line = f"[{score_color}]{score:.2f}[/{score_color}] " + line
        console.print(line)

        published = datetime.fromtimestamp(story.published_at).strftime("%b %d %H:%M")
        console.print(f"     [dim cyan]{escape(story.source)}[/] [dim]{published}[/]")
        if story.excerpt:
            console.print(f"     [dim]{escape(story.excerpt)}[/]")
        if story.topics:
            console.print(f"     [dim italic]{escape(', '.join(story.topics[:3]))}[/]")
    console.print("")


def _pick(stories: list[Story], arg: str) -> Optional[Story]:
    try:
        idx = int(arg) - 1
    except ValueError:
        return None
    if 0 <= idx < len(stories):
        return stories[idx]
    return None


async def run_reader(session: ReaderSession, args: argparse.Namespace) -> None:
    settings = load_settings()
    search_text = args.search or ""
    now = time.time()
    pool = await fetch_pool(session, now)

    while True:
        now = time.time()
        shown = session.ranked(pool, search_text, now)
        render_stories(session, shown, args.top, now)
        if args.once:
            return

        console.print(HELP_TEXT)
        raw = Prompt.ask("[bold]>[/]", default="q", console=console).strip()
        cmd, _, arg = raw.partition(" ")
        arg = arg.strip()

        if cmd == "q":
            return
        if cmd == "r":
            pool = await fetch_pool(session, time.time())
        elif cmd == "/":
            search_text = arg
        elif cmd == "v":
            try:
                session.set_view(View(arg))
            except ValueError:
                console.print(f"[red]Unknown view: {escape(arg)}[/]")
        elif cmd == "b":
            with console.status("Generating briefing..."):
                text = await ask_proxy(briefing_prompt(shown), settings.proxy_url)
            console.print(f"\n[bold magenta]Briefing[/]\n{escape(text)}\n")
        elif cmd in ("o", "s", "d", "a"):
            story = _pick(shown, arg)
            if story is None:
                console.print(f"[red]No story numbered {escape(repr(arg))}[/]")
                continue
            if cmd == "o":
                session.record(story, Action.OPEN)
                webbrowser.open(story.url)
            elif cmd == "s":
                session.record(story, Action.SAVE)
            elif cmd == "d":
                session.record(story, Action.DISMISS)
            else:
                with console.status("Analyzing..."):
                    text = await ask_proxy(analysis_prompt(story), settings.proxy_url)
                console.print(f"\n[bold magenta]Why it matters[/]\n{escape(text)}\n")
        else:
            console.print(f"[red]Unknown command: {escape(cmd)}[/]")


def show_sources(session: ReaderSession) -> None:
    for source in DEFAULT_SOURCES:
        on = session.preferences.sources_enabled.get(source.key, False)
        mark = "[green]on [/]" if on else "[red]off[/]"
        console.print(f"{mark} {source.key:12s} {source.label}")


async def main(args: argparse.Namespace) -> None:
    session = load_session(Path(args.state_dir))

    if args.command == "sources":
        for key, enabled in [(k, True) for k in args.enable] + [(k, False) for k in args.disable]:
            if get_source(key) is None:
                console.print(f"[red]Unknown source: {escape(key)}[/]")
                continue
            session.set_source_enabled(key, enabled)
        show_sources(session)
    elif args.command == "mute":
        if session.mute_topic(args.topic):
            console.print(f"Muted [bold]{escape(args.topic)}[/]")
        else:
            console.print(f"[yellow]Nothing to mute for {escape(repr(args.topic))}[/]")
    elif args.command == "unmute":
        if session.unmute_topic(args.topic):
            console.print(f"Unmuted [bold]{escape(args.topic)}[/]")
        else:
            console.print(f"[yellow]{escape(repr(args.topic))} was not muted[/]")
    elif args.command == "clear":
        session.clear()
        console.print("[green]History and saved stories cleared.[/]")
    else:
        if args.view:
            session.set_view(View(args.view))
        await run_reader(session, args)


def _add_read_options(p: argparse.ArgumentParser, suppress_defaults: bool = False) -> None:
    def default(value):
        return argparse.SUPPRESS if suppress_defaults else value

    p.add_argument("--top", type=int, default=default(15), help="Stories to show (default: 15)")
    p.add_argument("--search", default=default(""), help="Only show titles/sources containing TEXT")
    p.add_argument(
        "--view", choices=[v.value for v in View], default=default(None), help="Switch view first"
    )
    p.add_argument(
        "--once", action="store_true", default=default(False), help="Print once and exit"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personalized news reader")
    parser.add_argument(
        "--state-dir",
        default=str(STATE_DIR),
        help=f"Directory for history, saves and preferences (default: {STATE_DIR})",
    )
    sub = parser.add_subparsers(dest="command")

    read = sub.add_parser("read", help="Fetch, rank and browse stories (default)")
    _add_read_options(parser)
    # Subcommand copies carry no defaults, so "--top 5 read" keeps the 5
    _add_read_options(read, suppress_defaults=True)

    sources = sub.add_parser("sources", help="List or toggle feed sources")
    sources.add_argument("--enable", action="append", default=[], metavar="KEY")
    sources.add_argument("--disable", action="append", default=[], metavar="KEY")

    mute = sub.add_parser("mute", help="Hide stories with a topic")
    mute.add_argument("topic")
    unmute = sub.add_parser("unmute", help="Stop hiding a topic")
    unmute.add_argument("topic")

    sub.add_parser("clear", help="Forget reading history and saved stories")
    sub.add_parser("serve", help="Run the AI proxy API")
    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()
    configure_logging(load_settings().log_level)

    if args.command == "serve":
        from curator.main import run

        run()
    else:
        asyncio.run(main(args))
