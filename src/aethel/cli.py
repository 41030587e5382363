from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .catalog import load_catalog
from .constants import DEFAULT_AUTOSAVE_PATH, DEFAULT_SAVE_PATH
from .engine import apply_action, new_game, to_debug_dict
from .errors import GameError
from .io import load_state, restore_session, save_state
from .messages import render_event
from .models import GameSession
from .view import build_view_model, help_lines

app = typer.Typer(add_completion=False)
console = Console()
logger = logging.getLogger(__name__)

DEFAULT_SAVE = Path(DEFAULT_SAVE_PATH)


@app.callback()
def main_options(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _render_location(vm: dict) -> None:
    t = vm["time"]
    loc = vm["location"]
    rprint(f"\n[bold]{escape(loc['name'])}[/bold]  (day {t['day']}, {t['hour']:02d}:00{', night' if t['night'] else ''})")
    rprint(escape(loc["description"]))
    if loc["npcs"]:
        rprint(f"[dim]You see:[/dim] {escape(', '.join(loc['npcs']))}")
    if loc["shop"]:
        table = Table(title="For sale", show_header=True, header_style="bold")
        table.add_column("Item")
        table.add_column("Price")
        table.add_column("Stock")
        for entry in loc["shop"]:
            table.add_row(entry["name"], str(entry["price"]), f"{entry['stock']}/{entry['max']}")
        rprint(table)

    p = vm["player"]
    rprint(
        f"[dim]HP {p['health']}/{p['max_health']}  MP {p['mana']}  "
        f"Lvl {p['level']} ({p['experience']}/{p['xp_to_next_level']} xp)  Gold {p['gold']}[/dim]"
    )


def _render_combat(vm: dict) -> None:
    c = vm["combat"]
    p = vm["player"]
    rprint(
        f"[bold red]{escape(c['enemy'])}[/bold red] {c['health']}/{c['max_health']} HP   "
        f"[bold]You[/bold] {p['health']}/{p['max_health']} HP, {p['mana']} MP"
    )
    if p["effects"]:
        rprint("[dim]Effects:[/dim] " + ", ".join(f"{e['name']} ({e['turns']})" for e in p["effects"]))
    rprint("[dim]" + escape(" | ".join(c["commands"])) + "[/dim]")


def _render_stats(session: GameSession) -> None:
    vm = build_view_model(session)
    p = vm["player"]
    rprint(f"[bold]{escape(p['name'])}[/bold], level {p['level']} {p['race']} {p['class']}")
    if p["form"]:
        rprint(f"[dim]Transformed:[/dim] {p['form']}")
    table = Table(title="Stats", show_header=True, header_style="bold")
    table.add_column("Stat")
    table.add_column("Base")
    table.add_column("Effective")
    table.add_row("health", str(p["health"]), f"{p['health']}/{p['max_health']}")
    table.add_row("mana", str(p["mana"]), str(p["mana"]))
    for row in vm["stats"]:
        table.add_row(row["stat"], str(row["base"]), str(row["effective"]))
    rprint(table)
    rprint(f"Gold: {p['gold']}   Spells: {', '.join(vm['spells']) or 'none'}")


def _render_inventory(session: GameSession) -> None:
    vm = build_view_model(session)
    if not vm["inventory"]:
        rprint("Your inventory is empty.")
        return
    table = Table(title="Inventory", show_header=True, header_style="bold")
    table.add_column("Item")
    table.add_column("Type")
    table.add_column("Durability")
    table.add_column("Bonuses")
    for it in vm["inventory"]:
        table.add_row(it["name"], it["type"], it["durability"], it["stats"])
    rprint(table)
    rprint(f"Gold: {vm['player']['gold']}")


def _render_equipment(session: GameSession) -> None:
    vm = build_view_model(session)
    table = Table(title="Equipment", show_header=True, header_style="bold")
    table.add_column("Slot")
    table.add_column("Item")
    table.add_column("Durability")
    table.add_column("Bonuses")
    for row in vm["equipment"]:
        table.add_row(row["slot"], row["name"] or "-", row.get("durability", ""), row.get("stats", ""))
    rprint(table)


def _render_help(session: GameSession) -> None:
    for line in help_lines(session):
        rprint(escape(line))


_TABLE_EVENTS = {
    "show.stats": _render_stats,
    "show.inventory": _render_inventory,
    "show.equipment": _render_equipment,
    "show.help": _render_help,
}


def _render_events(session: GameSession, events: list) -> None:
    for event in events:
        renderer = _TABLE_EVENTS.get(event["event_id"])
        if renderer is not None:
            renderer(session)
            continue
        text = render_event(event)
        if text:
            rprint(escape(text))


def _load_or_new(path: Path, seed: Optional[int] = None) -> GameSession:
    catalog = load_catalog()
    session = new_game(catalog=catalog, seed=seed, save_path=str(path))
    if path.exists():
        try:
            restore_session(session, load_state(path, catalog))
        except GameError as e:
            logger.warning(e.message)
    session.outbox = []
    return session


@app.command()
def play(
    save: Path = typer.Option(DEFAULT_SAVE, help="Save file used by 'save' and 'load'"),
    autosave: Path = typer.Option(Path(DEFAULT_AUTOSAVE_PATH), help="File written after every trip"),
    seed: Optional[int] = typer.Option(None, help="Seed for a reproducible game"),
    name: str = typer.Option("Traveler", help="Character name"),
    race: str = typer.Option("human", help="Character race"),
    character_class: str = typer.Option("warrior", "--class", help="Character class"),
    resume: bool = typer.Option(False, "--continue", help="Resume from the save file"),
):
    """Play interactively."""
    catalog = load_catalog()
    try:
        session = new_game(
            catalog=catalog,
            seed=seed,
            name=name,
            race=race,
            character_class=character_class,
            save_path=str(save),
            autosave_path=str(autosave),
        )
    except GameError as e:
        rprint(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(code=1)

    if resume:
        try:
            restore_session(session, load_state(save, catalog))
        except GameError as e:
            logger.warning(e.message)

    _render_events(session, session.outbox)
    session.outbox = []
    _render_location(build_view_model(session))

    while session.status == "playing":
        try:
            raw = console.input("[bold]> [/bold]")
        except (EOFError, KeyboardInterrupt):
            break
        result = apply_action(session, raw)
        _render_events(session, result.events)
        if result.show_location:
            _render_location(build_view_model(session))
        elif session.in_combat:
            _render_combat(build_view_model(session))


@app.command()
def status(save: Path = DEFAULT_SAVE):
    """Show the saved game's location and character."""
    session = _load_or_new(save)
    _render_location(build_view_model(session))
    _render_stats(session)


@app.command()
def act(command: str, save: Path = DEFAULT_SAVE, seed: int = 1):
    """Apply one command to the saved game and save it again."""
    session = _load_or_new(save, seed=seed)
    result = apply_action(session, command)
    _render_events(session, result.events)
    if session.status == "playing" and not session.in_combat:
        try:
            save_state(session, save)
        except GameError as e:
            logger.warning(e.message)
    if result.show_location:
        _render_location(build_view_model(session))


@app.command()
def dump(save: Path = DEFAULT_SAVE):
    """Print the saved game as JSON."""
    session = _load_or_new(save)
    print(json.dumps(to_debug_dict(session), indent=2, sort_keys=True))


def main():
    app()


if __name__ == "__main__":
    main()
