#!/usr/bin/env python3
"""
Balance a roster into teams from the command line.

Reads a JSON list of players ({"id", "name", "positions", "ratings"}) and
prints the balanced teams with their strength summary.

Usage:
    # Volleyball default composition, 4 teams
    python scripts/balance_teams.py optimize players.json --teams 4

    # Custom composition, reproducible result, JSON output
    python scripts/balance_teams.py optimize players.json --teams 2 \\
        --composition "S=1,OH=2,MB=2" --seed 42 --json

    # List sport presets
    python scripts/balance_teams.py sports
"""

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import typer
from loguru import logger
from pydantic import ValidationError

from team_balancer.config import SPORTS, get_sport_config, load_config
from team_balancer.domain.common import InfeasibleCompositionError, OptimizationFailedError
from team_balancer.domain.models import Player
from team_balancer.domain.services import TeamOptimizerService

app = typer.Typer(
    help="Balance players into teams of equal strength",
    add_completion=False,
)


def parse_composition(text: str) -> Dict[str, int]:
    """Parse "S=1,OH=2" into {"S": 1, "OH": 2}."""
    composition: Dict[str, int] = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise typer.BadParameter(f"Expected POSITION=COUNT, got '{part}'")
        code, count = part.split("=", 1)
        try:
            composition[code.strip().upper()] = int(count)
        except ValueError:
            raise typer.BadParameter(f"Count for {code.strip()} must be an integer")
    if not composition:
        raise typer.BadParameter("Composition is empty")
    return composition


def load_players(path: Path) -> List[Player]:
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("players", [])
    return [Player(**item) for item in data]


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.command("optimize")
def optimize(
    players_file: Path = typer.Argument(..., help="JSON file with the player list"),
    teams: int = typer.Option(2, "--teams", "-t", help="Number of teams"),
    sport: str = typer.Option("volleyball", help="Sport preset for labels and default composition"),
    composition: Optional[str] = typer.Option(
        None, help='Players per position per team, e.g. "S=1,OH=2" (default: sport preset)'
    ),
    seed: Optional[int] = typer.Option(None, help="Random seed for reproducible results"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="JSON configuration file"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show solver progress"),
):
    """Split the roster into balanced teams."""
    configure_logging(verbose)

    try:
        sport_config = get_sport_config(sport)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    try:
        players = load_players(players_file)
    except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
        typer.echo(f"❌ Could not read players: {e}", err=True)
        raise typer.Exit(1)

    balancer_config = load_config(config_path=config_file)
    if seed is not None:
        balancer_config = balancer_config.model_copy(
            update={
                "optimizer": balancer_config.optimizer.model_copy(
                    update={"random_seed": seed}
                )
            }
        )

    target = (
        parse_composition(composition)
        if composition
        else dict(sport_config.default_composition)
    )
    service = TeamOptimizerService(balancer_config, sport=sport_config)

    try:
        result = service.optimize_sync(target, teams, players)
    except InfeasibleCompositionError as e:
        typer.echo("❌ Composition cannot be filled:", err=True)
        for message in e.validation.error_messages:
            typer.echo(f"  - {message}", err=True)
        raise typer.Exit(1)
    except OptimizationFailedError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    table = result.to_dataframe()
    for team_number, team_df in table.groupby("team"):
        total = team_df["rating"].sum()
        typer.echo(f"\nTeam {team_number} (total {total:.0f})")
        typer.echo(team_df.drop(columns=["team"]).to_string(index=False))

    balance = result.balance
    typer.echo(f"\nAlgorithm: {result.algorithm}")
    typer.echo(
        f"Max difference: {balance.max_difference:.0f} "
        f"({balance.quality.value}, balanced={balance.is_balanced})"
    )
    if result.unused_players:
        names = ", ".join(p.name for p in result.unused_players)
        typer.echo(f"Unused players: {names}")
    for warning in result.validation.warning_messages:
        typer.echo(f"⚠️ {warning}")


@app.command("sports")
def sports():
    """List available sport presets."""
    for key, preset in SPORTS.items():
        positions = ", ".join(
            f"{code}={preset.default_composition.get(code, 0)}"
            for code in preset.position_order
        )
        typer.echo(f"{key}: {preset.name} ({positions}; {preset.team_size} per team)")


if __name__ == "__main__":
    app()
