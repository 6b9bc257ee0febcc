"""Composition feasibility checks and alternative suggestions."""

from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Set

from team_balancer.config.sports import team_size
from team_balancer.domain.models import (
    Composition,
    CompositionSuggestion,
    CompositionValidation,
    Player,
    ValidationIssue,
    active_positions,
)


def eligible_count(players: Sequence[Player], position: str) -> int:
    return sum(1 for player in players if player.can_play(position))


def max_fillable_slots(players: Sequence[Player], demand: Dict[str, int]) -> int:
    """
    Most slots the roster can fill at once when each player takes one slot.

    ``demand`` maps a position to its total slot count across all teams.
    Augmenting-path bipartite matching where a position accepts up to its
    slot count; a flex player counted for several positions is only placed
    once.
    """
    seated: Dict[str, List[Player]] = {position: [] for position in demand}

    def place(player: Player, visited: Set[str]) -> bool:
        for position in player.positions:
            if demand.get(position, 0) <= 0 or position in visited:
                continue
            visited.add(position)
            if len(seated[position]) < demand[position]:
                seated[position].append(player)
                return True
            for index, occupant in enumerate(seated[position]):
                if place(occupant, visited):
                    seated[position][index] = player
                    return True
        return False

    filled = 0
    for player in players:
        if place(player, set()):
            filled += 1
    return filled


def validate_composition(
    composition: Composition,
    team_count: int,
    players: Sequence[Player],
    label: Optional[Callable[[str], str]] = None,
) -> CompositionValidation:
    """
    Check that the roster can field ``team_count`` teams of ``composition``.

    Every violation is collected so the caller sees all problems at once.
    Exact matches (no substitutes) are reported as warnings.
    """
    label = label or (lambda code: code)
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    if team_count < 1:
        errors.append(
            ValidationIssue(message=f"Team count must be at least 1, got {team_count}")
        )

    for code, count in composition.items():
        if count < 0:
            errors.append(
                ValidationIssue(
                    message=f"Count for {label(code)} must not be negative, got {count}",
                    position=code,
                )
            )

    positions = active_positions(composition)
    if not positions:
        errors.append(
            ValidationIssue(message="Composition must require at least one position")
        )

    duplicates = sorted(
        player_id
        for player_id, seen in Counter(p.id for p in players).items()
        if seen > 1
    )
    for player_id in duplicates:
        errors.append(ValidationIssue(message=f"Duplicate player id: {player_id}"))

    teams = max(team_count, 0)
    for position in positions:
        needed = composition[position] * teams
        available = eligible_count(players, position)
        if available < needed:
            errors.append(
                ValidationIssue(
                    message=f"Not enough {label(position)}s: need {needed}, have {available}",
                    position=position,
                    needed=needed,
                    available=available,
                )
            )
        elif available == needed and needed > 0:
            warnings.append(
                ValidationIssue(
                    message=f"Exact match for {label(position)}s - no substitutes available",
                    position=position,
                    needed=needed,
                    available=available,
                )
            )

    per_team = team_size(composition)
    total_needed = per_team * teams
    if len(players) < total_needed:
        errors.append(
            ValidationIssue(
                message=f"Not enough total players: need {total_needed}, have {len(players)}",
                needed=total_needed,
                available=len(players),
            )
        )

    # Per-position counts can all pass while flex players are counted twice
    if not errors:
        demand = {position: composition[position] * teams for position in positions}
        fillable = max_fillable_slots(players, demand)
        if fillable < total_needed:
            errors.append(
                ValidationIssue(
                    message=(
                        f"Players cannot cover every position at once: "
                        f"need {total_needed}, can fill {fillable}"
                    ),
                    needed=total_needed,
                    available=fillable,
                )
            )

    return CompositionValidation(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        total_players_needed=total_needed,
        total_available_players=len(players),
        unused_player_count=max(0, len(players) - total_needed),
        players_per_team=per_team,
    )


def max_team_count(composition: Composition, players: Sequence[Player]) -> int:
    """Most teams the roster can field with every slot filled at once."""
    positions = active_positions(composition)
    if not positions:
        return 0
    by_position = min(
        eligible_count(players, position) // composition[position]
        for position in positions
    )
    teams = min(by_position, len(players) // team_size(composition))
    while teams > 0:
        demand = {position: composition[position] * teams for position in positions}
        if max_fillable_slots(players, demand) == team_size(composition) * teams:
            break
        teams -= 1
    return teams


def suggest_alternative_compositions(
    players: Sequence[Player], candidates: Dict[str, Composition]
) -> List[CompositionSuggestion]:
    """Rank named compositions by how many teams the roster supports."""
    suggestions = [
        CompositionSuggestion(
            name=name,
            composition=dict(composition),
            max_teams=max_team_count(composition, players),
            players_per_team=team_size(composition),
        )
        for name, composition in candidates.items()
    ]
    return sorted(suggestions, key=lambda s: (-s.max_teams, s.name))
