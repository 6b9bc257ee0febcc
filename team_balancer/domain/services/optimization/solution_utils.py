"""Candidate solution helpers shared by generators, operators and solvers.

A candidate solution is a list of teams; a team is a list of AssignedPlayer
copies. Every solver works on its own deep clones, so these helpers never
mutate their inputs unless the name says so.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from team_balancer.domain.models import AssignedPlayer, Composition, Player

Team = List[AssignedPlayer]
Solution = List[Team]
PlayersByPosition = Dict[str, List[AssignedPlayer]]
SolutionKey = Tuple[Tuple[Tuple[str, str], ...], ...]


def group_by_position(players: Iterable[Player], rating_lookup) -> PlayersByPosition:
    """
    Bucket players by every position they are eligible for.

    A player eligible for three positions appears in three buckets, each copy
    carrying that position's rating snapshot.
    """
    groups: PlayersByPosition = {}
    for player in players:
        for position in player.positions:
            groups.setdefault(position, []).append(
                AssignedPlayer(player, position, rating_lookup(player, position))
            )
    return groups


def clone_solution(solution: Sequence[Sequence[AssignedPlayer]]) -> Solution:
    return [[member.copy() for member in team] for team in solution]


def solution_key(solution: Sequence[Sequence[AssignedPlayer]]) -> SolutionKey:
    """Order-independent identity of an assignment, used by the tabu list."""
    return tuple(
        sorted(
            tuple(sorted((member.id, member.assigned_position) for member in team))
            for team in solution
        )
    )


def team_total(team: Sequence[AssignedPlayer]) -> float:
    return sum(member.position_rating for member in team)


def assigned_ids(solution: Sequence[Sequence[AssignedPlayer]]) -> Set[str]:
    return {member.id for team in solution for member in team}


def unused_players(players: Sequence[Player], solution: Solution) -> List[Player]:
    """Input players that no team uses, in input order."""
    used = assigned_ids(solution)
    return [player for player in players if player.id not in used]


def position_counts(team: Sequence[AssignedPlayer]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for member in team:
        counts[member.assigned_position] = counts.get(member.assigned_position, 0) + 1
    return counts


def conforms_to_composition(
    solution: Sequence[Sequence[AssignedPlayer]],
    composition: Composition,
    team_count: int,
) -> bool:
    """True when every team fields the composition exactly and no id repeats."""
    if len(solution) != team_count:
        return False

    seen: Set[str] = set()
    required = {code: count for code, count in composition.items() if count > 0}
    for team in solution:
        if position_counts(team) != required:
            return False
        for member in team:
            if member.id in seen:
                return False
            seen.add(member.id)
    return True


def specialist_first_key(member: AssignedPlayer):
    """Sort key: single-position specialists first, then descending rating."""
    return (0 if member.player.is_specialist else 1, -member.position_rating)


def position_priority(
    composition: Composition,
    team_count: int,
    players_by_position: PlayersByPosition,
    fixed_order: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Order in which positions are filled.

    Positions named in ``fixed_order`` come first in that order; the rest
    follow scarcest first (fewest eligible players per required slot).
    """
    required = [code for code, count in composition.items() if count > 0]
    fixed = [code for code in (fixed_order or []) if code in required]

    def scarcity(code: str) -> float:
        needed = composition[code] * team_count
        return len(players_by_position.get(code, [])) / needed

    remaining = sorted(
        (code for code in required if code not in fixed),
        key=lambda code: (scarcity(code), required.index(code)),
    )
    return fixed + remaining


def sort_team_by_position(
    team: Sequence[AssignedPlayer], position_order: Sequence[str]
) -> Team:
    """Canonical display order: position order, unknown positions last, then rating."""
    rank = {code: index for index, code in enumerate(position_order)}
    return sorted(
        team,
        key=lambda member: (
            rank.get(member.assigned_position, len(rank)),
            member.assigned_position,
            -member.position_rating,
        ),
    )
