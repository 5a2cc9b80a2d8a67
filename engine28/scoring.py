"""Round and game scoring for 28."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .cards import GameMode
from .rules_schema import ScoringConfig

log = logging.getLogger(__name__)


class ScoringError(ValueError):
    """Base class for scoring issues."""


@dataclass(frozen=True)
class RoundResult:
    declarer_points: int
    opponent_points: int
    made: bool
    award: int
    awarded_to: Tuple[str, ...]


def side_points(
    *,
    mode: GameMode,
    declarer_id: str,
    card_points: Mapping[str, int],
    teams: Optional[Mapping[str, int]] = None,
) -> Tuple[int, int]:
    """Split card points into (declarer side, opponents)."""
    if declarer_id not in card_points:
        raise ScoringError(f"Declarer {declarer_id!r} has no card tally.")
    if mode is GameMode.THREE_PLAYER:
        declarer = card_points[declarer_id]
        return declarer, sum(card_points.values()) - declarer
    if teams is None:
        raise ScoringError("Team assignments are required in 4p scoring.")
    declarer_team = teams[declarer_id]
    declarer = sum(points for player, points in card_points.items() if teams[player] == declarer_team)
    return declarer, sum(card_points.values()) - declarer


def score_round(
    *,
    mode: GameMode,
    declarer_id: str,
    contract: int,
    contract_round: int,
    is_honors: bool,
    card_points: Mapping[str, int],
    config: ScoringConfig,
    teams: Optional[Mapping[str, int]] = None,
) -> RoundResult:
    """Decide made/failed and who collects the game points.

    In 3p a failed contract pays the full award to *each* opponent.
    """
    declarer, opponents = side_points(mode=mode, declarer_id=declarer_id, card_points=card_points, teams=teams)
    made = declarer >= contract
    award = config.award(contract_round, is_honors, made)

    if mode is GameMode.THREE_PLAYER:
        if made:
            recipients: List[str] = [declarer_id]
        else:
            recipients = [player for player in card_points if player != declarer_id]
    else:
        assert teams is not None
        declarer_team = teams[declarer_id]
        winning_team = declarer_team if made else 1 - declarer_team
        recipients = [player for player in card_points if teams[player] == winning_team]

    log.info(
        "Contract %d (round %d%s) %s: declarer side %d, opponents %d, %d game points",
        contract,
        contract_round,
        ", honors" if is_honors else "",
        "made" if made else "failed",
        declarer,
        opponents,
        award,
    )
    return RoundResult(
        declarer_points=declarer,
        opponent_points=opponents,
        made=made,
        award=award,
        awarded_to=tuple(recipients),
    )


def apply_round(
    player_points: Dict[str, int],
    team_points: Optional[List[int]],
    result: RoundResult,
    teams: Optional[Mapping[str, int]] = None,
) -> None:
    """Credit the award to cumulative scores in place."""
    if team_points is None:
        for player in result.awarded_to:
            player_points[player] += result.award
        return
    assert teams is not None
    awarded_teams = {teams[player] for player in result.awarded_to}
    if len(awarded_teams) != 1:
        raise ScoringError("A 4p award must go to exactly one team.")
    team_points[awarded_teams.pop()] += result.award


def winners(player_points: Mapping[str, int], team_points: Optional[Sequence[int]], target: int) -> List[str]:
    """Players (3p) or team labels (4p) whose total reached ``target``."""
    if team_points is not None:
        return [f"team{index}" for index, points in enumerate(team_points) if points >= target]
    return [player for player, points in player_points.items() if points >= target]
