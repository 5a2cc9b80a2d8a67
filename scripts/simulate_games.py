#!/usr/bin/env python3
"""Play random legal games of 28 and report contract outcomes."""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from random import Random
from statistics import mean
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from engine28.cards import GameMode, TOTAL_POINTS
from engine28.errors import InvalidBid
from engine28.game import (
    can_request_reveal,
    confirm_trick,
    deal_initial_cards,
    finalize_trump,
    initialize_game,
    legal_plays,
    play_card,
    process_bid,
    request_trump_reveal,
    select_provisional_trump,
    start_next_round,
)
from engine28.rules_schema import RuleSet, load_rules
from engine28.state import GamePhase, GameState
from engine28.trump import FinalSelection, final_selection_case

log = logging.getLogger("simulate_games")

BIDDING_PHASES = {
    GamePhase.BIDDING1_START,
    GamePhase.BIDDING1_IN_PROGRESS,
    GamePhase.BIDDING2_START,
    GamePhase.BIDDING2_IN_PROGRESS,
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate random 28 games.")
    parser.add_argument("--games", type=int, default=50, help="Number of games to simulate.")
    parser.add_argument("--mode", choices=[mode.value for mode in GameMode], default="4p")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--rules", type=str, default=None, help="Optional JSON rules file.")
    parser.add_argument("--target-score", type=int, default=None)
    parser.add_argument("--max-rounds", type=int, default=100, help="Safety cap on rounds per game.")
    parser.add_argument("--bid-rate", type=float, default=0.35, help="Chance a bidder raises instead of passing.")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def random_bid(state: GameState, rng: Random, bid_rate: float) -> GameState:
    auction = state.auction
    assert auction is not None
    player_id = state.current_player.id
    to_beat = auction.to_beat()
    amount = auction.min_bid if to_beat is None else to_beat + 1
    if amount <= auction.max_bid and rng.random() < bid_rate:
        return process_bid(state, player_id, amount)
    try:
        return process_bid(state, player_id, None)
    except InvalidBid:
        return process_bid(state, player_id, auction.min_bid)


def step(state: GameState, rng: Random, bid_rate: float) -> GameState:
    phase = state.phase
    if phase in BIDDING_PHASES:
        return random_bid(state, rng, bid_rate)
    if phase is GamePhase.BIDDING1_COMPLETE:
        bidder = state.player(state.trump.provisional_bidder_id)
        return select_provisional_trump(state, rng.choice(bidder.hand).id)
    if phase is GamePhase.BIDDING2_COMPLETE:
        if final_selection_case(state) is FinalSelection.MUST_FOLD_NEW:
            declarer = state.declarer()
            assert declarer is not None
            return finalize_trump(state, False, rng.choice(declarer.hand).id)
        return finalize_trump(state, True)
    if phase in (GamePhase.PLAYING_START_TRICK, GamePhase.PLAYING_IN_PROGRESS):
        player_id = state.current_player.id
        if can_request_reveal(state, player_id) and rng.random() < 0.5:
            state = request_trump_reveal(state, player_id)
        return play_card(state, player_id, rng.choice(legal_plays(state, player_id)).id)
    if phase is GamePhase.TRICK_AWAITING_CONFIRMATION:
        return confirm_trick(state)
    raise RuntimeError(f"No move for phase {phase.value}")


def play_round(state: GameState, rng: Random, bid_rate: float) -> GameState:
    state = deal_initial_cards(state, rng=rng)
    while state.phase not in (GamePhase.ROUND_OVER, GamePhase.GAME_OVER):
        state = step(state, rng, bid_rate)
    won = sum(player.card_points() for player in state.players)
    if won != TOTAL_POINTS:
        raise RuntimeError(f"Round {state.round_number} distributed {won} points, expected {TOTAL_POINTS}.")
    return state


def simulate_game(
    names: List[str],
    mode: GameMode,
    rules: RuleSet,
    rng: Random,
    *,
    target_score: Optional[int],
    max_rounds: int,
    bid_rate: float,
) -> GameState:
    state = initialize_game(names, mode, target_score=target_score, rules=rules)
    for _ in range(max_rounds):
        state = play_round(state, rng, bid_rate)
        if state.phase is GamePhase.GAME_OVER:
            break
        state = start_next_round(state)
    return state


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mode = GameMode(args.mode)
    rules = load_rules(args.rules) if args.rules else RuleSet()
    rng = Random(args.seed)
    names = [f"Seat {index}" for index in range(mode.player_count)]

    outcomes: Counter[str] = Counter()
    rounds_per_game: List[int] = []
    for _ in range(args.games):
        final = simulate_game(
            names,
            mode,
            rules,
            rng,
            target_score=args.target_score,
            max_rounds=args.max_rounds,
            bid_rate=args.bid_rate,
        )
        rounds_per_game.append(len(final.round_scores))
        for score in final.round_scores:
            outcomes["made" if score.declarer_won else "failed"] += 1
            outcomes["honors" if score.is_honors else "plain"] += 1
            outcomes[f"round{score.contract_round}"] += 1
        log.info("Game %s finished: %s", final.id, final.game_scores)

    total = outcomes["made"] + outcomes["failed"]
    print(f"Games played: {args.games} ({mode.value})")
    print(f"Rounds scored: {total}, average per game {mean(rounds_per_game) if rounds_per_game else 0.0:.2f}")
    if total:
        print(f"Contracts made: {outcomes['made']} ({outcomes['made'] / total * 100:.1f}%)")
        print(f"Contracts failed: {outcomes['failed']}")
        print(f"Honors contracts: {outcomes['honors']}")
        print(f"Round-2 contracts: {outcomes['round2']}")


if __name__ == "__main__":
    main()
