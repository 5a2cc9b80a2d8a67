import json

import pytest
from pydantic import ValidationError

from engine28.cards import GameMode
from engine28.errors import InvalidBid, RulesError
from engine28.rules_schema import BiddingConfig, RuleSet, ScoringConfig, load_rules
from engine28.scoring import ScoringError, apply_round, score_round, side_points, winners

TEAMS = {"p0": 0, "p1": 1, "p2": 0, "p3": 1}


def test_failed_three_player_contract_pays_each_opponent_in_full():
    config = ScoringConfig()
    result = score_round(
        mode=GameMode.THREE_PLAYER,
        declarer_id="a",
        contract=22,
        contract_round=1,
        is_honors=True,
        card_points={"a": 18, "b": 5, "c": 5},
        config=config,
    )
    assert not result.made
    assert (result.declarer_points, result.opponent_points) == (18, 10)
    assert result.awarded_to == ("b", "c")

    totals = {"a": 0, "b": 0, "c": 0}
    apply_round(totals, None, result)
    assert totals == {"a": 0, "b": config.round1_honors_failed, "c": config.round1_honors_failed}


def test_made_three_player_contract_pays_declarer():
    result = score_round(
        mode=GameMode.THREE_PLAYER,
        declarer_id="a",
        contract=15,
        contract_round=2,
        is_honors=False,
        card_points={"a": 15, "b": 7, "c": 6},
        config=ScoringConfig(),
    )
    assert result.made
    assert result.award == 2
    assert result.awarded_to == ("a",)


def test_four_player_team_scoring():
    points = {"p0": 5, "p1": 10, "p2": 5, "p3": 8}
    assert side_points(mode=GameMode.FOUR_PLAYER, declarer_id="p1", card_points=points, teams=TEAMS) == (18, 10)

    result = score_round(
        mode=GameMode.FOUR_PLAYER,
        declarer_id="p1",
        contract=16,
        contract_round=1,
        is_honors=False,
        card_points=points,
        config=ScoringConfig(),
        teams=TEAMS,
    )
    assert result.made
    team_points = [0, 0]
    apply_round({}, team_points, result, TEAMS)
    assert team_points == [0, 1]

    failed = score_round(
        mode=GameMode.FOUR_PLAYER,
        declarer_id="p1",
        contract=20,
        contract_round=2,
        is_honors=True,
        card_points=points,
        config=ScoringConfig(),
        teams=TEAMS,
    )
    apply_round({}, team_points, failed, TEAMS)
    assert team_points == [6, 1]
    assert winners({}, team_points, 6) == ["team0"]


def test_four_player_scoring_needs_teams():
    with pytest.raises(ScoringError):
        side_points(mode=GameMode.FOUR_PLAYER, declarer_id="p1", card_points={"p1": 28})


def test_award_table():
    config = ScoringConfig()
    assert config.award(1, False, True) == 1
    assert config.award(1, True, False) == 4
    assert config.award(2, True, True) == 3
    with pytest.raises(ValueError):
        config.award(3, False, True)


def test_winners_three_player():
    assert winners({"a": 8, "b": 3, "c": 9}, None, 8) == ["a", "c"]


def test_rules_defaults():
    rules = RuleSet()
    assert rules.bidding.min_bid == 14
    assert rules.bidding.honors_threshold(GameMode.THREE_PLAYER) == 18
    assert rules.bidding.honors_threshold(GameMode.FOUR_PLAYER) == 20
    assert rules.trump.forced_reveal == "trump_led"
    assert rules.scoring.default_target_score == 8
    assert not rules.play.auto_confirm_tricks


def test_rules_validation():
    with pytest.raises(ValidationError):
        BiddingConfig(min_bid=20, max_bid=18)
    with pytest.raises(ValidationError):
        BiddingConfig(honors_threshold_3p=10)
    with pytest.raises(ValidationError):
        RuleSet(scoring=ScoringConfig(round1_made=3, round1_failed=2))
    with pytest.raises(ValidationError):
        RuleSet.model_validate({"trump": {"forced_reveal": "sometimes"}})


def test_load_rules_from_json(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"bidding": {"round2_eligibility": "all"}, "scoring": {"default_target_score": 12}}))
    rules = load_rules(path)
    assert rules.bidding.round2_eligibility == "all"
    assert rules.scoring.default_target_score == 12
    assert rules.trump.forced_reveal == "trump_led"


def test_rules_error_payload():
    error = InvalidBid("Bid 13 must lie between 14 and 28.")
    assert isinstance(error, RulesError)
    assert error.to_dict() == {"code": "invalid_bid", "message": "Bid 13 must lie between 14 and 28."}
