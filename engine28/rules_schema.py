"""Validation schema for 28 rules configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from .cards import GameMode, TOTAL_POINTS


class BiddingConfig(BaseModel):
    min_bid: int = Field(14, ge=1, le=TOTAL_POINTS, description="Lowest bid that may be placed.")
    max_bid: int = Field(TOTAL_POINTS, ge=1, le=TOTAL_POINTS, description="Highest bid that may be placed.")
    honors_threshold_3p: int = Field(18, description="Bids at or above this are honors bids in 3p.")
    honors_threshold_4p: int = Field(20, description="Bids at or above this are honors bids in 4p.")
    round2_eligibility: Literal["unpassed", "all"] = Field(
        "unpassed",
        description="Who may bid in round 2: players who did not pass in round 1, or everyone.",
    )

    @model_validator(mode="after")
    def check_ranges(self) -> "BiddingConfig":
        if self.min_bid > self.max_bid:
            raise ValueError("min_bid cannot exceed max_bid.")
        for threshold in (self.honors_threshold_3p, self.honors_threshold_4p):
            if not self.min_bid <= threshold <= self.max_bid:
                raise ValueError(f"Honors threshold {threshold} lies outside the bid range.")
        return self

    def honors_threshold(self, mode: GameMode) -> int:
        if mode is GameMode.THREE_PLAYER:
            return self.honors_threshold_3p
        return self.honors_threshold_4p


class TrumpConfig(BaseModel):
    forced_reveal: Literal["last_card", "trump_led"] = Field(
        "trump_led",
        description=(
            "last_card: only the declarer's final folded card forces a reveal. "
            "trump_led: additionally reveal when trump is led and the folded card is the declarer's only trump."
        ),
    )


class ScoringConfig(BaseModel):
    round1_made: int = Field(1, gt=0)
    round1_failed: int = Field(2, gt=0)
    round1_honors_made: int = Field(2, gt=0)
    round1_honors_failed: int = Field(4, gt=0)
    round2_made: int = Field(2, gt=0)
    round2_failed: int = Field(4, gt=0)
    round2_honors_made: int = Field(3, gt=0)
    round2_honors_failed: int = Field(6, gt=0)
    default_target_score: int = Field(8, gt=0, description="Game ends when a player or team reaches this.")

    def award(self, contract_round: int, is_honors: bool, made: bool) -> int:
        if contract_round not in (1, 2):
            raise ValueError(f"Contract round must be 1 or 2, got {contract_round}.")
        key = f"round{contract_round}{'_honors' if is_honors else ''}_{'made' if made else 'failed'}"
        return getattr(self, key)


class PlayConfig(BaseModel):
    auto_confirm_tricks: bool = Field(
        False,
        description="Move completed tricks straight into history instead of awaiting confirmation.",
    )


class RuleSet(BaseModel):
    bidding: BiddingConfig = Field(default_factory=BiddingConfig)
    trump: TrumpConfig = Field(default_factory=TrumpConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    play: PlayConfig = Field(default_factory=PlayConfig)

    @field_validator("scoring")
    @classmethod
    def failures_cost_more(cls, value: ScoringConfig) -> ScoringConfig:
        for prefix in ("round1", "round1_honors", "round2", "round2_honors"):
            made = getattr(value, f"{prefix}_made")
            failed = getattr(value, f"{prefix}_failed")
            if failed < made:
                raise ValueError(f"{prefix}: a failed contract must award at least as much as a made one.")
        return value


def load_rules(path: Union[str, Path]) -> RuleSet:
    """Read a JSON rules file; missing sections fall back to defaults."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return RuleSet.model_validate(payload)
