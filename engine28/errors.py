"""Error taxonomy shared by every rules module."""

from __future__ import annotations


class RulesError(ValueError):
    """Base class for rejected actions. The prior state is left untouched."""

    code = "rules_error"

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": str(self)}


class WrongTurn(RulesError):
    """Raised when a player acts out of turn."""

    code = "wrong_turn"


class WrongPhase(RulesError):
    """Raised when an action is not permitted in the current phase."""

    code = "wrong_phase"


class CardNotInHand(RulesError):
    """Raised when the referenced card is not held by the acting player."""

    code = "card_not_in_hand"


class IllegalPlay(RulesError):
    """Raised when a card play breaks the follow-suit or trump rules."""

    code = "illegal_play"


class InvalidBid(RulesError):
    """Raised when a bid is out of range, too low, or a pass is not allowed."""

    code = "invalid_bid"


class MissingTrumpSelection(RulesError):
    """Raised when a fold is mandatory but no card id was supplied."""

    code = "missing_trump_selection"


class InvalidTrumpSelection(RulesError):
    """Raised when the declarer tries a trump choice the situation forbids."""

    code = "invalid_trump_selection"


class InvalidRevealRequest(RulesError):
    """Raised when a trump reveal is requested without its preconditions."""

    code = "invalid_reveal_request"


class InconsistentTrumpState(RuntimeError):
    """Raised when an internal invariant breaks. Indicates a programming error."""

    code = "inconsistent_trump_state"
