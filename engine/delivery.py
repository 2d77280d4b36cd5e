"""Delivery classification: legal vs illegal, and over/ball placement."""

from dataclasses import dataclass

from engine.format_config import BALLS_PER_OVER
from engine.models import Extras


@dataclass(frozen=True)
class DeliveryPlacement:
    is_legal: bool
    over: int
    ball_in_over: int

    @property
    def completes_over(self) -> bool:
        return self.is_legal and self.ball_in_over == BALLS_PER_OVER


def classify_delivery(legal_deliveries: int, extras: Extras) -> DeliveryPlacement:
    """
    Place the next delivery given how many legal balls the innings has seen.

    Wides and no-balls keep the current over index but record ball_in_over 0
    because they do not take up one of the six slots.
    """
    over = legal_deliveries // BALLS_PER_OVER
    if extras.is_illegal:
        return DeliveryPlacement(is_legal=False, over=over, ball_in_over=0)
    return DeliveryPlacement(
        is_legal=True,
        over=over,
        ball_in_over=legal_deliveries % BALLS_PER_OVER + 1,
    )


def format_overs(balls: int) -> str:
    """17 legal balls -> '2.5'."""
    return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"
