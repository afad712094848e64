"""Prize pool arithmetic.

All amounts are plain floats and are never rounded here. Fee percentages are
not range-checked: a negative fee inflates payouts and a fee above 100 makes
them negative, so callers must constrain their inputs.
"""

from __future__ import annotations

from dataclasses import dataclass


def prize_per_winner(
    total_prize: float, winners_count: int, admin_fee_percent: float
) -> float:
    """Return each winner's share of ``total_prize`` after the admin fee.

    The fee is taken once from the whole pool and the remainder split evenly.
    Returns ``0`` when there are no winners.
    """
    if winners_count == 0:
        return 0
    after_fee = total_prize * (1 - admin_fee_percent / 100)
    return after_fee / winners_count


def round_total_prize(
    entry_fee: float, participants_count: int, previous_accumulated: float
) -> float:
    """Return the gross prize of a round, including carried-over prize.

    No fee is deducted at this stage; see :func:`prize_per_winner`.
    """
    return entry_fee * participants_count + previous_accumulated


def estimated_pool_prize(
    entry_fee: float,
    participant_count: int,
    admin_fee_percent: float = 0,
    initial_prize: float = 0,
) -> float:
    """Estimate the prize of a regular pool.

    ``initial_prize + entry fees - admin fee``, where the admin fee is charged
    only on the collected entry fees, never on ``initial_prize``.
    """
    total_from_fees = entry_fee * participant_count
    admin_fee = total_from_fees * (admin_fee_percent / 100)
    return initial_prize + total_from_fees - admin_fee


def requires_approval(entry_fee: float, is_public: bool) -> bool:
    """Return whether joining a pool needs organizer approval.

    Paid pools always do; free pools only when they are private.
    """
    if entry_fee > 0:
        return True
    return not is_public


def format_brl(value: float) -> str:
    """Format ``value`` as Brazilian Real, e.g. ``R$ 1.234,56``."""
    text = f"{abs(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if value < 0 and text.strip("0,.") else ""
    return f"{sign}R$ {text}"


@dataclass(frozen=True)
class RoundFinancials:
    """Money settings of a single loyalty round.

    Attributes
    ----------
    entry_fee : float
        Fee paid per active ticket.
    participants_count : int
        Number of active participants in the round.
    previous_accumulated : float
        Prize carried over from earlier rounds without winners.
    admin_fee_percent : float
        Share of the pool (0-100) retained before payout.
    """

    entry_fee: float
    participants_count: int
    previous_accumulated: float = 0
    admin_fee_percent: float = 0

    @property
    def total_prize(self) -> float:
        return round_total_prize(
            self.entry_fee, self.participants_count, self.previous_accumulated
        )

    def prize_per_winner(self, winners_count: int) -> float:
        return prize_per_winner(
            self.total_prize, winners_count, self.admin_fee_percent
        )


__all__ = [
    "RoundFinancials",
    "estimated_pool_prize",
    "format_brl",
    "prize_per_winner",
    "requires_approval",
    "round_total_prize",
]
