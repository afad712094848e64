"""Display text for settled loyalty rounds."""

from __future__ import annotations

from typing import Optional

from .rounds import AccumulationReason, WinnerOutcome

ACCUMULATED_MESSAGE = "Prêmio acumulado!"

_REASON_MESSAGES = {
    AccumulationReason.TEAM_LOST: "{club_name} perdeu - Prêmio acumulado!",
    AccumulationReason.DRAW_NOT_ALLOWED: "Empate - Prêmio acumulado!",
    AccumulationReason.NO_WINNERS: "Ninguém acertou - Prêmio acumulado!",
}


def _accumulation_message(reason: Optional[AccumulationReason], club_name: str) -> str:
    if not isinstance(reason, AccumulationReason):
        return ACCUMULATED_MESSAGE
    template = _REASON_MESSAGES.get(reason)
    if template is None:
        return ACCUMULATED_MESSAGE
    return template.format(club_name=club_name)


def describe_outcome(outcome: WinnerOutcome, club_name: str) -> str:
    """Return the status line shown for ``outcome``.

    Unknown reasons fall back to a generic accumulation message; this never
    raises.
    """
    if not outcome.should_accumulate:
        count = outcome.winners_count
        if count == 1:
            return "1 vencedor cravou o placar!"
        return f"{count} vencedores cravaram o placar!"
    return _accumulation_message(outcome.reason, club_name)


__all__ = ["ACCUMULATED_MESSAGE", "describe_outcome"]
