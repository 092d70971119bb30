from __future__ import annotations

from .models import MatchScores, TennisMatch


def format_tennis_score(scores: MatchScores) -> str:
    sets1 = scores.player1.sets
    sets2 = scores.player2.sets
    games1 = scores.player1.games
    games2 = scores.player2.games
    if games1 and games2:
        per_set = ", ".join(
            f"{g}-{games2[i] if i < len(games2) else 0}" for i, g in enumerate(games1)
        )
        return f"{sets1}-{sets2} ({per_set})"
    return f"{sets1}-{sets2}"


def match_result(match: TennisMatch) -> str:
    if match.status != "FINISHED":
        return "Match in progress or upcoming"
    if match.scores.player1.sets > match.scores.player2.sets:
        winner = match.player1.name
    else:
        winner = match.player2.name
    return f"{winner} wins {format_tennis_score(match.scores)}"
