SOLVED_CARD_POINTS = 100
TIME_BONUS_PER_SECOND = 10
MOVE_PENALTY = 5


def calculate_score(solved_count: int, time_remaining: int, moves: int) -> int:
    """Score a won game.

    +100 per solved card (two per pair), +10 per second left on the clock,
    -5 per flip. Never negative.
    """
    raw = (
        solved_count * SOLVED_CARD_POINTS
        + time_remaining * TIME_BONUS_PER_SECOND
        - moves * MOVE_PENALTY
    )
    return max(0, raw)
