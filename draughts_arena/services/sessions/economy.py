from flask import current_app
from sqlalchemy import update

from draughts_arena import db
from draughts_arena.errors import MissingParameters, NonPositiveTokens, PlayerNotFound
from draughts_arena.models import AI_PLAYER_ID, Player, SessionStatus

# Balances and scores are shared by all of a player's sessions, so every change
# is issued as a single UPDATE ... SET col = col + :delta (never read-modify-write).


def _is_human(player_id) -> bool:
    return player_id is not None and player_id != AI_PLAYER_ID


def debit_tokens(player_id: int, amount: float) -> None:
    """Unconditional debit. The balance is allowed to go negative."""
    db.session.execute(
        update(Player).where(Player.id == player_id).values(tokens=Player.tokens - amount)
    )


def try_debit_tokens(player_id: int, amount: float) -> bool:
    """Debit only if the balance covers ``amount``. Returns False otherwise."""
    result = db.session.execute(
        update(Player)
        .where(Player.id == player_id, Player.tokens >= amount)
        .values(tokens=Player.tokens - amount)
    )
    return result.rowcount == 1


def adjust_score(player_id, delta: float) -> None:
    if not _is_human(player_id):
        return
    db.session.execute(
        update(Player).where(Player.id == player_id).values(score=Player.score + delta)
    )


def apply_terminal_scores(session, forfeiting_actor_id=None) -> None:
    """Apply score effects for a session that just reached a terminal state.

    Completed: +1 to the winner (nothing on a draw).
    Abandoned / Timed Out: -0.5 to the forfeiting actor, +1 to the winner.
    """
    status = SessionStatus(session.status)
    if status is SessionStatus.ONGOING:
        return
    if status is not SessionStatus.COMPLETED:
        adjust_score(forfeiting_actor_id, -0.5)
    adjust_score(session.winner_id, 1)
    current_app.logger.info(
        f"[score] session={session.id} status={status.value} winner={session.winner_id} forfeit={forfeiting_actor_id}"
    )


def top_up_tokens(email, amount) -> Player:
    """Admin top-up of a player's balance, addressed by email."""
    if not email or amount is None:
        raise MissingParameters('You have to specify the email and the tokens.')
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise NonPositiveTokens()
    if amount <= 0:
        raise NonPositiveTokens()
    player = Player.query.filter_by(email=email.strip().lower()).first()
    if not player:
        raise PlayerNotFound()
    db.session.execute(
        update(Player).where(Player.id == player.id).values(tokens=Player.tokens + amount)
    )
    db.session.commit()
    return player
