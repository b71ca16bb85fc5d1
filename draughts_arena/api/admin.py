from functools import wraps

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from draughts_arena.errors import AdminRequired
from draughts_arena.services.sessions.economy import top_up_tokens


admin = Blueprint('admin', __name__)


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            raise AdminRequired()
        return view(*args, **kwargs)
    return wrapper


@admin.route('/tokens', methods=['PUT'])
@admin_required
def charge_tokens():
    data = request.get_json(silent=True) or {}
    player = top_up_tokens(data.get('email'), data.get('tokens'))
    current_app.logger.info(f"[top-up] admin={current_user.id} player={player.id} tokens={data.get('tokens')}")
    return jsonify({
        'message': f"Tokens successfully updated for {player.email}.",
        'player': player.to_dict(),
    })
