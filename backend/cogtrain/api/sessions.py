from flask import Blueprint, jsonify, request
from cogtrain.errors import SessionError, ValidationError
from cogtrain.services.sessions import store
from cogtrain.services.sessions.leaderboard import get_leaderboard as svc_get_leaderboard
from cogtrain.services.sessions.leaderboard import get_user_stats as svc_get_user_stats


api = Blueprint('api', __name__)


@api.errorhandler(SessionError)
def handle_session_error(exc: SessionError):
    return jsonify(exc.to_dict()), exc.status_code


def _json_body(operation: str) -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError(operation, 'request body must be a JSON object')
    return data


@api.route('/sessions', methods=['POST'])
def start_session():
    data = _json_body('create_session')
    if data.get('user_id') is None:
        raise ValidationError('create_session', 'user_id is required')
    session = store.create_session(data['user_id'])
    return jsonify(session.to_dict()), 201


@api.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(store.get_session(session_id).to_dict())


@api.route('/sessions/<string:session_id>', methods=['PUT'])
def complete_session(session_id):
    data = _json_body('complete_session')
    store.complete_session(session_id, data)
    return jsonify(store.get_session(session_id).to_dict())


@api.route('/users/<string:user_id>/sessions', methods=['GET'])
def get_user_sessions(user_id):
    sessions = store.list_user_sessions(user_id)
    return jsonify([s.to_dict() for s in sessions])


@api.route('/users/<string:user_id>/stats', methods=['GET'])
def get_user_stats(user_id):
    stats = svc_get_user_stats(user_id)
    if stats is None:
        return jsonify({'error': 'no stats found for user'}), 404
    return jsonify(stats.to_dict())


@api.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    entries = svc_get_leaderboard(request.args.get('limit'))
    return jsonify([e.to_dict() for e in entries])
