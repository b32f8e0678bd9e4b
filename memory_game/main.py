from flask import Blueprint, jsonify
from memory_game.sessions import get_registry

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the number memory game server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'sessions': len(get_registry())})
