from flask import request

from . import socketio
from .hub import SocketIOObserver
from .service import get_service


@socketio.on('connect')
def handle_connect(auth=None):
    """클라이언트 연결 시 관찰자 집합에 등록"""
    get_service().register_observer(SocketIOObserver(socketio, request.sid))


@socketio.on('disconnect')
def handle_disconnect(reason=None):
    """명시적 연결 종료 시 관찰자 집합에서 제거"""
    get_service().unregister_observer(SocketIOObserver(socketio, request.sid))
