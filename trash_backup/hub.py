from __future__ import annotations

import logging
import threading
from typing import Protocol

logger = logging.getLogger(__name__)

SOCKET_NAMESPACE = "/"


class ObserverGoneError(Exception):
    """전송 대상 관찰자의 연결이 이미 끊어졌음을 나타내는 예외."""


class Observer(Protocol):
    def send(self, text: str) -> None: ...

    def close(self) -> None: ...


class SocketIOObserver:
    """SocketIO 세션 하나를 관찰자로 감쌉니다. 세션 ID 기준으로 동등성을 판단합니다."""

    def __init__(self, socketio, sid: str, namespace: str = SOCKET_NAMESPACE):
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace

    def _is_connected(self) -> bool:
        server = getattr(self.socketio, "server", None)
        if server is None:
            return False
        return server.manager.is_connected(self.sid, self.namespace)

    def send(self, text: str) -> None:
        if not self._is_connected():
            raise ObserverGoneError(f"Session {self.sid} is not connected")
        self.socketio.send(text, to=self.sid, namespace=self.namespace)

    def close(self) -> None:
        server = getattr(self.socketio, "server", None)
        if server is None or not self._is_connected():
            return
        server.disconnect(self.sid, namespace=self.namespace)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SocketIOObserver):
            return NotImplemented
        return self.sid == other.sid and self.namespace == other.namespace

    def __hash__(self) -> int:
        return hash((self.sid, self.namespace))

    def __repr__(self) -> str:
        return f"SocketIOObserver(sid={self.sid!r})"


class NotificationHub:
    """연결된 관찰자 집합을 관리하고 변경 이벤트를 모두에게 전달합니다.

    브로드캐스트 동안 하나의 락을 유지하며, 스냅샷을 순회하므로 전송 중
    연결이 끊겨 멤버십이 바뀌어도 안전합니다. 전송에 실패한 관찰자는 즉시
    닫고 제거합니다. 재전송이나 대기열은 없습니다.
    """

    def __init__(self):
        self._observers: set = set()
        # close()가 같은 스레드에서 disconnect 핸들러(unregister)를 호출할 수 있어 RLock 사용
        self._lock = threading.RLock()

    def register(self, observer: Observer) -> None:
        with self._lock:
            self._observers.add(observer)
        logger.info("Observer connected: %r (total %s)", observer, len(self))

    def unregister(self, observer: Observer) -> bool:
        with self._lock:
            if observer not in self._observers:
                return False
            self._observers.discard(observer)
        logger.info("Observer disconnected: %r", observer)
        return True

    def broadcast(self, name: str) -> int:
        delivered = 0
        with self._lock:
            for observer in list(self._observers):
                try:
                    observer.send(name)
                    delivered += 1
                except Exception as exc:
                    logger.info("Dropping observer %r after failed send: %s", observer, exc)
                    self._observers.discard(observer)
                    try:
                        observer.close()
                    except Exception:
                        logger.exception("Failed to close observer %r", observer)
        logger.debug("Broadcast %s to %s observer(s)", name, delivered)
        return delivered

    def __contains__(self, observer: object) -> bool:
        with self._lock:
            return observer in self._observers

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)
