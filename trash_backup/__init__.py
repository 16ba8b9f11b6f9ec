import logging

from flask import Flask
from flask_socketio import SocketIO

socketio = SocketIO(async_mode='threading')
logger = logging.getLogger(__name__)


def create_app(test_config=None):
    # Flask 앱 인스턴스 생성
    app = Flask(__name__)

    # 설정 로드 (기본값 -> TRASH_BACKUP_* 환경 변수 -> test_config 순)
    from .config import load_config
    load_config(app, test_config)

    # 서비스 상태 생성. 백업 폴더를 만들 수 없으면 기동을 중단합니다.
    from .service import EXTENSION_KEY, BackupService
    from .watcher import BackupRootError
    try:
        service = BackupService(
            app.config['WATCH_DIR'],
            app.config['BACKUP_DIR'],
            poll_interval=app.config['POLL_INTERVAL'],
            watch_events=app.config['WATCH_EVENTS'],
        )
    except BackupRootError as exc:
        logger.error("Cannot start backup service: %s", exc)
        raise
    app.extensions[EXTENSION_KEY] = service

    # 블루프린트(라우트) 등록
    from . import routes
    app.register_blueprint(routes.main)

    # SocketIO 이벤트 핸들러 등록 (모듈 import 시 데코레이터로 등록됨)
    from . import events  # noqa: F401

    # CLI 명령 등록
    from . import commands
    commands.init_app(app)

    # SocketIO 초기화
    socketio.init_app(app, async_mode='threading', cors_allowed_origins='*')

    # 감시 루프 시작
    if app.config['START_WATCHER']:
        service.start()

    return app
