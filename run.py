import argparse
import signal
import sys
import os
import logging
from datetime import datetime
from pathlib import Path

LOG_FILE_ENV = 'TRASH_BACKUP_LOG_FILE'
PID_FILE_ENV = 'TRASH_BACKUP_PID_FILE'
DEFAULT_PORT = 8080
_app = None


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description=(
            "감시 폴더(휴지통 등)에 새로 나타난 파일/폴더를 백업 폴더로 한 번씩 복사하고, "
            "백업 폴더를 HTTP로 제공하며 연결된 클라이언트에 실시간으로 알립니다."
        )
    )
    parser.add_argument("--host", default="0.0.0.0", help="바인드할 주소 (기본값: %(default)s).")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="서버 포트 (기본값: %(default)s).")
    parser.add_argument("--watch-dir", type=Path, help="감시할 폴더 경로.")
    parser.add_argument("--backup-dir", type=Path, help="백업을 저장할 폴더 경로.")
    parser.add_argument("--poll-interval", type=float, help="폴더 스캔 주기(초).")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="로그 상세 수준 (기본값: %(default)s).",
    )
    return parser.parse_args(argv)


def _configure_logging(level="INFO"):
    log_file = os.environ.get(LOG_FILE_ENV)
    # 외부 로그 파일 경로가 없으면 ./logs 아래에 타임스탬프 로그 파일 생성
    if not log_file:
        try:
            default_dir = Path(__file__).resolve().parent / 'logs'
            default_dir.mkdir(parents=True, exist_ok=True)
            ts = datetime.now().strftime('%Y%m%d_%H%M%S')
            log_file = str(default_dir / f'trash_backup_{ts}.log')
        except OSError:
            log_file = None
    handlers = []
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path, encoding='utf-8'))
        except OSError:
            pass

    if sys.stdout and hasattr(sys.stdout, 'write'):
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers or None,
    )


class PidFile:
    """PID 파일 경로가 주어진 경우에만 현재 프로세스 PID를 기록하고, 종료 시 제거합니다."""

    def __init__(self, path=None):
        self.path = Path(path) if path else None
        self.written = False

    @classmethod
    def from_env(cls):
        return cls(os.environ.get(PID_FILE_ENV))

    def write(self):
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(str(os.getpid()), encoding='utf-8')
        except OSError as exc:
            logging.error("Failed to write PID file %s: %s", self.path, exc)
            return
        self.written = True
        logging.info("PID file created at %s", self.path)

    def remove(self):
        if not self.written:
            return
        self.written = False
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logging.warning("Could not remove PID file %s: %s", self.path, exc)
            return
        logging.info("PID file removed: %s", self.path)


_pid_file = PidFile()


def _stop_watcher():
    if _app is None:
        return
    from trash_backup.service import get_service
    get_service(_app).stop()


def signal_handler(signum, frame):
    """Signal handler for graceful shutdown"""
    logging.info("Received signal %s. Shutting down...", signum)
    _stop_watcher()
    _pid_file.remove()
    sys.exit(0)


def main(argv=None):
    global _app, _pid_file
    args = parse_args(argv)
    _configure_logging(args.log_level)

    from trash_backup import create_app, socketio
    from trash_backup.watcher import BackupRootError

    overrides = {}
    if args.watch_dir is not None:
        overrides['WATCH_DIR'] = str(args.watch_dir)
    if args.backup_dir is not None:
        overrides['BACKUP_DIR'] = str(args.backup_dir)
    if args.poll_interval is not None:
        overrides['POLL_INTERVAL'] = args.poll_interval

    try:
        _app = create_app(overrides)
    except BackupRootError as exc:
        logging.critical("Startup aborted: %s", exc)
        sys.exit(1)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    _pid_file = PidFile.from_env()
    _pid_file.write()
    try:
        logging.info("Trash backup server starting at http://%s:%s", args.host, args.port)
        logging.info("Available endpoints:")
        logging.info("   GET  / - File browser")
        logging.info("   GET  /api/tree - File tree API")
        logging.info("   POST /api/save-file - Save externally supplied file")
        logging.info("   GET  /files/* - File server")
        logging.info("   WS   /socket.io - Real-time backup notifications")
        socketio.run(_app, host=args.host, port=args.port, use_reloader=False, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        logging.info("Keyboard interrupt received. Stopping server.")
    finally:
        _stop_watcher()
        _pid_file.remove()


if __name__ == '__main__':
    main()
