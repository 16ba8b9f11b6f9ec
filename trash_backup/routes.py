"""
Flask 라우트 정의 모듈

백업 폴더 목록 페이지, JSON 트리 API, 외부 파일 저장 API, 정적 파일 서버를 제공합니다.
모든 응답에 CORS 헤더를 붙여 별도 프런트엔드에서 호출할 수 있게 합니다.
"""
import logging
import os
from datetime import datetime

from flask import Blueprint, abort, jsonify, render_template, request, send_from_directory, url_for
from werkzeug.security import safe_join

from trash_backup.ingress import IngressValidationError, IngressWriteError
from trash_backup.service import get_service
from trash_backup.tree import list_children

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
}


# 메인 블루프린트 정의
main = Blueprint('main', __name__)


@main.after_request
def add_cors_headers(response):
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


@main.route('/')
def index():
    """
    백업된 파일 목록 페이지. 새 파일은 SocketIO 메시지로 실시간 추가됩니다.
    """
    files = get_service().list_backups()
    return render_template('index.html', files=files)


@main.route('/api/tree', methods=['GET', 'OPTIONS'])
def file_tree():
    """
    백업 폴더 전체를 {name, isDir, children} 형식의 JSON 트리로 반환
    """
    if request.method == 'OPTIONS':
        return '', 200
    try:
        tree = get_service().backup_tree()
    except OSError:
        logger.exception("Failed to build file tree")
        return 'Failed to build file tree', 500
    return jsonify(tree.to_dict())


@main.route('/api/files')
def file_list():
    """
    백업 폴더 최상위 항목 이름 목록
    """
    return jsonify({'files': get_service().list_backups()})


@main.route('/api/save-file', methods=['POST', 'OPTIONS'])
def save_file():
    """
    hex 인코딩된 파일 내용을 받아 백업 폴더에 저장하고 관찰자에게 알립니다.
    """
    if request.method == 'OPTIONS':
        return '', 200

    payload = request.get_json(force=True, silent=True)
    if payload is None:
        logger.warning("Rejected save-file request: invalid JSON")
        return 'Invalid JSON', 400

    try:
        saved = get_service().ingest(payload)
    except IngressValidationError as exc:
        logger.warning("Rejected save-file request: %s", exc)
        return str(exc), 400
    except IngressWriteError as exc:
        logger.error("Failed to save uploaded file: %s", exc)
        return 'Failed to save file', 500

    return jsonify(saved.to_dict())


@main.route('/api/test')
def health():
    return jsonify({
        'status': 'ok',
        'message': 'Backup server is running',
        'timestamp': datetime.now().astimezone().isoformat(timespec='seconds'),
    })


@main.route('/files/<path:filename>')
def serve_file(filename):
    """
    백업 파일 다운로드. 디렉터리이면 하위 항목 목록 페이지를 보여줍니다.
    """
    backup_dir = get_service().backup_dir
    target = safe_join(str(backup_dir), filename)
    if target is None:
        abort(404)
    if not os.path.isdir(target):
        return send_from_directory(backup_dir, filename)

    rel_dir = filename.strip('/')
    try:
        children = list_children(target)
    except OSError:
        logger.exception("Failed to list backup directory %s", target)
        abort(404)
    entries = [
        {
            'name': child.name,
            'is_dir': child.is_dir,
            'url': url_for('main.serve_file', filename=f'{rel_dir}/{child.name}'),
        }
        for child in children
    ]
    return render_template('directory.html', path=rel_dir, entries=entries)
