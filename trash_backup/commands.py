import json

import click
from flask.cli import with_appcontext

from .service import get_service


@click.command('backup-tree')
@with_appcontext
def backup_tree_command():
    """백업 폴더 트리를 JSON으로 출력합니다."""
    tree = get_service().backup_tree()
    click.echo(json.dumps(tree.to_dict(), indent=2, ensure_ascii=False))


@click.command('backup-scan')
@with_appcontext
def backup_scan_command():
    """감시 폴더를 한 번 스캔하여 새 항목을 백업합니다."""
    copied = get_service().scan()
    for name in copied:
        click.echo(name)
    click.echo(f'Backed up {len(copied)} new item(s).')


def init_app(app):
    """
    Flask 앱에 백업 관련 CLI 명령어를 등록합니다.
    """
    app.cli.add_command(backup_tree_command)
    app.cli.add_command(backup_scan_command)
