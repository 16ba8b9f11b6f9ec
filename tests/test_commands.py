from __future__ import annotations

import json


def test_backup_scan_command(app, watch_dir, backup_dir):
    (watch_dir / "a.txt").write_bytes(b"a")
    runner = app.test_cli_runner()

    result = runner.invoke(args=["backup-scan"])

    assert result.exit_code == 0
    assert "a.txt" in result.output
    assert "Backed up 1 new item(s)." in result.output
    assert (backup_dir / "a.txt").read_bytes() == b"a"

    again = runner.invoke(args=["backup-scan"])
    assert "Backed up 0 new item(s)." in again.output


def test_backup_tree_command(app, backup_dir):
    (backup_dir / "a.txt").write_bytes(b"a")

    result = app.test_cli_runner().invoke(args=["backup-tree"])

    assert result.exit_code == 0
    tree = json.loads(result.output)
    assert tree["children"] == [{"name": "a.txt", "isDir": False}]
