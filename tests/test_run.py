import os

import run


def test_pid_file_is_written_and_removed(monkeypatch, tmp_path):
    pid_path = tmp_path / "run" / "server.pid"
    monkeypatch.setenv(run.PID_FILE_ENV, str(pid_path))

    pid_file = run.PidFile.from_env()
    pid_file.write()

    assert pid_path.read_text(encoding="utf-8") == str(os.getpid())

    pid_file.remove()
    pid_file.remove()

    assert not pid_path.exists()


def test_pid_file_without_path_does_nothing(monkeypatch):
    monkeypatch.delenv(run.PID_FILE_ENV, raising=False)

    pid_file = run.PidFile.from_env()
    pid_file.write()
    pid_file.remove()

    assert pid_file.path is None
    assert not pid_file.written


def test_pid_file_left_alone_when_not_written_by_us(tmp_path):
    pid_path = tmp_path / "other.pid"
    pid_path.write_text("1234", encoding="utf-8")

    run.PidFile(pid_path).remove()

    assert pid_path.read_text(encoding="utf-8") == "1234"
