from desktopsetup.core.command import run_command


def test_dry_run_never_executes(monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise AssertionError("subprocess.run must not be called in dry run")

    monkeypatch.setattr("desktopsetup.core.command.subprocess.run", boom)
    result = run_command(["brew", "install", "--formula", "node"], dry_run=True)

    assert result.success is True
    assert "DRYRUN: Would execute: brew install --formula node" in capsys.readouterr().out


def test_missing_command_returns_127():
    result = run_command(["definitely-not-a-real-binary-xyz"], check=False)
    assert result.returncode == 127
    assert not result
    assert "Command not found" in result.stderr


def test_extra_env_is_layered_over_environment(monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen.update(kwargs["env"])
        return type("P", (), {"returncode": 0, "stdout": "", "stderr": ""})()

    monkeypatch.setenv("HOME", "/Users/tester")
    monkeypatch.setattr("desktopsetup.core.command.subprocess.run", fake_run)
    run_command(["true"], extra_env={"NONINTERACTIVE": "1"})

    assert seen["NONINTERACTIVE"] == "1"
    assert seen["HOME"] == "/Users/tester"
