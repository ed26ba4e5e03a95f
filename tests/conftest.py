import logging

import pytest


def _mock_result(success=True, returncode=None, stdout="", stderr=""):
    """Stand-in for CommandResult with only the attributes callers read."""
    if returncode is None:
        returncode = 0 if success else 1
    return type(
        "MockResult",
        (),
        {"success": success, "returncode": returncode, "stdout": stdout, "stderr": stderr},
    )()


@pytest.fixture
def command_log(monkeypatch):
    """
    Patch ``run_command`` in the given modules with a scripted fake.

    Usage::

        calls = command_log("desktopsetup.managers.npm", responses={("npm", "view"): result})
    """

    def _install(*modules, responses=None, default=None):
        calls = []
        responses = responses or {}

        def fake_run(cmd, **kwargs):
            calls.append(list(cmd))
            for prefix, result in responses.items():
                if tuple(cmd[: len(prefix)]) == prefix:
                    return result
            return default if default is not None else _mock_result()

        for module in modules:
            monkeypatch.setattr(f"{module}.run_command", fake_run)
        return calls

    return _install


@pytest.fixture(autouse=True)
def quiet_root_logger():
    """CLI tests call setup_logging; keep handlers from leaking between tests."""
    yield
    logging.getLogger().handlers.clear()


@pytest.fixture
def mock_result():
    return _mock_result
