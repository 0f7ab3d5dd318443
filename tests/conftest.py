import pytest

from feldspar.utilities.logging import GlobalLoggerSettings


@pytest.fixture(scope='session')
def monkeysession():
    from _pytest.monkeypatch import MonkeyPatch

    mpatch = MonkeyPatch()
    yield mpatch
    mpatch.undo()


@pytest.fixture(autouse=True, scope='session')
def isolated_user_directories(monkeysession, tmp_path_factory):
    """Keeps configuration and log files written during the session out of the user's home."""
    root = tmp_path_factory.mktemp('feldspar-home')
    monkeysession.setattr('feldspar.config.base.BaseConfiguration.DEFAULT_CONFIG_ROOT', root / 'config')
    monkeysession.setattr('feldspar.utilities.logging.GlobalLoggerSettings.log_dir', root / 'logs')
    monkeysession.delenv('FELDSPAR_ORACLE_URL', raising=False)
    yield root


#
# Pytest configuration
#

pytest_plugins = [
    'tests.fixtures',
]


def pytest_collection_modifyitems(config, items):
    log_level_name = config.getoption("--log-level", "info", skip=True)
    GlobalLoggerSettings.set_log_level(str(log_level_name).lower())
