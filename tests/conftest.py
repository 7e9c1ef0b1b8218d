import logging
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path_factory, monkeypatch):
    # Never read the developer's real user settings file
    monkeypatch.setenv("AUDIOKEYS_SETTINGS", str(tmp_path_factory.mktemp("cfg") / "settings.yaml"))
    monkeypatch.delenv("AUDIOKEYS_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    # The CLI reconfigures the root logger; undo it so later tests start clean
    root.handlers[:] = handlers
    root.setLevel(level)

    from audiokeys.playback import reset_playback_manager

    reset_playback_manager()
