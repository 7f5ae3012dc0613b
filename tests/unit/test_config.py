import os
from importlib import reload

import config


def test_env_overrides_trainer_defaults(monkeypatch):
    monkeypatch.setenv("TREE_COUNT", "33")
    monkeypatch.setenv("LEARNING_RATE", "0.5")
    monkeypatch.setenv("RANDOM_STATE", "11")
    try:
        reload(config)
        assert config.TREE_COUNT == 33
        assert config.LEARNING_RATE == 0.5
        assert config.RANDOM_STATE == 11
    finally:
        monkeypatch.undo()
        reload(config)
    assert config.TREE_COUNT == 700


def test_import_does_not_create_directories(monkeypatch, tmp_path):
    target = tmp_path / "never_created"
    monkeypatch.setenv("PLOT_DIR", str(target))
    try:
        reload(config)
        assert config.PLOT_DIR == str(target)
        assert str(target) in config.EXTRA_DIRS
        assert not os.path.exists(target)
    finally:
        monkeypatch.undo()
        reload(config)
