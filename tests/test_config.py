import os
import subprocess
import sys

import pytest

from netload.config import SWEEP_CONFIG, SweepConfig


def test_defaults(monkeypatch):
    monkeypatch.delenv("NETLOAD_PARALLELISM", raising=False)
    config = SweepConfig()
    assert config.parallelism is None
    assert config.effective_parallelism == 1
    assert config.estimate_workers(100) == 1


def test_env_override(monkeypatch):
    monkeypatch.setenv("NETLOAD_PARALLELISM", "4")
    assert SweepConfig().effective_parallelism == 4


def test_explicit_parallelism_ignores_env(monkeypatch):
    monkeypatch.setenv("NETLOAD_PARALLELISM", "many")
    assert SweepConfig(parallelism=2).effective_parallelism == 2


def test_env_override_invalid_is_lazy(monkeypatch):
    monkeypatch.setenv("NETLOAD_PARALLELISM", "many")
    config = SweepConfig()
    with pytest.raises(ValueError, match="NETLOAD_PARALLELISM"):
        config.effective_parallelism
    with pytest.raises(ValueError, match="NETLOAD_PARALLELISM"):
        config.estimate_workers(100)


def test_import_with_invalid_env():
    env = dict(os.environ, NETLOAD_PARALLELISM="many")
    proc = subprocess.run(
        [sys.executable, "-c", "import netload"],
        env=env,
        capture_output=True,
        text=True,
    )
    assert proc.returncode == 0, proc.stderr


def test_estimate_workers_bounds():
    config = SweepConfig(parallelism=8, min_links_per_worker=4)
    assert config.estimate_workers(0) == 1
    assert config.estimate_workers(3) == 1
    assert config.estimate_workers(12) == 3
    assert config.estimate_workers(1000) == 8
    assert config.estimate_workers(1000, parallelism=2) == 2
    assert config.estimate_workers(1000, parallelism=1) == 1


def test_global_instance():
    assert isinstance(SWEEP_CONFIG, SweepConfig)
