from __future__ import annotations

import importlib.util
import os
from pathlib import Path

import pytest

from pumpgeom import _config
from pumpgeom.preview import AssemblyPreviewer

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def pytest_configure():
    os.environ.setdefault("PYVISTA_OFF_SCREEN", "true")
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def load_example(model_path: Path):
    """Import an example module and return the assembly its build() makes."""
    spec = importlib.util.spec_from_file_location(model_path.stem, model_path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.build()


def load_example_datasets(model_path: Path):
    return AssemblyPreviewer(console=None).collect_datasets(load_example(model_path))


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def examples_dir(project_root: Path) -> Path:
    return project_root / "docs" / "examples"


@pytest.fixture
def config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user config at a throwaway directory."""
    config_dir = tmp_path / ".pumpgeom"
    monkeypatch.setattr(_config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(_config, "CONFIG_FILE", config_dir / "pumpgeom.cfg")
    return config_dir
