from __future__ import annotations

import importlib
from types import ModuleType

import pytest

from smena.core import version as version_module


@pytest.fixture()
def reloaded_version_module() -> ModuleType:
    return importlib.reload(version_module)


def test_read_pyproject_version_returns_project_version(
    reloaded_version_module: ModuleType,
) -> None:
    assert reloaded_version_module._read_pyproject_version() == "0.1.0"


def test_resolve_version_prefers_installed_metadata(
    reloaded_version_module: ModuleType,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    requested: list[str] = []

    def _version(name: str) -> str:
        requested.append(name)
        return "1.2.3"

    monkeypatch.setattr(reloaded_version_module, "version", _version)

    assert reloaded_version_module._resolve_version() == "1.2.3"
    assert requested == ["smena-backend"]


def test_resolve_version_falls_back_to_pyproject_then_default(
    reloaded_version_module: ModuleType,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _raise(_: str) -> str:
        raise reloaded_version_module.PackageNotFoundError

    monkeypatch.setattr(reloaded_version_module, "version", _raise)
    monkeypatch.setattr(reloaded_version_module, "_read_pyproject_version", lambda: "9.9.9")
    assert reloaded_version_module._resolve_version() == "9.9.9"

    monkeypatch.setattr(reloaded_version_module, "_read_pyproject_version", lambda: None)
    assert reloaded_version_module._resolve_version() == "0.0.0"
