from __future__ import annotations

import importlib
from pathlib import Path

import pytest

import config


@pytest.fixture()
def reload_config(monkeypatch):
    # Only the variables set here, not a developer .env
    monkeypatch.setattr("dotenv.load_dotenv", lambda *args, **kwargs: False)

    def _reload(**env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return importlib.reload(config).Config

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


@pytest.mark.parametrize("value", ["", None])
def test_blank_catalog_path_uses_bundled_catalog(reload_config, monkeypatch, value):
    if value is None:
        monkeypatch.delenv("CATALOG_PATH", raising=False)
        settings = reload_config()
    else:
        settings = reload_config(CATALOG_PATH=value)

    path = Path(settings.CATALOG_PATH)
    assert path.is_absolute()
    assert path == Path(config.__file__).resolve().parent / "data" / "products.json"
    assert path.is_file()


def test_catalog_path_override(reload_config, tmp_path):
    target = tmp_path / "catalog.json"
    assert reload_config(CATALOG_PATH=str(target)).CATALOG_PATH == str(target)
