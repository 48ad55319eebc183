from pathlib import Path

import pytest

from greenrun.settings import Settings

_BACKEND_DIR = Path(__file__).parent.parent


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings from config.test.toml; no secrets file, no environment."""
    return Settings(
        config_path=str(_BACKEND_DIR / "config.test.toml"),
        secrets_path=str(_BACKEND_DIR / "secrets.test.toml"),
    )
