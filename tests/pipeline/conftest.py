import pytest
from vault_env import VaultEnv, make_env


@pytest.fixture
def env() -> VaultEnv:
    return make_env()


@pytest.fixture
def delegated_env() -> VaultEnv:
    return make_env(delegated=True)
