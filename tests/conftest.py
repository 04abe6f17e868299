import pytest

from repository import create_repo


@pytest.fixture
def repo(tmp_path):
    return create_repo(tmp_path / 'repo')
