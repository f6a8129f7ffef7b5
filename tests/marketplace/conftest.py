import pytest


@pytest.fixture
def royalty_recipient(user_4: str) -> str:
    return user_4
