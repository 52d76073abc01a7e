import pytest

from fakes import FakeSleep


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
