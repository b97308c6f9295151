import pytest

from finquote.config import settings
from tests.helpers import make_payload


@pytest.fixture
def equity_payload() -> dict:
    return make_payload()


@pytest.fixture
def permissive_classification(monkeypatch):
    monkeypatch.setattr(settings, "strict_classification", False)
