import pytest

from recall import config


def test_database_url_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(ValueError):
        config.get_database_url()


def test_test_mode_switches_database(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost:5432/recall_db")
    monkeypatch.setenv("TEST_MODE", "true")

    assert config.get_database_url() == "postgresql://u:p@localhost:5432/test_recall_db"


@pytest.mark.parametrize("raw,expected", [(None, 20), ("5", 5), ("0", None)])
def test_due_set_limit(monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv("DUE_SET_LIMIT", raising=False)
    else:
        monkeypatch.setenv("DUE_SET_LIMIT", raw)

    assert config.get_due_set_limit() == expected


def test_default_user(monkeypatch):
    monkeypatch.delenv("DEFAULT_USER_ID", raising=False)

    assert config.get_default_user_id() == "learner"
