"""Tests for the administration CLI."""

import pytest
from click.testing import CliRunner

from campaign_store.cli import cli
from campaign_store.db.session import create_store_engine
from campaign_store.store import RelationalStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _invoke(runner, url, *args, **kwargs):
    return runner.invoke(cli, ["--database-url", url, *args], **kwargs)


@pytest.fixture
def migrated_url(runner, cli_url):
    result = _invoke(runner, cli_url, "migrate")
    assert result.exit_code == 0, result.output
    return cli_url


def _open_store(url):
    return RelationalStore(create_store_engine(url))


def test_migrate_reports_head(runner, cli_url):
    result = _invoke(runner, cli_url, "migrate")

    assert result.exit_code == 0
    assert "Schema at 0001_baseline" in result.output


def test_migration_status_before_and_after(runner, cli_url):
    behind = _invoke(runner, cli_url, "migration-status")
    assert behind.exit_code == 1
    assert "behind" in behind.output

    _invoke(runner, cli_url, "migrate")
    current = _invoke(runner, cli_url, "migration-status")
    assert current.exit_code == 0
    assert "Up to date" in current.output


def test_create_user(runner, migrated_url):
    result = _invoke(
        runner, migrated_url, "create-user", "--username", "alice", "--email", "A@X.com", "--user-id", "7"
    )

    assert result.exit_code == 0, result.output
    assert "ID: 7" in result.output
    with _open_store(migrated_url) as store:
        assert store.get_user(7).email == "a@x.com"


def test_create_user_rejects_duplicate(runner, migrated_url):
    args = ("create-user", "--username", "alice", "--email", "a@x.com", "--user-id", "7")
    _invoke(runner, migrated_url, *args)

    result = _invoke(runner, migrated_url, *args)

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_check_integrity_clean(runner, migrated_url):
    with _open_store(migrated_url) as store:
        store.create_user("alice", "a@x.com", user_id=1)
        store.create_campaign("Launch", "L1", 1, campaign_id="C1")

    result = _invoke(runner, migrated_url, "check-integrity")

    assert result.exit_code == 0
    assert "Campaigns: 1 rows" in result.output
    assert "No orphaned rows" in result.output


def test_rename_user(runner, migrated_url):
    with _open_store(migrated_url) as store:
        store.create_user("alice", "a@x.com", user_id=1)
        store.create_campaign("Launch", "L1", 1, campaign_id="C1")

    result = _invoke(runner, migrated_url, "rename-user", "--old-id", "1", "--new-id", "2")

    assert result.exit_code == 0, result.output
    assert "User 1 is now 2" in result.output
    with _open_store(migrated_url) as store:
        assert store.get_campaign("C1").user_id == 2


def test_rename_missing_user_fails(runner, migrated_url):
    result = _invoke(runner, migrated_url, "rename-user", "--old-id", "1", "--new-id", "2")

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_delete_user_requires_confirmation(runner, migrated_url):
    with _open_store(migrated_url) as store:
        store.create_user("alice", "a@x.com", user_id=1)

    result = _invoke(runner, migrated_url, "delete-user", "--user-id", "1", input="n\n")

    assert result.exit_code != 0
    with _open_store(migrated_url) as store:
        assert store.get_user(1) is not None


def test_delete_user_with_yes(runner, migrated_url):
    with _open_store(migrated_url) as store:
        store.create_user("alice", "a@x.com", user_id=1)
        store.create_campaign("Launch", "L1", 1, campaign_id="C1")
        store.add_member("r@x.com", "Bob", "C1")

    result = _invoke(runner, migrated_url, "delete-user", "--user-id", "1", "--yes")

    assert result.exit_code == 0, result.output
    assert "Deleted 1 Members rows" in result.output
    assert "Deleted 1 Users rows" in result.output
    with _open_store(migrated_url) as store:
        assert store.get_user(1) is None
        assert store.check_integrity().ok


def test_version(runner, cli_url):
    result = _invoke(runner, cli_url, "--version")

    assert result.exit_code == 0
    assert "0.01.00" in result.output
