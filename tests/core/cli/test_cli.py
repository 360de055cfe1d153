"""Tests for the CLI entry point."""

import json

import pytest
from click.testing import CliRunner

from marti.core.cli import main
from marti.samples.repository import EntryRepository


@pytest.fixture
def cli_repository(monkeypatch, fake_store, settings, sample_entry, job):
    """Route CLI commands to a repository over the in-memory store."""
    repo = EntryRepository(fake_store, settings)
    repo.save(sample_entry, job)

    monkeypatch.setattr("marti.core.cli.common.load_config", lambda config_file=None: None)
    monkeypatch.setattr("marti.core.cli.common.create_repository", lambda config: repo)
    return repo


class TestCliGroup:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Marti" in result.output
        for command in ("search", "show", "list", "init-indexes"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestSearchCommand:
    def test_search(self, cli_repository, fake_store, sample_entry):
        fake_store.canned_hits = [fake_store.collections["marti"][sample_entry.id]]

        result = CliRunner().invoke(main, ["search", "--lat", "52.1", "--lon", "1.2", "--max-distance", "5000"])

        assert result.exit_code == 0
        documents = json.loads(result.stdout)
        assert documents[0]["marti_id"] == "MARTi-0042"
        query = fake_store.queries[-1][1]
        assert query["location"]["$nearSphere"]["$maxDistance"] == 5000

    def test_search_requires_coordinates(self, cli_repository):
        result = CliRunner().invoke(main, ["search", "--lat", "52.1"])
        assert result.exit_code != 0

    def test_search_failure_exit_code(self, cli_repository, fake_store):
        fake_store.fail_queries = True
        result = CliRunner().invoke(main, ["search", "--lat", "52.1", "--lon", "1.2"])
        assert result.exit_code == 1


class TestShowCommand:
    def test_show_by_marti_id(self, cli_repository):
        result = CliRunner().invoke(main, ["show", "--marti-id", "MARTi-0042"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["name"] == "Norwich airborne 3"

    def test_show_by_id(self, cli_repository, sample_entry):
        result = CliRunner().invoke(main, ["show", "--id", str(sample_entry.id)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["_id"] == str(sample_entry.id)

    def test_show_missing(self, cli_repository):
        result = CliRunner().invoke(main, ["show", "--marti-id", "MARTi-none"])
        assert result.exit_code == 1

    def test_show_needs_exactly_one_key(self, cli_repository):
        result = CliRunner().invoke(main, ["show"])
        assert result.exit_code == 2


class TestListCommand:
    def test_list(self, cli_repository):
        result = CliRunner().invoke(main, ["list"])
        assert result.exit_code == 0
        assert [d["marti_id"] for d in json.loads(result.stdout)] == ["MARTi-0042"]


class TestInitIndexesCommand:
    def test_init_indexes(self, cli_repository, fake_store):
        result = CliRunner().invoke(main, ["init-indexes"])
        assert result.exit_code == 0
        assert fake_store.indexes == [("marti", "location", "2dsphere")]
