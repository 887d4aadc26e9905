"""Tests for the worldshift CLI."""

import textwrap

import orjson
import pytest
from typer.testing import CliRunner

from worldshift.cli.context import load_migrations
from worldshift.cli.main import app

runner = CliRunner()

MIGRATIONS_SOURCE = textwrap.dedent('''
    from worldshift.migrations import MigrationBase, migration


    class RenameActors(MigrationBase):
        version = 12

        async def update_actor(self, actor):
            actor["name"] = actor["name"].upper()


    MIGRATIONS = [
        RenameActors,
        migration(13, update_item=lambda item: item.setdefault("data", {}).update(migrated=True)),
    ]
''')


@pytest.fixture
def migrations_module(tmp_path, monkeypatch):
    (tmp_path / "cli_sample_migrations.py").write_text(MIGRATIONS_SOURCE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_sample_migrations"


@pytest.fixture
def snapshot_file(tmp_path, character_data, armor_data):
    path = tmp_path / "world.json"
    path.write_bytes(orjson.dumps({
        "actors": [character_data],
        "items": [armor_data],
        "scenes": [{
            "_id": "scene1",
            "tokens": [{
                "_id": "token1",
                "actorId": "amiri",
                "actorLink": False,
                "actorData": {"name": "Amiri the Bold"},
            }],
        }],
        "users": [],
        "worldSchemaVersion": 10,
    }))
    return path


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "world.db")


def test_load_migrations_instantiates_classes(migrations_module):
    """Unit classes in MIGRATIONS are instantiated."""
    units = load_migrations(migrations_module)
    assert [u.version for u in units] == [12, 13]


def test_load_migrations_requires_list(tmp_path, monkeypatch):
    """A module without MIGRATIONS is rejected."""
    (tmp_path / "cli_empty_module.py").write_text("X = 1\n")
    monkeypatch.syspath_prepend(str(tmp_path))
    with pytest.raises(ValueError):
        load_migrations("cli_empty_module")


def test_import_then_status(snapshot_file, db, migrations_module):
    """Imported worlds report their version and pending work."""
    result = runner.invoke(app, ["import", str(snapshot_file), "--db", db])
    assert result.exit_code == 0, result.output
    assert "Imported 3 documents" in result.output

    result = runner.invoke(app, ["status", "--db", db, "--module", migrations_module])
    assert result.exit_code == 0, result.output
    assert "10" in result.output
    assert "yes" in result.output


def test_migrate_and_export(snapshot_file, db, migrations_module, tmp_path):
    """migrate upgrades documents and tokens; export writes them out."""
    runner.invoke(app, ["import", str(snapshot_file), "--db", db])

    result = runner.invoke(app, ["migrate", "--db", db, "--module", migrations_module])
    assert result.exit_code == 0, result.output
    assert "v10" in result.output and "v13" in result.output

    out = tmp_path / "out.json"
    result = runner.invoke(app, ["export", str(out), "--db", db])
    assert result.exit_code == 0, result.output

    exported = orjson.loads(out.read_bytes())
    assert exported["worldSchemaVersion"] == 13
    assert exported["actors"][0]["name"] == "AMIRI"
    assert exported["actors"][0]["items"][0]["data"]["migrated"] is True
    assert exported["items"][0]["data"]["migrated"] is True
    token = exported["scenes"][0]["tokens"][0]
    assert token["actorData"] == {"name": "AMIRI THE BOLD"}


def test_migrate_twice_is_noop(snapshot_file, db, migrations_module):
    """A second migrate reports the world is current."""
    runner.invoke(app, ["import", str(snapshot_file), "--db", db])
    runner.invoke(app, ["migrate", "--db", db, "--module", migrations_module])

    result = runner.invoke(app, ["migrate", "--db", db, "--module", migrations_module])

    assert result.exit_code == 0, result.output
    assert "already at version 13" in result.output


@pytest.mark.parametrize("command", ["status", "migrate"])
def test_unknown_module_exits_cleanly(db, command):
    """A migrations module that cannot be imported is reported, not raised."""
    result = runner.invoke(app, [command, "--db", db, "--module", "worldshift_no_such_module"])
    assert result.exit_code == 1
    assert "Cannot load migrations" in result.output
    assert not isinstance(result.exception, ModuleNotFoundError)
