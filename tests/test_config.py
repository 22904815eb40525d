"""Tests for configuration parsing and validation."""

from pathlib import Path

import pytest
import yaml

from unidb.config.models import BackendType, DatabaseConfig, EnvironmentSettings, UniDBConfig
from unidb.config.parser import ConfigParser, create_sample_config, load_config, load_connections
from unidb.db.models import ConnectionList
from unidb.exceptions import ConfigurationError


def _write_config(directory: Path, content: dict, name: str = "unidb.yaml") -> Path:
    path = directory / name
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(content, f, sort_keys=False)
    return path


class TestConfigurationSystem:
    """Test configuration parsing and validation."""

    def test_config_parser_basic(self, temp_dir):
        """Test basic configuration parsing."""
        config_path = _write_config(temp_dir, {
            'databases': {
                'local': {'type': 'sqlite', 'database': ':memory:'},
            },
            'default_database': 'local',
        })

        config = ConfigParser().load_config(config_path)

        assert isinstance(config, UniDBConfig)
        assert config.default_database == 'local'
        assert config.databases['local'].type == BackendType.SQLITE

    def test_aliases_keep_file_order(self, temp_dir):
        """Connections are built in the order they appear in the file."""
        config_path = _write_config(temp_dir, {
            'databases': {
                'zeta': {'type': 'pg', 'host': 'db1', 'database': 'app', 'username': 'u', 'password': 'p'},
                'alpha': {'type': 'ldap', 'host': 'ldap://dir'},
                'mid': {'type': 'lmdb', 'host': '/var/lib/app', 'database': 'cache'},
            },
        })

        config = ConfigParser().load_config(config_path)
        connections = config.to_connections()

        assert [db.alias for db in connections] == ['zeta', 'alpha', 'mid']
        assert config.default_database == 'zeta'
        pg = connections.get('zeta')
        assert (pg.type, pg.host, pg.database, pg.user, pg.password) == ('pg', 'db1', 'app', 'u', 'p')
        assert pg.handle is None

    def test_short_field_names_are_accepted(self, temp_dir):
        """The db/user/pass spellings map onto database/username/password."""
        config_path = _write_config(temp_dir, {
            'databases': {
                'main': {'type': 'my', 'host': 'db', 'db': 'app', 'user': 'app', 'pass': 'pw'},
            },
        })

        db = ConfigParser().load_config(config_path).to_connections()[0]

        assert (db.database, db.user, db.password) == ('app', 'app', 'pw')

    def test_environment_variable_substitution(self, temp_dir, monkeypatch):
        """Test environment variable substitution in config."""
        monkeypatch.setenv('TEST_DB_PASSWORD', 'secret123')
        config_path = _write_config(temp_dir, {
            'databases': {
                'main': {
                    'type': 'pg',
                    'host': 'localhost',
                    'database': 'test_db',
                    'username': 'user',
                    'password': '${TEST_DB_PASSWORD}',
                },
            },
        })

        config = ConfigParser().load_config(config_path)

        assert config.databases['main'].password == 'secret123'

    def test_environment_variable_with_default(self, temp_dir):
        """Test environment variable with default value."""
        config_path = _write_config(temp_dir, {
            'databases': {
                'local': {'type': 'sqlite', 'database': '${UNIDB_TEST_SQLITE_PATH:-./default.db}'},
            },
        })

        config = ConfigParser().load_config(config_path)

        assert config.databases['local'].database == './default.db'

    def test_missing_environment_variable(self, temp_dir):
        config_path = _write_config(temp_dir, {
            'databases': {
                'local': {'type': 'sqlite', 'database': '${UNIDB_TEST_UNSET_VARIABLE}'},
            },
        })

        with pytest.raises(ConfigurationError, match="UNIDB_TEST_UNSET_VARIABLE"):
            ConfigParser().load_config(config_path)

    def test_config_validation_errors(self, temp_dir):
        """Relational connections need a host and database."""
        config_path = _write_config(temp_dir, {
            'databases': {'main': {'type': 'pg', 'host': 'localhost'}},
        })

        with pytest.raises(ConfigurationError):
            ConfigParser().load_config(config_path)

    def test_unknown_backend_type_is_rejected(self, temp_dir):
        config_path = _write_config(temp_dir, {
            'databases': {'main': {'type': 'oracle', 'host': 'localhost', 'database': 'x'}},
        })

        with pytest.raises(ConfigurationError):
            ConfigParser().load_config(config_path)

    def test_default_database_must_exist(self, temp_dir):
        config_path = _write_config(temp_dir, {
            'databases': {'local': {'type': 'sqlite', 'database': 'x.db'}},
            'default_database': 'other',
        })

        with pytest.raises(ConfigurationError):
            ConfigParser().load_config(config_path)

    def test_includes_are_merged(self, temp_dir):
        """Connections from included files are pooled with the including file's."""
        _write_config(temp_dir, {
            'databases': {
                'shared': {'type': 'ldap', 'host': 'ldap://shared'},
            },
        }, name="shared.yaml")
        config_path = _write_config(temp_dir, {
            'include': 'shared.yaml',
            'databases': {
                'local': {'type': 'sqlite', 'database': 'x.db'},
            },
            'default_database': 'local',
        })

        config = ConfigParser().load_config(config_path)

        assert set(config.databases) == {'shared', 'local'}
        assert config.default_database == 'local'

    def test_alias_repeated_in_one_file_is_rejected(self, temp_dir):
        config_path = temp_dir / "unidb.yaml"
        config_path.write_text(
            "databases:\n"
            "  main:\n"
            "    type: sqlite\n"
            "    database: first.db\n"
            "  main:\n"
            "    type: sqlite\n"
            "    database: second.db\n"
        )

        with pytest.raises(ConfigurationError, match="duplicate key 'main'"):
            ConfigParser().load_config(config_path)

    def test_alias_repeated_across_includes_is_rejected(self, temp_dir):
        _write_config(temp_dir, {
            'databases': {'main': {'type': 'sqlite', 'database': 'shared.db'}},
        }, name="shared.yaml")
        config_path = _write_config(temp_dir, {
            'include': ['shared.yaml'],
            'databases': {'main': {'type': 'sqlite', 'database': 'local.db'}},
        })

        with pytest.raises(ConfigurationError, match="alias 'main'"):
            ConfigParser().load_config(config_path)

    def test_merge_keys_may_be_overridden(self, temp_dir):
        config_path = temp_dir / "unidb.yaml"
        config_path.write_text(
            "defaults: &defaults\n"
            "  type: pg\n"
            "  host: db1\n"
            "  database: app\n"
            "databases:\n"
            "  main:\n"
            "    <<: *defaults\n"
            "    host: db2\n"
        )

        config = ConfigParser().load_config(config_path)

        assert config.databases['main'].host == 'db2'

    def test_include_cycle_is_rejected(self, temp_dir):
        _write_config(temp_dir, {'include': 'a.yaml', 'databases': {}}, name="b.yaml")
        config_path = _write_config(temp_dir, {
            'include': 'b.yaml',
            'databases': {'local': {'type': 'sqlite', 'database': 'x.db'}},
        }, name="a.yaml")

        with pytest.raises(ConfigurationError, match="cycle"):
            ConfigParser().load_config(config_path)

    def test_unset_variable_names_the_setting(self, temp_dir):
        config_path = _write_config(temp_dir, {
            'databases': {
                'main': {'type': 'pg', 'host': 'h', 'database': 'd', 'password': '${UNIDB_TEST_UNSET_PASSWORD}'},
            },
        })

        with pytest.raises(ConfigurationError) as excinfo:
            ConfigParser().load_config(config_path)

        assert excinfo.value.details == {
            'setting': 'databases.main.password',
            'variable': 'UNIDB_TEST_UNSET_PASSWORD',
        }

    def test_load_connections_keeps_file_order(self, temp_dir):
        config_path = _write_config(temp_dir, {
            'databases': {
                'second': {'type': 'sqlite', 'database': 'b.db'},
                'first': {'type': 'sqlite', 'database': 'a.db'},
            },
        })

        connections = load_connections(config_path)

        assert isinstance(connections, ConnectionList)
        assert [db.alias for db in connections] == ['second', 'first']

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigurationError):
            ConfigParser().load_config(temp_dir / "nope.yaml")

    def test_empty_file(self, temp_dir):
        path = temp_dir / "empty.yaml"
        path.write_text("")

        with pytest.raises(ConfigurationError, match="empty"):
            ConfigParser().load_config(path)

    def test_default_location_lookup(self, temp_dir, monkeypatch):
        _write_config(temp_dir, {'databases': {'local': {'type': 'sqlite', 'database': 'x.db'}}})
        monkeypatch.chdir(temp_dir)

        config = load_config()

        assert 'local' in config.databases

    def test_sample_config_is_valid(self, temp_dir):
        path = temp_dir / "sample.yaml"
        create_sample_config(path)

        config = ConfigParser().load_config(path)

        assert [db.type for db in config.to_connections()] == ['pg', 'ldap', 'sqlite', 'lmdb']


class TestModels:

    def test_port_option_range(self):
        with pytest.raises(ValueError):
            DatabaseConfig(type='pg', host='h', database='d', options={'port': 70000})

    def test_lmdb_accepts_path_option(self):
        config = DatabaseConfig(type='lmdb', options={'path': '/tmp/env'})
        assert config.type == BackendType.LMDB

    def test_ldap_requires_host(self):
        with pytest.raises(ValueError):
            DatabaseConfig(type='ldap')

    def test_environment_settings(self, monkeypatch):
        monkeypatch.setenv('UNIDB_LOG_LEVEL', 'DEBUG')
        monkeypatch.setenv('UNIDB_DISABLED_BACKENDS', 'tds, ,lmdb')

        settings = EnvironmentSettings()

        assert settings.log_level == 'DEBUG'
        assert settings.disabled_backend_tags == ['tds', 'lmdb']
