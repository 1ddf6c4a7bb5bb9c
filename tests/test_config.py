# ==============================================
# Tests for Configuration Management
# ==============================================

import pytest

from metastore.config import AppConfig, get_config, reset_config
from metastore.errors import ConfigError
from metastore.sources import FileMetadataStore, SQLMetadataStore, create_source
from metastore.backends import MySQLClient, SQLiteClient


class TestGetConfig:

    def test_defaults(self, clean_config):
        config = get_config()

        assert config.backend == "sqlite"
        assert config.table_name == "metastore_metadatastore"
        assert config.mysql.port == 3306
        assert config.sqlite.path == "db/metastore.db"
        assert config.files.directory == "metadata/"

    def test_environment_overrides(self, clean_config, monkeypatch):
        monkeypatch.setenv("METASTORE_BACKEND", "MySQL")
        monkeypatch.setenv("METASTORE_TABLE_PREFIX", "saml")
        monkeypatch.setenv("MYSQL_HOST", "db.internal")
        monkeypatch.setenv("MYSQL_PORT", "3307")

        config = get_config()

        assert config.backend == "mysql"
        assert config.table_name == "saml_metadatastore"
        assert config.mysql.host == "db.internal"
        assert config.mysql.port == 3307

    def test_singleton(self, clean_config, monkeypatch):
        first = get_config()
        monkeypatch.setenv("METASTORE_BACKEND", "file")
        assert get_config() is first

        reset_config()
        assert get_config().backend == "file"

    def test_bad_port(self, clean_config, monkeypatch):
        monkeypatch.setenv("MYSQL_PORT", "three")
        with pytest.raises(ConfigError, match="MYSQL_PORT"):
            get_config()


class TestAppConfig:

    def test_unknown_backend(self):
        with pytest.raises(ConfigError, match="Unknown metadata backend"):
            AppConfig(backend="redis")

    def test_bad_prefix(self):
        with pytest.raises(ConfigError):
            AppConfig(table_prefix="x; DROP")


class TestCreateSource:

    def test_sqlite(self, tmp_path):
        config = AppConfig(backend="sqlite", table_prefix="t")
        config.sqlite.path = str(tmp_path / "m.db")

        source = create_source(config)

        assert isinstance(source, SQLMetadataStore)
        assert isinstance(source.backend, SQLiteClient)
        assert source.table == "t_metadatastore"

    def test_mysql(self):
        source = create_source(AppConfig(backend="mysql"))

        assert isinstance(source, SQLMetadataStore)
        assert isinstance(source.backend, MySQLClient)
        assert source.backend.database == "metastore"

    def test_file(self, tmp_path):
        config = AppConfig(backend="file")
        config.files.directory = str(tmp_path)

        source = create_source(config)

        assert isinstance(source, FileMetadataStore)
        assert source.storage_dir == tmp_path
