import pytest

from modishcarts.core.config import DEFAULT_JWT_SECRET, Config


class TestConfig:
    def test_defaults(self):
        config = Config({})

        assert config.environment == "development"
        assert config.is_development
        assert config.app.port == 8000
        assert config.app.cors_origin == "http://localhost:3000"
        assert config.app.max_content_length_mb == 10
        assert config.security.jwt_expiration_hours == 24
        assert config.security.jwt_secret_key == DEFAULT_JWT_SECRET
        assert config.api.max_quantity_per_item == 99

    def test_values_from_mapping(self):
        config = Config({
            "ENVIRONMENT": "test",
            "PORT": "9000",
            "DEBUG": "true",
            "DB_ECHO": "1",
            "PASSWORD_HASH_ROUNDS": "4",
        })

        assert config.is_testing
        assert config.app.port == 9000
        assert config.app.debug is True
        assert config.database.echo is True
        assert config.security.password_hash_rounds == 4

    def test_production_requires_real_secret(self):
        with pytest.raises(ValueError):
            Config({"ENVIRONMENT": "production"}).validate()

        Config({"ENVIRONMENT": "production", "JWT_SECRET_KEY": "s3cr3t-for-production-use"}).validate()

    def test_database_url_required(self):
        with pytest.raises(ValueError):
            Config({"DATABASE_URL": ""}).validate()
