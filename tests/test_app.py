"""
Tests for the application factory and configuration.
"""

import pytest


class TestAppFactory:
    """Tests for create_app()."""

    def test_test_config(self, app):
        assert app.config['TESTING'] is True
        assert app.config['SIDE_EFFECTS_ASYNC'] is False
        assert app.config['AUTH_USER_HEADER'] == 'X-User-Id'

    def test_blueprint_registered(self, app):
        assert 'api' in app.blueprints
        rules = {rule.rule for rule in app.url_map.iter_rules()}
        assert '/api/reservations/<int:reservation_id>/approve' in rules
        assert '/api/pricing/preview' in rules

    def test_cli_commands_registered(self, app):
        assert 'init-db' in app.cli.commands
        assert 'reconcile-cabana-status' in app.cli.commands


class TestProductionConfig:
    """ProductionConfig.validate()."""

    def test_requires_secret_key(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.delenv('SECRET_KEY', raising=False)
        with pytest.raises(ValueError):
            ProductionConfig.validate()

    def test_requires_long_secret_key(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.setenv('SECRET_KEY', 'short')
        with pytest.raises(ValueError):
            ProductionConfig.validate()

    def test_valid_environment(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.setenv('SECRET_KEY', 'x' * 40)
        monkeypatch.setenv('DATABASE_PATH', '/tmp/cabana.db')
        ProductionConfig.validate()
