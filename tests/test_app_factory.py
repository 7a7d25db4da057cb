# tests/test_app_factory.py
# Factory wiring: config selection, degrade-without-key, launcher helpers

import importlib
import logging
import os
import sys

import pytest

import run
from crowdfuel import create_app
from crowdfuel.config import ProductionConfig, TestingConfig
from crowdfuel.envfiles import dotenv_candidates, load_env_stack, should_load_dotenv
from crowdfuel.helpers import PAYMENTS_EXTENSION
from crowdfuel.services.payments import PaymentClient


class NoKeyConfig(TestingConfig):
    STRIPE_SECRET_KEY = ""


class TestFactory:
    def test_builds_client_from_config(self):
        app = create_app(TestingConfig)
        client = app.extensions[PAYMENTS_EXTENSION]
        assert isinstance(client, PaymentClient)
        assert client.mode == "test"
        assert client.return_url == TestingConfig.CONNECT_RETURN_URL

    def test_dotted_config_path(self):
        app = create_app("crowdfuel.config.TestingConfig")
        assert app.config["TESTING"] is True

    def test_missing_key_logged_at_boot(self, caplog):
        caplog.set_level(logging.ERROR)
        app = create_app(NoKeyConfig)
        assert app.extensions[PAYMENTS_EXTENSION] is None
        assert any("STRIPE_SECRET_KEY" in r.getMessage() for r in caplog.records)


class TestDegradedMode:
    """No Stripe key: process runs, health answers, business routes fail at call time"""

    @pytest.fixture
    def client(self):
        return create_app(NoKeyConfig).test_client()

    def test_health_still_up(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "CrowdFuel Backend Running"

    def test_healthz_degraded(self, client):
        body = client.get("/healthz").get_json()
        assert body["status"] == "degraded"
        assert body["stripe"]["reason"] == "no-secret-key"

    @pytest.mark.parametrize(
        "path,body",
        [
            ("/create-connect-account", {"bandId": "b1", "email": "e@x.com"}),
            ("/connect-account-status", {"accountId": "acct_1"}),
            ("/create-payment-intent", {"amount": 100, "bandStripeAccountId": "acct_1"}),
            ("/payout-dashboard-link", {"accountId": "acct_1"}),
        ],
    )
    def test_business_routes_fail(self, client, path, body):
        resp = client.post(path, json=body)
        assert resp.status_code == 500
        assert "not configured" in resp.get_json()["error"]

    def test_validation_still_first(self, client):
        resp = client.post("/create-connect-account", json={})
        assert resp.status_code == 400


class TestProductionGuard:
    def test_debug_refused(self, monkeypatch):
        monkeypatch.setenv("FLASK_DEBUG", "1")
        with pytest.raises(RuntimeError, match="FLASK_DEBUG"):
            create_app(ProductionConfig, payments=None)


class TestEnvFiles:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        monkeypatch.delenv("DOTENV_PATH", raising=False)
        for key in ("CF_TEST_A", "CF_TEST_B"):
            monkeypatch.setenv(key, "placeholder")
            monkeypatch.delenv(key)

    def test_candidates(self, tmp_path):
        names = [p.name for p in dotenv_candidates("dev", tmp_path)]
        assert names == [".env", ".env.development", ".env.local"]
        assert [p.name for p in dotenv_candidates("production", tmp_path)] == [".env", ".env.production"]

    def test_later_files_win_but_os_env_wins_over_all(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("CF_TEST_A=base\nCF_TEST_B=base\n")
        (tmp_path / ".env.development").write_text("CF_TEST_A=dev\n")
        monkeypatch.setenv("CF_TEST_B", "from-os")

        loaded = load_env_stack(env="development", base_dir=tmp_path)

        assert [p.name for p in loaded] == [".env", ".env.development"]
        assert os.environ["CF_TEST_A"] == "dev"
        assert os.environ["CF_TEST_B"] == "from-os"

    def test_skipped_in_production(self, tmp_path):
        (tmp_path / ".env").write_text("CF_TEST_A=base\n")
        assert should_load_dotenv("production") is False
        assert load_env_stack(env="production", base_dir=tmp_path) == []
        assert "CF_TEST_A" not in os.environ

    def test_wsgi_entry_never_loads_env_files(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("CF_TEST_A=base\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("APP_ENV", "development")
        monkeypatch.setenv("ENV", "development")
        monkeypatch.delenv("FLASK_CONFIG", raising=False)
        monkeypatch.delenv("FLASK_DEBUG", raising=False)
        monkeypatch.delitem(sys.modules, "wsgi", raising=False)

        wsgi = importlib.import_module("wsgi")

        assert wsgi.app.config["ENV"] == "development"
        assert "CF_TEST_A" not in os.environ


class TestRunner:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        for key in ("FLASK_DEBUG", "FLASK_CONFIG", "APP_ENV", "ENV", "FLASK_ENV", "NODE_ENV", "PORT"):
            monkeypatch.delenv(key, raising=False)

    def test_production(self):
        cfg = run.make_runner_config(["--env", "production", "--port", "9000"])
        assert cfg.config_path == "crowdfuel.config.ProductionConfig"
        assert cfg.port == 9000
        assert cfg.debug is False
        assert cfg.use_reloader is False

    def test_defaults(self):
        cfg = run.make_runner_config([])
        assert cfg.env == "development"
        assert cfg.port == 8080
        assert cfg.debug is True

    def test_node_env_respected(self, monkeypatch):
        monkeypatch.setenv("NODE_ENV", "production")
        assert run.make_runner_config([]).env == "production"

    def test_config_alias(self):
        assert run.normalize_config_path("test", env="production") == "crowdfuel.config.TestingConfig"
