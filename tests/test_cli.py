"""Tests for the typer CLI."""

import json

import pytest
from fastapi import FastAPI
from typer.testing import CliRunner

from token_intel import __version__
from token_intel.aggregation.orchestrator import TokenIntelOrchestrator
from token_intel.cli import app
from token_intel.core.types import Chain, DataSource
from token_intel.providers.base import ProviderResult

from conftest import FIXED_NOW, SOLANA_MINT, FakeHolderAnalyzer, FakeMarketProvider

runner = CliRunner()

PROVIDER_KEYS = ("HELIUS_API_KEY", "MORALIS_API_KEY", "ETHERSCAN_API_KEY", "BITQUERY_API_KEY")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No provider keys, and an empty .env file so nothing is picked up from disk."""
    for key in PROVIDER_KEYS:
        monkeypatch.delenv(key, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("")
    return env_file


@pytest.fixture
def fake_orchestrator(monkeypatch, dex_record, healthy_holders):
    """Orchestrator over fake providers, returned by every build_orchestrator call."""
    dex = FakeMarketProvider(DataSource.DEXSCREENER, ProviderResult.ok(dex_record))
    orchestrator = TokenIntelOrchestrator(
        dex_provider=dex,
        bonding_providers={Chain.SOLANA: FakeMarketProvider(DataSource.PUMPFUN)},
        holder_analyzer=FakeHolderAnalyzer(healthy_holders),
        now=lambda: FIXED_NOW,
    )
    monkeypatch.setattr("token_intel.cli.build_orchestrator", lambda config: orchestrator)
    return dex


class TestCLI:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_check_without_holder_keys(self, clean_env):
        """A configuration with no holder provider fails validation."""
        result = runner.invoke(app, ["check", "--env-file", str(clean_env)])

        assert result.exit_code == 2
        assert "Moralis" in result.output

    def test_check_with_moralis(self, clean_env, monkeypatch):
        monkeypatch.setenv("MORALIS_API_KEY", "m")

        result = runner.invoke(app, ["check", "--env-file", str(clean_env)])

        assert result.exit_code == 0
        assert "Configuration OK" in result.output

    def test_analyze_rejects_unknown_output(self, clean_env, monkeypatch):
        monkeypatch.setenv("MORALIS_API_KEY", "m")

        result = runner.invoke(app, ["analyze", "0x" + "a" * 40, "--output", "yaml", "--env-file", str(clean_env)])

        assert result.exit_code == 1


class TestBatchCommand:
    """Tests for `batch`."""

    def test_writes_one_payload_per_address(self, clean_env, monkeypatch, tmp_path, fake_orchestrator):
        """Valid addresses are saved as JSON; invalid ones are skipped, comments ignored."""
        monkeypatch.setenv("MORALIS_API_KEY", "m")
        tokens_file = tmp_path / "tokens.txt"
        tokens_file.write_text(f"# watchlist\n{SOLANA_MINT}\n\nnot-an-address\n")
        output_dir = tmp_path / "results"

        result = runner.invoke(
            app,
            ["batch", str(tokens_file), "--chain", "solana", "--output-dir", str(output_dir),
             "--env-file", str(clean_env)],
        )

        assert result.exit_code == 0
        assert "Complete: 1/2 analyzed" in result.output
        assert [p.name for p in output_dir.iterdir()] == [f"{SOLANA_MINT}.json"]
        payload = json.loads((output_dir / f"{SOLANA_MINT}.json").read_text())
        assert payload["tokenName"] == "Bonk"
        assert payload["chain"] == "Solana"
        assert [token.address for token in fake_orchestrator.calls] == [SOLANA_MINT]

    def test_not_found_is_saved_but_not_counted(self, clean_env, monkeypatch, tmp_path, fake_orchestrator):
        monkeypatch.setenv("MORALIS_API_KEY", "m")
        fake_orchestrator.result = ProviderResult.not_found(DataSource.DEXSCREENER)
        tokens_file = tmp_path / "tokens.txt"
        tokens_file.write_text(f"{SOLANA_MINT}\n")
        output_dir = tmp_path / "results"

        result = runner.invoke(
            app,
            ["batch", str(tokens_file), "--chain", "solana", "--output-dir", str(output_dir),
             "--env-file", str(clean_env)],
        )

        assert result.exit_code == 0
        assert "Complete: 0/1 analyzed" in result.output
        payload = json.loads((output_dir / f"{SOLANA_MINT}.json").read_text())
        assert payload["tokenName"] == "Unknown Token"

    def test_missing_file(self, clean_env, tmp_path):
        result = runner.invoke(app, ["batch", str(tmp_path / "absent.txt"), "--env-file", str(clean_env)])

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_empty_file(self, clean_env, tmp_path):
        tokens_file = tmp_path / "tokens.txt"
        tokens_file.write_text("# nothing yet\n\n")

        result = runner.invoke(app, ["batch", str(tokens_file), "--env-file", str(clean_env)])

        assert result.exit_code == 1
        assert "No addresses found" in result.output


class TestServeCommand:
    """Tests for `serve`."""

    def test_runs_app_with_uvicorn(self, clean_env, monkeypatch):
        monkeypatch.setenv("MORALIS_API_KEY", "m")
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

        result = runner.invoke(app, ["serve", "--port", "9001", "--env-file", str(clean_env)])

        assert result.exit_code == 0
        served, options = calls[0]
        assert isinstance(served, FastAPI)
        assert options["host"] == "127.0.0.1"
        assert options["port"] == 9001

    def test_invalid_config_exits_before_serving(self, clean_env, monkeypatch):
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(app))

        result = runner.invoke(app, ["serve", "--env-file", str(clean_env)])

        assert result.exit_code == 2
        assert calls == []
