from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from tokenledger.config.settings import (
    Settings,
    TokenConfig,
    create_default_config,
    load_settings,
)
from tokenledger.ledger import NULL_ADDRESS, Ledger
from tokenledger.ledger.token import MAX_DECIMALS


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.token.name == "SYZYGY"
    assert settings.token.symbol == "CZG"
    assert settings.token.decimals == 18
    assert settings.token.initial_supply == 1_000_000
    assert settings.monitoring.log_level == "INFO"
    assert settings.lock_path == Path("./data/journal") / "ledger.lock"


def test_token_config_rejects_null_creator() -> None:
    with pytest.raises(ValidationError):
        TokenConfig(creator=NULL_ADDRESS)


def test_token_config_validates_ranges() -> None:
    with pytest.raises(ValidationError):
        TokenConfig(initial_supply=-1)
    with pytest.raises(ValidationError):
        TokenConfig(decimals=78)
    assert TokenConfig(symbol=" czg ").symbol == "CZG"


def test_load_settings_from_yaml(workspace_tmp_path: Path) -> None:
    config_path = workspace_tmp_path / "config.yaml"
    config_path.write_text(
        yaml.dump(
            {
                "token": {"name": "Test", "symbol": "tst", "initial_supply": 42},
                "storage": {"journal_path": str(workspace_tmp_path / "journal")},
            }
        )
    )

    settings = load_settings(config_path)

    assert settings.token.name == "Test"
    assert settings.token.symbol == "TST"
    assert settings.token.initial_supply == 42
    assert settings.storage.journal_path == str(workspace_tmp_path / "journal")


def test_environment_overrides_defaults(
    workspace_tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TOKENLEDGER_MONITORING__LOG_LEVEL", "DEBUG")
    settings = load_settings(workspace_tmp_path / "missing.yaml")
    assert settings.monitoring.log_level == "DEBUG"


def test_create_default_config_round_trips(workspace_tmp_path: Path) -> None:
    path = workspace_tmp_path / "config.yaml"
    create_default_config(path)

    settings = load_settings(path)

    assert settings.token == TokenConfig()
    assert settings.storage.journal_path == "./data/journal"


def test_environment_beats_yaml(workspace_tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = workspace_tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"token": {"symbol": "YML", "name": "FromYaml"}}))
    monkeypatch.setenv("TOKENLEDGER_TOKEN__SYMBOL", "ENV")

    settings = load_settings(config_path)

    assert settings.token.symbol == "ENV"
    assert settings.token.name == "FromYaml"


def test_token_config_decimals_bound_matches_ledger() -> None:
    config = TokenConfig(decimals=MAX_DECIMALS, initial_supply=1)
    ledger = Ledger(
        config.name,
        config.symbol,
        config.initial_supply,
        creator=config.creator,
        decimals=config.decimals,
    )
    assert ledger.total_supply == 10**MAX_DECIMALS
    with pytest.raises(ValidationError):
        TokenConfig(decimals=MAX_DECIMALS + 1)
