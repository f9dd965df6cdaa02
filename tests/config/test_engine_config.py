from __future__ import annotations

import pytest

from contextops.config import ConfigurationError, EngineConfig, get_engine_config
from contextops.config.engine import (
    CONFLICT_STRATEGY_VAR,
    DEDUPE_ALGORITHM_VAR,
    DEDUPE_THRESHOLD_VAR,
    EQUIVALENCE_VAR,
    SOURCE_PREFERENCE_VAR,
)
from contextops.config.env import optional_env_var
from contextops.domain.context import EquivalencePolicy
from contextops.domain.operations import (
    BulkMergeOptions,
    ContextAware,
    DedupeAlgorithm,
    DedupeOptions,
    JoinOptions,
    LatestWins,
    MergeOptions,
    PreferMethod,
)

ALL_VARS = (
    CONFLICT_STRATEGY_VAR,
    EQUIVALENCE_VAR,
    DEDUPE_ALGORITHM_VAR,
    DEDUPE_THRESHOLD_VAR,
    SOURCE_PREFERENCE_VAR,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ALL_VARS:
        monkeypatch.delenv(name, raising=False)


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  value ")
    assert optional_env_var("EXAMPLE_VAR") == "value"

    monkeypatch.setenv("EXAMPLE_VAR", "   ")
    assert optional_env_var("EXAMPLE_VAR") is None

    monkeypatch.delenv("EXAMPLE_VAR")
    assert optional_env_var("EXAMPLE_VAR") is None


def test_defaults_without_environment() -> None:
    config = get_engine_config()

    assert config == EngineConfig()
    assert config.conflict_strategy == ContextAware()
    assert config.equivalence == EquivalencePolicy.permissive()
    assert config.dedupe_algorithm is DedupeAlgorithm.FUZZY
    assert config.dedupe_threshold == pytest.approx(0.85)
    assert config.source_preference == ()


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CONFLICT_STRATEGY_VAR, "prefer-measured")
    monkeypatch.setenv(EQUIVALENCE_VAR, "STRICT")
    monkeypatch.setenv(DEDUPE_ALGORITHM_VAR, "exact")
    monkeypatch.setenv(DEDUPE_THRESHOLD_VAR, "0.5")
    monkeypatch.setenv(SOURCE_PREFERENCE_VAR, "erp, salesforce,,hubspot ")

    config = get_engine_config()

    assert config.conflict_strategy == PreferMethod("measured")
    assert config.equivalence == EquivalencePolicy.strict()
    assert config.dedupe_algorithm is DedupeAlgorithm.EXACT
    assert config.dedupe_threshold == pytest.approx(0.5)
    assert config.source_preference == ("erp", "salesforce", "hubspot")


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        (CONFLICT_STRATEGY_VAR, "newest-first", CONFLICT_STRATEGY_VAR),
        (EQUIVALENCE_VAR, "loose", EQUIVALENCE_VAR),
        (DEDUPE_ALGORITHM_VAR, "phonetic", DEDUPE_ALGORITHM_VAR),
        (DEDUPE_THRESHOLD_VAR, "high", DEDUPE_THRESHOLD_VAR),
        (DEDUPE_THRESHOLD_VAR, "1.5", "between 0 and 1"),
    ],
)
def test_invalid_values_raise(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError) as exc:
        get_engine_config()

    assert message in str(exc.value)


def test_options_from_config_apply_overrides() -> None:
    config = EngineConfig(
        conflict_strategy=LatestWins(),
        equivalence=EquivalencePolicy.strict(),
        dedupe_algorithm=DedupeAlgorithm.EXACT,
        dedupe_threshold=0.7,
        source_preference=("erp",),
    )

    merge = MergeOptions.from_config(config, preserve_ids=False)
    bulk = BulkMergeOptions.from_config(config)
    dedupe = DedupeOptions.from_config(config, identity=("name",))
    join = JoinOptions.from_config(config)

    assert merge.conflict_strategy == LatestWins()
    assert merge.preserve_ids is False
    assert bulk.source_preference == ("erp",)
    assert dedupe.identity == ("name",)
    assert dedupe.algorithm is DedupeAlgorithm.EXACT
    assert dedupe.threshold == pytest.approx(0.7)
    assert join.equivalence == EquivalencePolicy.strict()


def test_configuration_error_names_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(DEDUPE_ALGORITHM_VAR, "phonetic")

    with pytest.raises(ConfigurationError) as exc:
        get_engine_config()

    assert exc.value.variable == DEDUPE_ALGORITHM_VAR
    assert isinstance(exc.value.__cause__, ValueError)
