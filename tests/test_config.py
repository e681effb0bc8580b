"""Tests for configuration building and precedence resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from typefetch.config import (
    build_client_config,
    deep_merge,
    load_env_config,
    parse_header,
    resolve_client_config,
)
from typefetch.exceptions import ConfigError
from typefetch.models import ClientConfig, DeleteHandling, RetryConfig


# ------------------------------------------------------------------ #
# deep_merge
# ------------------------------------------------------------------ #


class TestDeepMerge:
    def test_nested_keys_merge(self) -> None:
        base = {"retry": {"count": 1, "delay_ms": 500}, "debug": False}
        merged = deep_merge(base, {"retry": {"count": 4}})
        assert merged == {"retry": {"count": 4, "delay_ms": 500}, "debug": False}

    def test_none_values_skipped(self) -> None:
        merged = deep_merge({"debug": True}, {"debug": None, "retry": {"count": None}})
        assert merged == {"debug": True, "retry": {}}

    def test_none_dropped_in_new_section(self) -> None:
        merged = deep_merge({}, {"retry": {"count": None, "delay_ms": None}})
        assert merged == {"retry": {}}

    def test_model_instance_merged_field_by_field(self) -> None:
        merged = deep_merge({"retry": RetryConfig(delay_ms=50)}, {"retry": {"count": 3}})
        assert merged["retry"]["count"] == 3
        assert merged["retry"]["delay_ms"] == 50

    def test_inputs_untouched(self) -> None:
        base = {"retry": {"count": 1}}
        deep_merge(base, {"retry": {"count": 2}})
        assert base == {"retry": {"count": 1}}


# ------------------------------------------------------------------ #
# build_client_config
# ------------------------------------------------------------------ #


class TestBuildClientConfig:
    def test_none_gives_defaults(self) -> None:
        assert build_client_config() == ClientConfig()

    def test_existing_config_returned_as_is(self) -> None:
        config = ClientConfig(debug=True)
        assert build_client_config(config) is config

    def test_overrides_on_existing_config(self) -> None:
        config = ClientConfig(headers={"X-A": "1"}, retry={"count": 2})
        merged = build_client_config(config, {"retry": {"delay_ms": 5}})
        assert merged.retry.count == 2
        assert merged.retry.delay_ms == 5
        assert merged.headers == {"X-A": "1"}

    def test_override_keeps_model_instance_siblings(self) -> None:
        config = build_client_config({"retry": RetryConfig(delay_ms=50)}, {"retry": {"count": 3}})
        assert config.retry.count == 3
        assert config.retry.delay_ms == 50

    def test_unset_cli_values_keep_defaults(self) -> None:
        config = resolve_client_config(
            {"debug": None, "headers": {}, "retry": {"count": None, "delay_ms": None}},
            environ={},
        )
        assert config == ClientConfig()

    def test_partial_cache_section(self) -> None:
        config = build_client_config({"cache": {"enabled": True}})
        assert config.cache.enabled is True
        assert config.cache.max_age_ms == 300_000
        assert config.cache.max_entries == 5000

    def test_delete_handling_from_string(self) -> None:
        assert build_client_config({"delete_handling": "status"}).delete_handling is DeleteHandling.STATUS

    @pytest.mark.parametrize(
        "data",
        [
            {"retry": {"count": -1}},
            {"cache": {"max_age_ms": -10}},
            {"delete_handling": "maybe"},
            {"unknown": 1},
        ],
    )
    def test_invalid_values(self, data) -> None:
        with pytest.raises(ConfigError, match="Invalid client configuration"):
            build_client_config(data)

    def test_unsupported_input_type(self) -> None:
        with pytest.raises(ConfigError):
            build_client_config(["not", "a", "mapping"])

    def test_config_is_frozen(self) -> None:
        config = build_client_config()
        with pytest.raises(ValidationError):
            config.debug = True


# ------------------------------------------------------------------ #
# Environment resolution
# ------------------------------------------------------------------ #


class TestEnvironment:
    def test_only_set_variables_collected(self) -> None:
        env = {"TYPEFETCH_RETRY_COUNT": "3", "TYPEFETCH_CACHE_ENABLED": "", "HOME": "/root"}
        assert load_env_config(env) == {"retry": {"count": "3"}}

    def test_env_values_coerced(self) -> None:
        env = {
            "TYPEFETCH_DEBUG": "true",
            "TYPEFETCH_DELETE_HANDLING": "json",
            "TYPEFETCH_RETRY_COUNT": "2",
            "TYPEFETCH_RETRY_DELAY_MS": "50",
            "TYPEFETCH_CACHE_ENABLED": "1",
            "TYPEFETCH_CACHE_MAX_AGE_MS": "1000",
            "TYPEFETCH_CACHE_MAX_ENTRIES": "10",
        }
        config = resolve_client_config(environ=env)
        assert config.debug is True
        assert config.delete_handling is DeleteHandling.JSON
        assert config.retry.count == 2
        assert config.retry.delay_ms == 50
        assert config.cache.enabled is True
        assert config.cache.max_age_ms == 1000
        assert config.cache.max_entries == 10

    def test_overrides_beat_environment(self) -> None:
        env = {"TYPEFETCH_RETRY_COUNT": "2", "TYPEFETCH_RETRY_DELAY_MS": "50"}
        config = resolve_client_config({"retry": {"count": 7, "delay_ms": None}}, environ=env)
        assert config.retry.count == 7
        assert config.retry.delay_ms == 50

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("TYPEFETCH_RETRY_COUNT", "4")
        assert resolve_client_config().retry.count == 4

    def test_bad_environment_value(self) -> None:
        with pytest.raises(ConfigError):
            resolve_client_config(environ={"TYPEFETCH_RETRY_COUNT": "lots"})


# ------------------------------------------------------------------ #
# parse_header
# ------------------------------------------------------------------ #


class TestParseHeader:
    def test_name_and_value(self) -> None:
        assert parse_header("Authorization: Bearer abc") == ("Authorization", "Bearer abc")

    def test_value_may_contain_colons(self) -> None:
        assert parse_header("X-Time: 12:30") == ("X-Time", "12:30")

    @pytest.mark.parametrize("raw", ["no-separator", ": value"])
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(ConfigError):
            parse_header(raw)
