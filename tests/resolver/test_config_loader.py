import logging

import pytest

from activation import metrics
from activation.config import (
    ConfigError,
    clear_config_cache,
    flatten_properties,
    get_config,
    load_config_dir,
)


def _write_base(tmp_path, text: str):
    (tmp_path / "base.yaml").write_text(text, encoding="utf-8")
    return tmp_path


def test_sample_config_loads(sample_config_dir):
    cfg = load_config_dir(sample_config_dir)
    assert cfg.schema_version == 1
    assert cfg.resolver.enabled is True
    assert cfg.resolver.environment == "server"
    assert cfg.host.capabilities["dataSource"] == 1
    assert cfg.host.probe_imports == {"yaml-codec": "yaml"}
    assert cfg.logging.level == "info"


def test_defaults_when_directory_empty(tmp_path):
    cfg = load_config_dir(tmp_path)
    assert cfg.resolver.enabled is True
    assert cfg.resolver.exclude == []
    assert cfg.resolver.environment == "none"
    assert cfg.host.capabilities == {}


def test_overrides_file_wins(tmp_path):
    _write_base(tmp_path, "resolver:\n  environment: server\n")
    (tmp_path / "overrides.local.yaml").write_text(
        "resolver:\n  environment: batch\n", encoding="utf-8"
    )
    assert load_config_dir(tmp_path).resolver.environment == "batch"


def test_env_override_metric_and_log(tmp_path, monkeypatch, caplog):
    metrics.reset_for_tests()
    _write_base(tmp_path, "resolver:\n  enabled: true\n")
    monkeypatch.setenv("ACTIVATION__RESOLVER__ENABLED", "false")
    with caplog.at_level(logging.INFO, logger="activation.config"):
        cfg = load_config_dir(tmp_path)
    assert cfg.resolver.enabled is False
    assert metrics.get_counter(
        "env_override_total", {"path": "resolver.enabled"}
    ) == 1
    assert any(
        "[config-env-override] path=resolver.enabled" in r.getMessage()
        for r in caplog.records
    )


def test_comma_separated_exclude(tmp_path, monkeypatch):
    _write_base(tmp_path, "resolver: {}\n")
    monkeypatch.setenv("ACTIVATION__RESOLVER__EXCLUDE", "A, B ,C")
    cfg = load_config_dir(tmp_path)
    assert cfg.resolver.exclude == ["A", "B", "C"]


def test_empty_exclude_entry_rejected(tmp_path):
    metrics.reset_for_tests()
    _write_base(tmp_path, "resolver:\n  exclude: ['A', '']\n")
    with pytest.raises(ConfigError) as ei:
        load_config_dir(tmp_path)
    assert "resolver.exclude:config-invalid" in str(ei.value)
    assert metrics.get_counter(
        "config_validation_errors_total",
        {"path": "resolver.exclude", "code": "config-invalid"},
    ) == 1


def test_negative_arity_out_of_range(tmp_path):
    _write_base(tmp_path, "host:\n  capabilities:\n    jdbc: -1\n")
    with pytest.raises(ConfigError) as ei:
        load_config_dir(tmp_path)
    assert "config-out-of-range" in str(ei.value)


def test_unknown_keys_rejected(tmp_path):
    _write_base(tmp_path, "resolver:\n  exclusions: [A]\n")
    with pytest.raises(ConfigError):
        load_config_dir(tmp_path)
    _write_base(tmp_path, "surprise: 1\n")
    with pytest.raises(ConfigError):
        load_config_dir(tmp_path)


def test_undecodable_layer_rejected(tmp_path):
    (tmp_path / "base.yaml").write_bytes(b"resolver:\n  environment: caf\xe9\n")
    with pytest.raises(ConfigError) as ei:
        load_config_dir(tmp_path)
    assert "base.yaml" in str(ei.value)


def test_invalid_logging_level(tmp_path):
    _write_base(tmp_path, "logging:\n  level: verbose\n")
    with pytest.raises(ConfigError):
        load_config_dir(tmp_path)


def test_get_config_cached_and_env_dir(tmp_path, monkeypatch):
    _write_base(tmp_path, "resolver:\n  environment: first\n")
    monkeypatch.setenv("ACTIVATION_CONFIG_DIR", str(tmp_path))
    cfg = get_config()
    assert cfg.resolver.environment == "first"
    _write_base(tmp_path, "resolver:\n  environment: second\n")
    assert get_config() is cfg
    clear_config_cache()
    assert get_config().resolver.environment == "second"


def test_flatten_properties():
    nested = {"spring": {"aop": {"proxy-target-class": "true"}}, "a.b": 1}
    assert flatten_properties(nested) == {
        "spring.aop.proxy-target-class": "true",
        "a.b": 1,
    }


def test_configure_logging_json_lines():
    import io
    import json

    from activation.config import configure_logging
    from activation.config.schemas.observability import LoggingConfig

    buf = io.StringIO()
    root = configure_logging(LoggingConfig(level="debug", format="json"), buf)
    configure_logging(LoggingConfig(level="debug", format="json"), buf)
    try:
        logging.getLogger("activation.resolver").debug("resolved %d", 3)
        lines = buf.getvalue().strip().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["logger"] == "activation.resolver"
        assert record["level"] == "debug"
        assert record["message"] == "resolved 3"
    finally:
        for h in list(root.handlers):
            if h.get_name() == "activation-console":
                root.removeHandler(h)
        root.setLevel(logging.NOTSET)
