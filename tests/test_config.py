"""Tests for configuration system."""

import logging


class TestBenchSettings:
    """Test configuration loading and defaults."""

    def test_default_agent_settings(self):
        """Agent defaults match the harness conventions."""
        from agency_bench.config import AgentSettings

        agent = AgentSettings()
        assert agent.command == ["node", "orchestrator.cjs"]
        assert agent.timeout_minutes == 30
        assert agent.env_flag == "BENCHMARK_MODE"

    def test_default_baseline_markers(self):
        from agency_bench.config import SnapshotSettings

        snapshot = SnapshotSettings()
        assert snapshot.baseline_tag == "benchmark-baseline"
        assert snapshot.baseline_branch == "benchmark-base"
        assert snapshot.install_command == ["npm", "ci"]

    def test_default_pricing_table(self):
        from agency_bench.config import BenchSettings

        pricing = BenchSettings().pricing
        assert pricing["openrouter/anthropic/claude-3.5-sonnet"].input == 0.000003
        assert pricing["openrouter/anthropic/claude-3.5-sonnet"].output == 0.000015
        assert len(pricing) == 4

    def test_env_override_nested(self, monkeypatch):
        """Nested settings use a double underscore."""
        monkeypatch.setenv("BENCH_AGENT__TIMEOUT_MINUTES", "45")
        from agency_bench.config import BenchSettings

        assert BenchSettings().agent.timeout_minutes == 45

    def test_settings_singleton_exports(self):
        from agency_bench.config import settings

        assert settings.paths is not None
        assert settings.quality.coverage_target == 80
        assert settings.llm_judge.enabled is False


class TestLoadSettings:
    """Test config-file overlays."""

    def test_missing_file_gives_defaults(self, tmp_path):
        from agency_bench.config import load_settings

        assert load_settings(tmp_path / "nope.yaml").agent.timeout_minutes == 30
        assert load_settings(None).snapshot.baseline_tag == "benchmark-baseline"

    def test_yaml_overlay_merges_sections(self, tmp_path):
        from agency_bench.config import load_settings

        config_path = tmp_path / "benchmark.yaml"
        config_path.write_text(
            "paths:\n"
            "  project_path: workspace\n"
            "agent:\n"
            "  timeout_minutes: 5\n"
            "pricing:\n"
            "  local/model:\n"
            "    input: 0.001\n"
            "    output: 0.002\n"
        )

        loaded = load_settings(config_path)

        assert loaded.agent.timeout_minutes == 5
        assert loaded.agent.command == ["node", "orchestrator.cjs"]
        assert loaded.paths.project_path == tmp_path.resolve() / "workspace"
        assert loaded.pricing["local/model"].output == 0.002
        assert "openrouter/openai/gpt-4o-mini" in loaded.pricing

    def test_json_config_is_accepted(self, tmp_path):
        from agency_bench.config import load_settings

        config_path = tmp_path / "benchmark.json"
        config_path.write_text('{"snapshot": {"baseline_tag": "v0-base"}}')

        assert load_settings(config_path).snapshot.baseline_tag == "v0-base"

    def test_non_mapping_config_is_rejected(self, tmp_path):
        import pytest

        from agency_bench.config import load_settings

        config_path = tmp_path / "benchmark.yaml"
        config_path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            load_settings(config_path)


def test_configure_logging_returns_package_logger():
    from agency_bench.logging_config import configure_logging

    logger = configure_logging("debug")

    assert logger.name == "agency_bench"
    assert logger.getEffectiveLevel() == logging.DEBUG


def test_configure_logging_unknown_level_falls_back_to_info():
    from agency_bench.logging_config import configure_logging

    configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO
