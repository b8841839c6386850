"""Tests for agent output heuristics."""

from agency_bench.parser.agent_output import (
    count_iterations,
    parse_agent_output,
    parse_errors,
    parse_token_usage,
)


class TestOutcomeBasics:
    """Test exit-code and default handling."""

    def test_success_follows_exit_code(self):
        assert parse_agent_output("", "", 0).success is True
        assert parse_agent_output("", "", 2).success is False
        assert parse_agent_output("", "", None).success is False

    def test_always_autonomous(self):
        assert parse_agent_output("", "", 1).autonomous is True

    def test_unmentioned_kpis_stay_false(self):
        """A KPI whose tool never appears is not judged at all."""
        kpis = parse_agent_output("all done", "", 0).kpis_passed

        assert kpis.model_dump() == {
            "typescript": False,
            "lint": False,
            "build": False,
            "tests": False,
        }


class TestKpiHeuristics:
    """Test each KPI's substring rule."""

    def test_typescript_passes_without_ts_error(self):
        assert parse_agent_output("TypeScript check ok", "", 0).kpis_passed.typescript is True

    def test_typescript_fails_on_ts_error_in_stderr(self):
        outcome = parse_agent_output("running type-check", "TS error in App.vue", 0)

        assert outcome.kpis_passed.typescript is False

    def test_lint_fails_on_cross_mark_or_error(self):
        assert parse_agent_output("ESLint clean", "", 0).kpis_passed.lint is True
        assert parse_agent_output("ESLint ✖ 2 problems", "", 0).kpis_passed.lint is False
        assert parse_agent_output("lint: 1 error", "", 0).kpis_passed.lint is False

    def test_build_passes_when_built_in_despite_failed(self):
        """'built in' wins over a stray 'failed'."""
        outcome = parse_agent_output("vite build: built in 2s (1 chunk failed to minify)", "", 0)

        assert outcome.kpis_passed.build is True

    def test_build_fails_on_failed(self):
        assert parse_agent_output("build failed", "", 1).kpis_passed.build is False

    def test_tests_require_passed_and_no_failed(self):
        assert parse_agent_output("vitest: 10 passed", "", 0).kpis_passed.tests is True
        assert parse_agent_output("test run: 9 passed, 1 failed", "", 0).kpis_passed.tests is False
        assert parse_agent_output("running tests", "", 0).kpis_passed.tests is False


class TestExtraction:
    """Test iteration, token and error extraction."""

    def test_iterations_default_to_one(self):
        assert count_iterations("nothing relevant") == 1

    def test_iterations_count_markers_case_insensitively(self):
        assert count_iterations("Iteration 1\nRETRY build\nentering fix loop") == 3

    def test_token_usage(self):
        usage = parse_token_usage("Summary -- Tokens: 1500 input, 320 output")

        assert usage.input_tokens == 1500
        assert usage.output_tokens == 320
        assert usage.model == "unknown"

    def test_no_token_usage(self):
        assert parse_token_usage("tokens unknown") is None

    def test_errors_use_full_match_as_message(self):
        errors = parse_errors("ok\nError: cannot find module 'x'\nerror compiling App.vue\n")

        assert [e.message for e in errors] == [
            "Error: cannot find module 'x'",
            "error compiling App.vue",
        ]
        assert all(e.type == "runtime" and e.phase == "execution" for e in errors)
        assert all(e.recoverable for e in errors)

    def test_errors_reported_with_zero_exit(self):
        """Embedded errors never change success."""
        outcome = parse_agent_output("error: retried and recovered", "", 0)

        assert outcome.success is True
        assert len(outcome.errors) == 1
