"""Tests for plan execution and script emission."""

import os
import pytest
from gcptools.config import ToolSettings
from gcptools.dispatch import DispatchMode, DispatchStatus, OutcomeStatus, dispatch
from gcptools.locator import ResourceIdentity, ResourceKind
from gcptools.plan import Action, ActionTier, Classification, Plan, ShellCommand


@pytest.fixture
def identity():
    return ResourceIdentity(kind=ResourceKind.WORKLOAD_IDENTITY, project="p", location="apps", parent="web", name="web-gsa")


def _action(key, *argv, tier=ActionTier.MODIFY, classification=Classification.REQUIRED, command=None):
    return Action(
        key=key,
        description=f"step {key}",
        fields=[key],
        commands=[command or ShellCommand.of(*argv)],
        tier=tier,
        classification=classification,
    )


@pytest.fixture
def three_step_plan(identity):
    minimal = [_action(k, "tool", k) for k in ("one", "two", "three")]
    full = [_action(k, "tool", k, classification=Classification.DECLARATIVE) for k in ("one", "two", "three")]
    return Plan(identity=identity, minimal=minimal, full=full)


class TestExecute:
    """Test EXECUTE mode."""
    
    def test_runs_all_in_order(self, fake_runner, three_step_plan):
        """Test every minimal action runs once, in order."""
        result = dispatch(three_step_plan, DispatchMode.EXECUTE, runner=fake_runner)
        
        assert result.status == DispatchStatus.SUCCEEDED
        assert result.succeeded == 3
        assert fake_runner.calls == [["tool", "one"], ["tool", "two"], ["tool", "three"]]
    
    def test_fail_fast(self, fake_runner, three_step_plan):
        """Test a failing second action stops the run: 1 succeeded, 1 failed, 1 not attempted."""
        fake_runner.fail("tool two", stderr="quota exceeded")
        
        result = dispatch(three_step_plan, DispatchMode.EXECUTE, runner=fake_runner)
        
        assert result.status == DispatchStatus.FAILED
        assert (result.succeeded, result.failed, result.not_attempted) == (1, 1, 1)
        assert [o.status for o in result.outcomes] == [
            OutcomeStatus.SUCCEEDED, OutcomeStatus.FAILED, OutcomeStatus.NOT_ATTEMPTED,
        ]
        assert "step two" in result.error
        assert "quota exceeded" in result.error
        assert len(fake_runner.calls) == 2
    
    def test_no_retry(self, fake_runner, three_step_plan):
        """Test a failed action is attempted exactly once."""
        fake_runner.fail("tool one")
        dispatch(three_step_plan, DispatchMode.EXECUTE, runner=fake_runner)
        assert fake_runner.calls == [["tool", "one"]]
    
    def test_empty_plan_is_success(self, fake_runner, identity):
        """Test zero actions is a no-op success."""
        result = dispatch(Plan(identity=identity), DispatchMode.EXECUTE, runner=fake_runner)
        
        assert result.ok
        assert result.outcomes == []
        assert fake_runner.calls == []
    
    def test_pipeline_runs_through_bash(self, fake_runner, identity):
        """Test piped and guarded commands are run by bash with pipefail."""
        command = ShellCommand(segments=[["kubectl", "create", "ns", "apps", "--dry-run=client"], ["kubectl", "apply", "-f", "-"]])
        plan = Plan(identity=identity, minimal=[_action("ns", command=command)])
        
        dispatch(plan, DispatchMode.EXECUTE, runner=fake_runner)
        
        assert fake_runner.calls[0][:4] == ["bash", "-o", "pipefail", "-c"]
        assert fake_runner.calls[0][4] == command.render()


class TestEmit:
    """Test EMIT_MINIMAL and EMIT_FULL modes."""
    
    def test_emit_minimal(self, fake_runner, three_step_plan, tmp_path):
        """Test a minimal script is written, executable, and nothing runs."""
        result = dispatch(three_step_plan, DispatchMode.EMIT_MINIMAL, runner=fake_runner, output_dir=str(tmp_path), resource="apps")
        
        path = tmp_path / "apps-apply-minimal.sh"
        assert result.script_path == str(path)
        assert path.exists()
        assert os.stat(path).st_mode & 0o777 == 0o755
        assert fake_runner.calls == []
    
    def test_emit_full_uses_settings_header(self, three_step_plan, tmp_path):
        """Test the full script uses the configured header lines."""
        settings = ToolSettings(shebang="#!/bin/bash", strict_mode="set -eu")
        dispatch(three_step_plan, DispatchMode.EMIT_FULL, output_dir=str(tmp_path), settings=settings)
        
        content = (tmp_path / "web-gsa-apply-full.sh").read_text()
        assert content.startswith("#!/bin/bash\nset -eu\n")
    
    def test_mode_from_string(self, three_step_plan, tmp_path):
        """Test modes may be given by value."""
        result = dispatch(three_step_plan, "full", output_dir=str(tmp_path))
        assert result.mode == DispatchMode.EMIT_FULL


class TestDispatchMode:
    """Test operator answers."""
    
    @pytest.mark.parametrize("answer,mode", [
        ("y", DispatchMode.EXECUTE),
        ("N", DispatchMode.EMIT_MINIMAL),
        ("f", DispatchMode.EMIT_FULL),
        ("minimal", DispatchMode.EMIT_MINIMAL),
    ])
    def test_from_choice(self, answer, mode):
        """Test prompt letters and mode values map to modes."""
        assert DispatchMode.from_choice(answer) == mode
    
    def test_unknown_choice(self):
        """Test unknown answers are rejected."""
        with pytest.raises(ValueError):
            DispatchMode.from_choice("maybe")
