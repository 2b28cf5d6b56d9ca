"""Tests for the run lifecycle state machine."""

import pytest
from gcptools.dispatch import RunLifecycle, RunPhase
from gcptools.utils.errors import GcpToolsError


class TestRunLifecycle:
    """Test allowed and illegal transitions."""
    
    def test_execute_path(self):
        """Test parsed -> fetched -> planned -> executed -> done."""
        lifecycle = RunLifecycle()
        for phase in (RunPhase.STATE_FETCHED, RunPhase.PLANNED, RunPhase.EXECUTED, RunPhase.DONE):
            lifecycle.advance(phase)
        
        assert lifecycle.finished
        assert lifecycle.history[0] == RunPhase.PARSED
    
    def test_script_path(self):
        """Test the script branch."""
        lifecycle = RunLifecycle()
        for phase in (RunPhase.STATE_FETCHED, RunPhase.PLANNED, RunPhase.SCRIPT_EMITTED, RunPhase.DONE):
            lifecycle.advance(phase)
        assert lifecycle.phase == RunPhase.DONE
    
    @pytest.mark.parametrize("path", [
        [RunPhase.STATE_FETCHED, RunPhase.FAILED],
        [RunPhase.STATE_FETCHED, RunPhase.PLANNED, RunPhase.FAILED],
        [RunPhase.STATE_FETCHED, RunPhase.PLANNED, RunPhase.EXECUTED, RunPhase.FAILED],
    ])
    def test_failed_reachable(self, path):
        """Test FAILED is reachable after fetch, planning and execution."""
        lifecycle = RunLifecycle()
        for phase in path:
            lifecycle.advance(phase)
        assert lifecycle.phase == RunPhase.FAILED
    
    def test_cannot_skip_fetch(self):
        """Test planning before fetching is illegal."""
        with pytest.raises(GcpToolsError):
            RunLifecycle().advance(RunPhase.PLANNED)
    
    def test_no_transition_after_done(self):
        """Test terminal phases are final."""
        lifecycle = RunLifecycle()
        lifecycle.advance(RunPhase.STATE_FETCHED)
        lifecycle.advance(RunPhase.DONE)
        with pytest.raises(GcpToolsError):
            lifecycle.advance(RunPhase.PLANNED)
    
    def test_script_cannot_fail_after_emit(self):
        """Test a written script cannot be re-labelled as failed."""
        lifecycle = RunLifecycle()
        for phase in (RunPhase.STATE_FETCHED, RunPhase.PLANNED, RunPhase.SCRIPT_EMITTED):
            lifecycle.advance(phase)
        with pytest.raises(GcpToolsError):
            lifecycle.advance(RunPhase.FAILED)
