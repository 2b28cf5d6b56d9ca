"""Tests for script rendering."""

from gcptools.dispatch import render_script, script_name
from gcptools.locator import ResourceIdentity, ResourceKind
from gcptools.plan import Action, ActionTier, Plan, ShellCommand


def _plan(diagnostics=None):
    identity = ResourceIdentity(kind=ResourceKind.NODE_POOL, project="p", location="us-central1", parent="c", name="pool-b")
    action = Action(
        key="create",
        description="Create node pool pool-b",
        fields=["machine_type"],
        commands=[ShellCommand.of(
            "gcloud", "container", "node-pools", "create", "pool-b",
            "--cluster", "c", "--location", "us-central1", "--project", "p", "--machine-type", "e2-medium",
            skip_if="gcloud container node-pools describe pool-b",
        )],
        tier=ActionTier.CREATE,
    )
    return Plan(identity=identity, minimal=[action], full=[action], diagnostics=diagnostics or [])


class TestRenderScript:
    """Test generated script content."""
    
    def test_header(self):
        """Test shebang, strict mode and identity comments come first."""
        plan = _plan()
        lines = render_script(plan, plan.full, "full").splitlines()
        
        assert lines[0] == "#!/usr/bin/env bash"
        assert lines[1] == "set -euo pipefail"
        assert "# project:  p" in lines
        assert "# Create node pool pool-b" in lines
    
    def test_deterministic(self):
        """Test the same plan renders byte-identical scripts."""
        plan = _plan()
        assert render_script(plan, plan.full, "full") == render_script(_plan(), _plan().full, "full")
    
    def test_diagnostics_as_comments(self):
        """Test diagnostics appear as warning comments."""
        plan = _plan(["Cluster version unavailable"])
        assert "# WARNING: Cluster version unavailable" in render_script(plan, plan.full, "full")
    
    def test_guard_rendered(self):
        """Test guarded commands keep their existence probe."""
        plan = _plan()
        content = render_script(plan, plan.full, "full")
        assert "gcloud container node-pools describe pool-b >/dev/null 2>&1 || gcloud container node-pools create pool-b" in content
    
    def test_empty(self):
        """Test an empty action list still renders a valid script."""
        plan = _plan()
        content = render_script(plan, [], "minimal")
        
        assert "# Nothing to change" in content
        assert content.startswith("#!/usr/bin/env bash\nset -euo pipefail\n")


def test_script_name_sanitized():
    """Test unsafe characters are replaced in file names."""
    assert script_name("apps", "full") == "apps-apply-full.sh"
    assert script_name("user:a@b.com", "minimal") == "user-a-b.com-apply-minimal.sh"
