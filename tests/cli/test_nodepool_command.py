"""Tests for the nodepool CLI commands."""

import pytest
from click.testing import CliRunner
from gcptools.cli.main import cli
from gcptools.cli.prompts import FixedDecisionPort

URL = "https://console.cloud.google.com/kubernetes/nodepool/us-central1/cluster-1/pool-a?project=proj-1"


@pytest.fixture
def pool_runner(fake_runner, node_pool_doc):
    fake_runner.on("node-pools", "describe", "pool-a", data=node_pool_doc)
    fake_runner.on("clusters", "describe", "cluster-1", stdout="1.30.2-gke.1000")
    fake_runner.not_found("node-pools", "describe", "pool-b")
    return fake_runner


def _invoke(runner, args, decisions=None):
    return CliRunner().invoke(cli, args, obj={"runner": runner, "decisions": decisions or FixedDecisionPort()})


class TestCloneCommand:
    """Test `gcptools nodepool clone`."""

    def test_emit_full_script(self, pool_runner, tmp_path):
        """Test the full clone script guards the create with a describe probe."""
        result = _invoke(pool_runner, [
            "nodepool", "clone", URL, "--name", "pool-b",
            "--mode", "full", "--output-dir", str(tmp_path),
        ])

        assert result.exit_code == 0
        content = (tmp_path / "pool-b-apply-full.sh").read_text()
        assert "# full plan for node_pool pool-b" in content
        assert "node-pools describe pool-b" in content
        assert "|| gcloud container node-pools create pool-b" in content
        assert "goog-gke" not in content

    def test_prompted_name(self, pool_runner, tmp_path):
        """Test the new name is prompted when --name is omitted."""
        decisions = FixedDecisionPort({"new_name": "pool-b"}, mode="n")

        result = _invoke(pool_runner, ["nodepool", "clone", URL, "--output-dir", str(tmp_path)], decisions)

        assert result.exit_code == 0
        assert decisions.asked == ["new_name", "mode"]
        assert (tmp_path / "pool-b-apply-minimal.sh").exists()

    def test_existing_target(self, pool_runner, node_pool_doc):
        """Test cloning onto an existing pool exits 1."""
        pool_runner.on("node-pools", "describe", "pool-b", data=node_pool_doc)

        result = _invoke(pool_runner, ["nodepool", "clone", URL, "--name", "pool-b", "--dry-run"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_invalid_name(self, pool_runner):
        """Test a malformed name exits 1."""
        result = _invoke(pool_runner, ["nodepool", "clone", URL, "--name", "Pool_B", "--dry-run"])

        assert result.exit_code == 1
        assert "Invalid node pool name" in result.output

    def test_version_fallback_warning(self, pool_runner, tmp_path):
        """Test the cluster version fallback is shown and written into the script."""
        pool_runner.fail("clusters", "describe")

        result = _invoke(pool_runner, [
            "nodepool", "clone", URL, "--name", "pool-b",
            "--mode", "minimal", "--output-dir", str(tmp_path),
        ])

        assert result.exit_code == 0
        assert "falling back to node pool version 1.29.1-gke.100" in result.output
        content = (tmp_path / "pool-b-apply-minimal.sh").read_text()
        assert "# WARNING: " in content

    def test_missing_project(self, fake_runner):
        """Test a URL without a project exits 1 before any provider call."""
        url = "https://console.cloud.google.com/kubernetes/nodepool/us-central1/cluster-1/pool-a"

        result = _invoke(fake_runner, ["nodepool", "clone", url, "--name", "pool-b", "--dry-run"])

        assert result.exit_code == 1
        assert "project" in result.output
        assert fake_runner.calls == []


class TestUpdateCommand:
    """Test `gcptools nodepool update`."""

    def test_execute_machine_type(self, pool_runner):
        """Test executing a machine type change."""
        result = _invoke(pool_runner, [
            "nodepool", "update", URL, "--machine-type", "e2-standard-8", "--mode", "execute",
        ])

        assert result.exit_code == 0
        updates = [c for c in pool_runner.joined_calls() if "node-pools update" in c]
        assert len(updates) == 1
        assert "--machine-type e2-standard-8" in updates[0]

    def test_prompts_machine_type(self, pool_runner):
        """Test the machine type is prompted when no option is given."""
        decisions = FixedDecisionPort({"machine_type": "e2-standard-8"})

        result = _invoke(pool_runner, ["nodepool", "update", URL, "--dry-run"], decisions)

        assert result.exit_code == 0
        assert decisions.asked == ["machine_type"]
        assert "machine_type: e2-standard-4" in result.output

    def test_labels_and_taints(self, pool_runner):
        """Test label and taint changes are planned as separate actions."""
        result = _invoke(pool_runner, [
            "nodepool", "update", URL,
            "--node-labels", "team=ml", "--node-taints", "dedicated=data:NO_SCHEDULE", "--dry-run",
        ])

        assert result.exit_code == 0
        assert "--node-labels team=ml" in result.output
        assert "--node-taints" not in result.output

    def test_no_change(self, pool_runner):
        """Test matching values report nothing to change."""
        result = _invoke(pool_runner, ["nodepool", "update", URL, "--machine-type", "e2-standard-4", "--dry-run"])

        assert result.exit_code == 0
        assert "Nothing to change" in result.output

    def test_invalid_autoscaling_range(self, pool_runner):
        """Test --min-nodes above --max-nodes exits 1."""
        result = _invoke(pool_runner, ["nodepool", "update", URL, "--min-nodes", "5", "--max-nodes", "2", "--dry-run"])

        assert result.exit_code == 1
        assert "--min-nodes" in result.output

    def test_disk_shrink_rejected(self, pool_runner):
        """Test a smaller boot disk exits 1 without planning an update."""
        result = _invoke(pool_runner, ["nodepool", "update", URL, "--disk-size", "50", "--dry-run"])

        assert result.exit_code == 1
        assert "must be larger" in result.output
        assert not any("node-pools update" in c for c in pool_runner.joined_calls())

    def test_bounds_turn_on_autoscaling(self, fake_runner, node_pool_doc):
        """Test --min-nodes/--max-nodes alone on a fixed-size pool enable autoscaling."""
        node_pool_doc["autoscaling"] = {}
        fake_runner.on("node-pools", "describe", "pool-a", data=node_pool_doc)

        result = _invoke(fake_runner, ["nodepool", "update", URL, "--min-nodes", "2", "--max-nodes", "6", "--dry-run"])

        assert result.exit_code == 0
        assert "--no-enable-autoscaling" not in result.output
        assert "--min-nodes 2" in result.output
