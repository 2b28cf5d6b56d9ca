"""Tests for the Workload Identity bind operation."""

import pytest
from gcptools.config import ToolSettings
from gcptools.locator import parse_workload_identity_args
from gcptools.operations import WorkloadIdentityBind, policy_has_binding, workload_member
from gcptools.plan import ActionTier
from gcptools.state.provider import StateProvider

EMAIL = "web-gsa@proj-1.iam.gserviceaccount.com"
MEMBER = "serviceAccount:proj-1.svc.id.goog[apps/web]"


@pytest.fixture
def identity():
    return parse_workload_identity_args("proj-1,apps,web,web-gsa")


def _bind(identity, runner):
    op = WorkloadIdentityBind(identity, StateProvider(runner), ToolSettings())
    op.fetch_state()
    return op


@pytest.fixture
def empty_runner(fake_runner):
    fake_runner.not_found("get", "namespace", "apps")
    fake_runner.not_found("service-accounts", "describe")
    return fake_runner


@pytest.fixture
def bound_runner(fake_runner):
    fake_runner.on("get", "namespace", "apps", data={"metadata": {"name": "apps"}})
    fake_runner.on("kubectl", "get", "serviceaccount", "web", data={
        "metadata": {"name": "web", "annotations": {"iam.gke.io/gcp-service-account": EMAIL}},
    })
    fake_runner.on("service-accounts", "describe", data={"email": EMAIL})
    fake_runner.on("service-accounts", "get-iam-policy", data={
        "bindings": [{"role": "roles/iam.workloadIdentityUser", "members": [MEMBER]}],
    })
    return fake_runner


class TestHelpers:
    """Test member and policy helpers."""

    def test_workload_member(self):
        """Test the KSA member string."""
        assert workload_member("proj-1", "apps", "web") == MEMBER

    def test_policy_has_binding(self):
        """Test binding lookup by role and member."""
        policy = {"bindings": [{"role": "roles/viewer", "members": [MEMBER]}]}

        assert policy_has_binding(policy, "roles/viewer", MEMBER)
        assert not policy_has_binding(policy, "roles/iam.workloadIdentityUser", MEMBER)
        assert not policy_has_binding(None, "roles/viewer", MEMBER)


class TestWorkloadIdentityBind:
    """Test planning a Workload Identity binding."""

    def test_fetch_state_all_missing(self, identity, empty_runner):
        """Test a missing namespace skips the KSA lookup and reports everything absent."""
        op = _bind(identity, empty_runner)

        assert op.current == {
            "namespace": False, "ksa": False, "gsa": False, "iam_binding": False, "annotation": False,
        }
        kubectl_calls = [c for c in empty_runner.joined_calls() if c.startswith("kubectl ")]
        assert kubectl_calls == ["kubectl get namespace apps -o json"]

    def test_empty_state_orders_create_bind_annotate(self, identity, empty_runner):
        """Test creation precedes binding precedes annotation."""
        plan = _bind(identity, empty_runner).plan({})

        keys = [a.key for a in plan.minimal]
        assert keys == ["namespace", "ksa", "gsa", "iam_binding", "annotation"]
        assert keys.index("gsa") < keys.index("iam_binding")
        tiers = [a.tier for a in plan.minimal]
        assert tiers == sorted(tiers)
        assert tiers[-1] == ActionTier.ANNOTATE

    def test_binding_and_annotation_commands(self, identity, empty_runner):
        """Test the IAM binding and annotation arguments."""
        plan = _bind(identity, empty_runner).plan({})
        by_key = {a.key: a for a in plan.minimal}

        binding = by_key["iam_binding"].arguments()
        assert binding[binding.index("--role") + 1] == "roles/iam.workloadIdentityUser"
        assert binding[binding.index("--member") + 1] == MEMBER
        assert f"iam.gke.io/gcp-service-account={EMAIL}" in by_key["annotation"].arguments()

    def test_fully_bound_is_noop(self, identity, bound_runner):
        """Test nothing is required when every piece exists."""
        plan = _bind(identity, bound_runner).plan({})

        assert plan.is_noop
        assert len(plan.full) == 5

    def test_partial_state(self, identity, bound_runner):
        """Test only the missing annotation is required."""
        bound_runner.on("kubectl", "get", "serviceaccount", "web", data={"metadata": {"name": "web"}})

        plan = _bind(identity, bound_runner).plan({})

        assert [a.key for a in plan.minimal] == ["annotation"]

    def test_full_plan_is_rerunnable(self, identity, empty_runner):
        """Test the full bootstrap uses apply pipelines and a guarded GSA create."""
        plan = _bind(identity, empty_runner).plan({})
        by_key = {a.key: a for a in plan.full}

        namespace = by_key["namespace"].commands[0]
        assert len(namespace.segments) == 2
        assert namespace.segments[0][-3:] == ["--dry-run=client", "-o", "yaml"]
        assert namespace.segments[1] == ["kubectl", "apply", "-f", "-"]
        assert f"service-accounts describe {EMAIL}" in by_key["gsa"].commands[0].skip_if
        assert by_key["gsa"].commands[0].render().startswith("gcloud iam service-accounts describe")

    def test_required_create_is_plain(self, identity, empty_runner):
        """Test the minimal namespace create is a single unguarded command."""
        plan = _bind(identity, empty_runner).plan({})

        command = plan.minimal[0].commands[0]
        assert command.is_simple
        assert command.argv == ["kubectl", "create", "namespace", "apps"]

    def test_script_resource(self, identity, empty_runner):
        """Test scripts are named after the namespace."""
        assert _bind(identity, empty_runner).script_resource({}) == "apps-workload-identity"

    def test_summary(self, identity, bound_runner):
        """Test the state summary lists each piece."""
        rows = dict(_bind(identity, bound_runner).current_summary())

        assert rows["Namespace apps"] == "exists"
        assert rows[f"GSA {EMAIL}"] == "exists"
