"""Shared fixtures: a scripted command runner and sample provider documents."""

import json
import pytest
from gcptools.state.runner import CommandResult


class FakeRunner:
    """
    Command runner returning scripted results.
    
    Responses are matched by substrings of the joined argv; the most recently
    registered match wins. Unmatched commands succeed with empty output.
    """
    
    def __init__(self):
        self.responses = []
        self.calls = []
    
    def on(self, *needles, stdout="", stderr="", returncode=0, data=None):
        if data is not None:
            stdout = json.dumps(data)
        self.responses.append((needles, CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)))
        return self
    
    def not_found(self, *needles):
        return self.on(*needles, returncode=1, stderr="ERROR: (gcloud) NOT_FOUND: resource was not found")
    
    def fail(self, *needles, stderr="boom"):
        return self.on(*needles, returncode=1, stderr=stderr)
    
    def run(self, argv, input_text=None):
        self.calls.append(list(argv))
        joined = " ".join(argv)
        for needles, result in reversed(self.responses):
            if all(n in joined for n in needles):
                return result.model_copy(update={"argv": list(argv)})
        return CommandResult(argv=list(argv))
    
    def joined_calls(self):
        return [" ".join(call) for call in self.calls]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def node_pool_doc():
    """``gcloud container node-pools describe --format=json`` output."""
    return {
        "name": "pool-a",
        "version": "1.29.1-gke.100",
        "initialNodeCount": 3,
        "locations": ["us-central1-a", "us-central1-b"],
        "config": {
            "machineType": "e2-standard-4",
            "diskSizeGb": 100,
            "diskType": "pd-balanced",
            "imageType": "COS_CONTAINERD",
            "serviceAccount": "nodes@proj-1.iam.gserviceaccount.com",
            "oauthScopes": ["https://www.googleapis.com/auth/cloud-platform"],
            "labels": {"team": "data"},
            "resourceLabels": {"env": "prod", "goog-gke-node-pool-provisioning-model": "on-demand"},
            "taints": [{"key": "dedicated", "value": "data", "effect": "NO_SCHEDULE"}],
            "metadata": {"disable-legacy-endpoints": "true"},
        },
        "autoscaling": {"enabled": True, "minNodeCount": 1, "maxNodeCount": 5},
        "management": {"autoUpgrade": True, "autoRepair": True},
        "upgradeSettings": {"maxSurge": 1, "maxUnavailable": 0},
        "networkConfig": {"podRange": "pods-range", "podIpv4CidrBlock": "10.4.0.0/14"},
        "maxPodsConstraint": {"maxPodsPerNode": "110"},
    }


@pytest.fixture
def instance_doc():
    """``gcloud compute instances describe --format=json`` output."""
    return {
        "name": "vm-1",
        "zone": "https://www.googleapis.com/compute/v1/projects/proj-1/zones/us-central1-a",
        "machineType": "https://www.googleapis.com/compute/v1/projects/proj-1/zones/us-central1-a/machineTypes/e2-medium",
        "status": "RUNNING",
        "cpuPlatform": "Intel Broadwell",
        "serviceAccounts": [{"email": "old@proj-1.iam.gserviceaccount.com"}],
        "networkInterfaces": [{"networkIP": "10.0.0.2"}],
        "disks": [
            {
                "index": 0,
                "deviceName": "persistent-disk-0",
                "source": "https://www.googleapis.com/compute/v1/projects/proj-1/zones/us-central1-a/disks/vm-1",
                "diskSizeGb": "20",
                "boot": True,
            },
            {
                "index": 1,
                "deviceName": "data",
                "source": "https://www.googleapis.com/compute/v1/projects/proj-1/zones/us-central1-a/disks/data-disk",
                "diskSizeGb": "50",
            },
        ],
    }


@pytest.fixture
def disk_doc():
    """``gcloud compute disks describe --format=json`` output for an attached disk."""
    return {
        "name": "data-disk",
        "sizeGb": "50",
        "type": "https://www.googleapis.com/compute/v1/projects/proj-1/zones/us-central1-a/diskTypes/pd-ssd",
        "users": ["https://www.googleapis.com/compute/v1/projects/proj-1/zones/us-central1-a/instances/vm-1"],
    }
