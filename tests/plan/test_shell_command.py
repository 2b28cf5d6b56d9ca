"""Tests for ShellCommand rendering."""

from gcptools.plan.models import ShellCommand


class TestShellCommand:
    """Test rendering of commands."""
    
    def test_simple(self):
        """Test a single argv renders quoted."""
        command = ShellCommand.of("gcloud", "iam", "service-accounts", "create", "sa", "--display-name", "A B")
        
        assert command.is_simple
        assert command.render() == "gcloud iam service-accounts create sa --display-name 'A B'"
    
    def test_pipeline(self):
        """Test segments are joined with pipes."""
        command = ShellCommand(segments=[["kubectl", "create", "ns", "a", "--dry-run=client"], ["kubectl", "apply", "-f", "-"]])
        
        assert not command.is_simple
        assert command.render() == "kubectl create ns a --dry-run=client | kubectl apply -f -"
    
    def test_guarded(self):
        """Test skip_if renders an or-guard."""
        command = ShellCommand.of("gcloud", "iam", "service-accounts", "create", "sa", skip_if="gcloud iam service-accounts describe sa")
        
        assert not command.is_simple
        assert command.render() == (
            "gcloud iam service-accounts describe sa >/dev/null 2>&1 || gcloud iam service-accounts create sa"
        )
    
    def test_multiline(self):
        """Test long commands put one flag per line."""
        command = ShellCommand.of("gcloud", "x", "--a", "1", "--b", "2", "--c", "--d=4")
        
        assert command.render(multiline=True) == "gcloud x \\\n  --a 1 \\\n  --b 2 \\\n  --c \\\n  --d=4"
    
    def test_multiline_short_stays_single(self):
        """Test commands with few flags stay on one line."""
        command = ShellCommand.of("gcloud", "x", "--a", "1")
        assert command.render(multiline=True) == "gcloud x --a 1"
    
    def test_arguments(self):
        """Test arguments spans every segment."""
        command = ShellCommand(segments=[["a", "b"], ["c"]])
        assert command.arguments() == ["a", "b", "c"]
