"""Tests for flat input files and principal validation."""

import pytest
from gcptools.locator import read_list_file, validate_principal
from gcptools.utils.errors import ParseError


class TestReadListFile:
    """Test one-entry-per-line files."""
    
    def test_skips_comments_and_blanks(self, tmp_path):
        """Test comments and blank lines are ignored and whitespace trimmed."""
        path = tmp_path / "roles.txt"
        path.write_text("# roles\nroles/viewer\n\n   roles/editor  \n  # indented comment\n")
        
        assert read_list_file(str(path)) == ["roles/viewer", "roles/editor"]
    
    def test_missing_file(self, tmp_path):
        """Test a missing file is a parse error."""
        with pytest.raises(ParseError):
            read_list_file(str(tmp_path / "nope.txt"))
    
    def test_directory(self, tmp_path):
        """Test a directory is rejected."""
        with pytest.raises(ParseError):
            read_list_file(str(tmp_path))


class TestValidatePrincipal:
    """Test IAM member validation."""
    
    @pytest.mark.parametrize("member", [
        "user:jane@example.com",
        "group:devops@example.com",
        "serviceAccount:ci@proj.iam.gserviceaccount.com",
    ])
    def test_valid(self, member):
        """Test supported member types pass."""
        assert validate_principal(f"  {member} ") == member
    
    @pytest.mark.parametrize("member", ["jane@example.com", "domain:example.com", "user:", ""])
    def test_invalid(self, member):
        """Test unsupported or incomplete members fail."""
        with pytest.raises(ParseError):
            validate_principal(member)
