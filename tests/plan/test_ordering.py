"""Tests for tier-bucketed action ordering."""

import pytest
from gcptools.plan import Action, ActionTier, ShellCommand, order_actions
from gcptools.utils.errors import PlanOrderError


def _action(key, tier, depends_on=()):
    return Action(
        key=key,
        description=key,
        commands=[ShellCommand.of("echo", key)],
        tier=tier,
        depends_on=list(depends_on),
    )


class TestOrderActions:
    """Test ordering rules."""
    
    def test_tiers_ascending(self):
        """Test create precedes bind precedes annotate whatever the input order."""
        actions = [
            _action("annotate", ActionTier.ANNOTATE),
            _action("bind", ActionTier.BIND),
            _action("create", ActionTier.CREATE),
        ]
        assert [a.key for a in order_actions(actions)] == ["create", "bind", "annotate"]
    
    def test_dependencies_within_tier(self):
        """Test depends_on is honoured inside a tier."""
        actions = [
            _action("ksa", ActionTier.CREATE, depends_on=["namespace"]),
            _action("gsa", ActionTier.CREATE),
            _action("namespace", ActionTier.CREATE),
        ]
        keys = [a.key for a in order_actions(actions)]
        
        assert keys.index("namespace") < keys.index("ksa")
        assert keys == ["gsa", "namespace", "ksa"]
    
    def test_declaration_order_breaks_ties(self):
        """Test independent actions keep their input order."""
        actions = [_action(k, ActionTier.MODIFY) for k in ("c", "a", "b")]
        assert [a.key for a in order_actions(actions)] == ["c", "a", "b"]
    
    def test_dependency_on_later_tier(self):
        """Test depending on a later tier is an ordering error."""
        actions = [
            _action("create", ActionTier.CREATE, depends_on=["bind"]),
            _action("bind", ActionTier.BIND),
        ]
        with pytest.raises(PlanOrderError):
            order_actions(actions)
    
    def test_cycle(self):
        """Test cycles are rejected."""
        actions = [
            _action("a", ActionTier.MODIFY, depends_on=["b"]),
            _action("b", ActionTier.MODIFY, depends_on=["a"]),
        ]
        with pytest.raises(PlanOrderError):
            order_actions(actions)
    
    def test_missing_dependency_ignored(self):
        """Test a dependency already satisfied (not in the plan) is ignored."""
        actions = [_action("bind", ActionTier.BIND, depends_on=["gsa"])]
        assert [a.key for a in order_actions(actions)] == ["bind"]
    
    def test_duplicate_keys(self):
        """Test duplicate keys are rejected."""
        with pytest.raises(PlanOrderError):
            order_actions([_action("a", ActionTier.MODIFY), _action("a", ActionTier.MODIFY)])
