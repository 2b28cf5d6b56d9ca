"""Field comparators and value normalization."""

from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional
from .models import Comparator, FieldDelta
from ..utils.errors import InvalidResizeError

TAINT_EFFECTS = {
    "NO_SCHEDULE": "NoSchedule",
    "NO_EXECUTE": "NoExecute",
    "PREFER_NO_SCHEDULE": "PreferNoSchedule",
}


def normalize_taint_effect(effect: Optional[str]) -> str:
    """Map provider taint-effect enums to Kubernetes names; canonical names pass through."""
    if not effect:
        return ""
    return TAINT_EFFECTS.get(effect, effect)


def normalize_taint(taint: Any) -> str:
    """
    Canonical ``key=value:Effect`` form of a taint.
    
    Accepts provider dicts (``{"key", "value", "effect"}``) or strings.
    """
    if isinstance(taint, dict):
        key = taint.get("key", "")
        value = taint.get("value") or ""
        return f"{key}={value}:{normalize_taint_effect(taint.get('effect'))}"
    text = str(taint).strip()
    if ":" not in text:
        return text
    head, effect = text.rsplit(":", 1)
    if "=" not in head:
        head = f"{head}="
    return f"{head}:{normalize_taint_effect(effect)}"


def _items(value: Any) -> Iterable[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, dict):
        return [f"{k}={v}" for k, v in value.items()]
    return [str(item).strip() for item in value if str(item).strip()]


def as_set(value: Any) -> FrozenSet[str]:
    """Default set normalization: lists, comma strings and dicts (as ``k=v``)."""
    return frozenset(_items(value))


def taint_set(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    return frozenset(normalize_taint(t) for t in value)


def is_reserved_label(key: str, prefixes: Iterable[str]) -> bool:
    return any(str(key).startswith(prefix) for prefix in prefixes)


def strip_reserved_labels(labels: Any, prefixes: Iterable[str]) -> Dict[str, str]:
    """Labels without system-managed keys. Accepts dicts, ``k=v`` lists or comma strings."""
    prefixes = tuple(prefixes)
    if labels is None:
        return {}
    if isinstance(labels, dict):
        pairs = labels.items()
    else:
        pairs = []
        for item in _items(labels):
            key, _, value = item.partition("=")
            pairs.append((key.strip(), value.strip()))
    return {k: str(v) for k, v in pairs if not is_reserved_label(k, prefixes)}


def label_set(prefixes: Iterable[str]) -> Callable[[Any], FrozenSet[str]]:
    """Set normalizer for label fields excluding reserved prefixes."""
    prefixes = tuple(prefixes)
    
    def normalize(value: Any) -> FrozenSet[str]:
        return as_set(strip_reserved_labels(value, prefixes))
    
    return normalize


def to_size(value: Any, label: str = "size") -> int:
    """
    Parse a positive integer size; ``"100GB"`` is accepted.
    
    Raises:
        InvalidResizeError: If the value is not a whole number
    """
    if isinstance(value, bool):
        raise InvalidResizeError(f"Invalid {label}: {value!r}. Please enter a number.")
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    if text.endswith("GB"):
        text = text[:-2].strip()
    if not text.isdigit():
        raise InvalidResizeError(f"Invalid {label}: {value!r}. Please enter a number.")
    return int(text)


def _exact(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def compare_field(
    name: str,
    comparator: Comparator,
    current: Any,
    desired: Any,
    explicit: bool = False,
    normalize: Optional[Callable[[Any], Any]] = None,
) -> FieldDelta:
    """
    Compare one field and return its delta.
    
    Raises:
        InvalidResizeError: For an explicit GREATER_THAN target that is not
            numeric or not strictly larger than the current value
    """
    if comparator == Comparator.EXACT:
        differs = _exact(current) != _exact(desired)
    elif comparator == Comparator.SET:
        norm = normalize or as_set
        differs = norm(current) != norm(desired)
    elif comparator == Comparator.GREATER_THAN:
        differs = False
        if current is None:
            differs = desired is not None
            if differs:
                desired = to_size(desired, name)
        elif explicit:
            desired = to_size(desired, name)
            current_size = to_size(current, name)
            if desired <= current_size:
                raise InvalidResizeError(
                    f"New {name} must be larger than current {name} ({current_size}), got {desired}"
                )
            differs = True
    elif comparator == Comparator.PRESENCE:
        differs = bool(desired) and not bool(current)
    else:
        raise ValueError(f"Unknown comparator: {comparator}")
    
    return FieldDelta(
        field=name,
        current=current,
        desired=desired,
        comparator=comparator,
        explicit=explicit,
        differs=differs,
    )
