"""Validation data models for task graphs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from taskgraph.core.models import Task, TagStore


@dataclass
class Violation:
    """
    A single integrity finding.

    ``path`` holds the offending ids as strings: ``[id]`` for duplicates,
    ``[owner, dependency]`` for edge problems and the ordered loop for cycles.
    """

    kind: str
    path: List[str]
    message: str
    severity: str = "error"
    # Raw dependency entry as stored, for edge violations
    value: Optional[Union[int, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind,
            "path": list(self.path),
            "message": self.message,
            "severity": self.severity,
        }
        if self.value is not None:
            payload["value"] = self.value
        return payload


@dataclass
class ValidationResult:
    """
    Validation result for one tag's task list.
    """

    valid: bool
    violations: List[Violation] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    tag: Optional[str] = None

    @property
    def counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for violation in self.violations:
            counts[violation.kind] = counts.get(violation.kind, 0) + 1
        return counts

    def by_kind(self, kind: str) -> List[Violation]:
        return [v for v in self.violations if v.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "valid": self.valid,
            "violation_count": len(self.violations),
            "counts": self.counts,
            "violations": [v.to_dict() for v in self.violations],
            "cycles": [list(c) for c in self.cycles],
        }
        if self.tag is not None:
            payload["tag"] = self.tag
        return payload


@dataclass
class StoreValidationResult:
    """
    Validation results for one tag or every tag of a store.
    """

    results: Dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return all(r.valid for r in self.results.values())

    @property
    def violation_count(self) -> int:
        return sum(len(r.violations) for r in self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "violation_count": self.violation_count,
            "tags": {name: r.to_dict() for name, r in self.results.items()},
        }


@dataclass
class Change:
    """
    A repair applied by the fixer.
    """

    task_id: str
    dependency_id: str
    reason: str
    kind: str = "removed-dependency"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "task_id": self.task_id,
            "dependency_id": self.dependency_id,
            "reason": self.reason,
        }


@dataclass
class TaskFixOutcome:
    """
    Output of fixing a bare task list.
    """

    tasks: List[Task]
    changes: List[Change] = field(default_factory=list)
    unfixable: List[Violation] = field(default_factory=list)
    iterations: int = 0


@dataclass
class FixResult:
    """
    Outcome of running the fixer on a tag.
    """

    tag: str
    store: TagStore
    changes: List[Change] = field(default_factory=list)
    unfixable: List[Violation] = field(default_factory=list)
    iterations: int = 0

    @property
    def fixed(self) -> bool:
        return not self.unfixable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "fixed": self.fixed,
            "change_count": len(self.changes),
            "changes": [c.to_dict() for c in self.changes],
            "unfixable": [v.to_dict() for v in self.unfixable],
            "iterations": self.iterations,
        }
