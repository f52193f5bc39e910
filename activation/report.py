"""Activation report: ordered, read-only record of every module's verdict."""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from activation.conditions import ConditionOutcome


class VerdictKind(str, Enum):
    ACTIVATED = "activated"
    EXCLUDED = "excluded"
    CONDITION_FAILED = "condition_failed"


@dataclass(frozen=True, slots=True)
class Verdict:
    module: str
    ordinal: int
    kind: VerdictKind
    reason: str
    outcomes: Tuple[ConditionOutcome, ...] = ()

    @property
    def activated(self) -> bool:
        return self.kind is VerdictKind.ACTIVATED

    def as_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "ordinal": self.ordinal,
            "verdict": self.kind.value,
            "reason": self.reason,
            "conditions": [o.as_dict() for o in self.outcomes],
        }


class ActivationReport:
    """Verdicts in resolution order, one per catalog module.

    Built once by the resolver; exposes no mutation API.
    """

    __slots__ = ("_verdicts", "_by_name")

    def __init__(self, verdicts: Iterable[Verdict]) -> None:
        self._verdicts: Tuple[Verdict, ...] = tuple(verdicts)
        self._by_name: Dict[str, Verdict] = {
            v.module: v for v in self._verdicts
        }

    def __iter__(self) -> Iterator[Verdict]:
        return iter(self._verdicts)

    def __len__(self) -> int:
        return len(self._verdicts)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ActivationReport):
            return NotImplemented
        return self._verdicts == other._verdicts

    __hash__ = None  # type: ignore[assignment]

    @property
    def verdicts(self) -> Tuple[Verdict, ...]:
        return self._verdicts

    def get(self, name: str) -> Verdict:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(
                f"Module '{name}' not in activation report"
            ) from None

    verdict_for = get

    def activated(self) -> List[Verdict]:
        return self.by_kind(VerdictKind.ACTIVATED)

    def activated_names(self) -> List[str]:
        return [v.module for v in self.activated()]

    def by_kind(self, kind: VerdictKind | str) -> List[Verdict]:
        kind = VerdictKind(kind)
        return [v for v in self._verdicts if v.kind is kind]

    def counts(self) -> Dict[str, int]:
        counts = {k.value: 0 for k in VerdictKind}
        for v in self._verdicts:
            counts[v.kind.value] += 1
        return counts

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [v.as_dict() for v in self._verdicts]

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(
            {"verdicts": self.as_dicts(), "counts": self.counts()},
            indent=indent,
            sort_keys=True,
        )

    def render_text(self) -> str:
        """Human readable audit table (one line per module)."""
        if not self._verdicts:
            return "(no modules)\n"
        name_w = max(len(v.module) for v in self._verdicts)
        kind_w = max(len(k.value) for k in VerdictKind)
        lines = []
        for v in self._verdicts:
            lines.append(
                f"{v.ordinal:>3}  {v.module:<{name_w}}  "
                f"{v.kind.value:<{kind_w}}  {v.reason}"
            )
        c = self.counts()
        lines.append(
            f"-- activated={c['activated']} excluded={c['excluded']} "
            f"condition_failed={c['condition_failed']}"
        )
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        c = self.counts()
        return (
            f"ActivationReport(modules={len(self)}, "
            f"activated={c['activated']})"
        )


__all__ = ["VerdictKind", "Verdict", "ActivationReport"]
