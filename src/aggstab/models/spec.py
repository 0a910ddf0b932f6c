"""
Typed model specifications.

A ``ModelSpec`` lists fixed-effect terms, pairwise interactions and the
nesting levels of the random intercepts. The fitting modules render it to a
patsy formula internally; callers never pass formula strings.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
import pandas as pd

from ..config import DEPTH_DIVISOR, GROUP_LEVELS


class ModelFitError(RuntimeError):
    """A quantile or mixed-model fit did not converge."""


@dataclass(frozen=True)
class Term:
    column: str
    categorical: bool = False
    divisor: float | None = None

    def render(self) -> str:
        if self.categorical:
            return f"C({self.column})"
        if self.divisor is not None:
            return f"I({self.column} / {self.divisor:g})"
        return self.column


@dataclass(frozen=True)
class ModelSpec:
    response: str
    terms: tuple[Term, ...]
    interactions: tuple[tuple[str, str], ...] = ()
    groups: tuple[str, ...] = ()

    def term(self, column: str) -> Term:
        for t in self.terms:
            if t.column == column:
                return t
        # interaction-only columns enter as plain numeric terms
        return Term(column)

    def formula(self) -> str:
        rhs = [self.term(t.column).render() for t in self.terms]
        rhs += [f"{self.term(a).render()}:{self.term(b).render()}" for a, b in self.interactions]
        return f"{self.response} ~ {' + '.join(rhs) if rhs else '1'}"

    def required_columns(self) -> list[str]:
        cols = [self.response, *(t.column for t in self.terms)]
        for pair in self.interactions:
            cols.extend(pair)
        cols.extend(self.groups)
        return list(dict.fromkeys(cols))

    def validate(self, df: pd.DataFrame) -> None:
        missing = [c for c in self.required_columns() if c not in df.columns]
        if missing:
            raise KeyError(f"Model columns not found: {missing}")

    def with_groups(self, groups: Iterable[str]) -> "ModelSpec":
        return ModelSpec(self.response, self.terms, self.interactions, tuple(groups))


# casi ~ topsub + disp + disp:stime
QUANTILE_SPEC = ModelSpec(
    response="casi",
    terms=(Term("topsub", categorical=True), Term("disp", categorical=True)),
    interactions=(("disp", "stime"),),
)

# casi ~ depth/100 + disp * stime, random intercepts for site and site/pid
MULTILEVEL_SPEC = ModelSpec(
    response="casi",
    terms=(
        Term("depth", divisor=DEPTH_DIVISOR),
        Term("disp", categorical=True),
        Term("stime"),
    ),
    interactions=(("disp", "stime"),),
    groups=GROUP_LEVELS,
)
