"""Source extractor - heuristic structural facts from one SwiftUI file.

Parses a view definition into a StructuralDescriptor: the view struct
name, the views it navigates to (with the navigation mechanism), and an
inferred step category.

This is pattern matching, not a Swift parser. Both rule tables below are
plain data, evaluated top to bottom.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from flowsync.graph import StepCategory

# Defining-entity marker: `struct FooView: View`
STRUCT_PATTERN = re.compile(r"\bstruct\s+(\w+)\s*:\s*View\b")

# (pattern, mechanism); group 1 captures the destination view name
NAV_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\.sheet\s*\([^)]*\)\s*\{[^{]*?(\w+View)\s*\(", re.S), "sheet"),
    (
        re.compile(r"\.fullScreenCover\s*\([^)]*\)\s*\{[^{]*?(\w+View)\s*\(", re.S),
        "fullScreenCover",
    ),
    (re.compile(r"NavigationLink\s*\{[^{]*?(\w+View)\s*\(", re.S), "navigationLink"),
    (
        re.compile(r"\.navigationDestination\s*\([^)]*\)\s*\{[^{]*?(\w+View)\s*\(", re.S),
        "navigationDestination",
    ),
    (re.compile(r"\bTab\s*\{[^{]*?(\w+View)\s*\(", re.S), "tabView"),
)

INPUT_CONTROLS = re.compile(r"\b(TextField|TextEditor|Picker|Toggle|SecureField|Slider|Stepper)\b")
CONDITIONAL_NAV = re.compile(r"if\s+\w+\s*\{[\s\S]*?(NavigationLink|\.sheet|\.fullScreenCover)")
BUTTON = re.compile(r"\bButton\s*\(")
DISMISS = re.compile(r"\bdismiss\s*\(\)|presentationMode\.wrappedValue\.dismiss")
BACKGROUND_HOOKS = re.compile(r"\bTask\s*\{|\.task\s*\{|\.onAppear\s*\{")
BODY = re.compile(r"\bvar\s+body\s*:")


@dataclass(frozen=True)
class NavEdge:
    """A navigation reference to another view.

    Attributes:
        target: Destination view name, e.g. "DetailView".
        mechanism: How it is presented, e.g. "sheet".
    """

    target: str
    mechanism: str


@dataclass(frozen=True)
class StructuralDescriptor:
    """Structural facts extracted from one source file."""

    entity_name: str
    path: str
    edges: tuple[NavEdge, ...]
    category: StepCategory

    @property
    def targets(self) -> list[str]:
        return [e.target for e in self.edges]


@dataclass(frozen=True)
class CategoryRule:
    """One step of the category cascade."""

    name: str
    category: StepCategory
    applies: Callable[[str], bool]


def _is_background_only(content: str) -> bool:
    if not BODY.search(content):
        return True
    return not BUTTON.search(content) and bool(BACKGROUND_HOOKS.search(content))


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule("input-controls", StepCategory.INPUT, lambda c: bool(INPUT_CONTROLS.search(c))),
    CategoryRule(
        "conditional-navigation", StepCategory.DECISION, lambda c: bool(CONDITIONAL_NAV.search(c))
    ),
    CategoryRule(
        "button-with-dismiss",
        StepCategory.ACTION,
        lambda c: bool(BUTTON.search(c)) and bool(DISMISS.search(c)),
    ),
    CategoryRule("background-only", StepCategory.SYSTEM, _is_background_only),
)

DEFAULT_CATEGORY = StepCategory.DISPLAY


def extract_entity_name(content: str) -> str | None:
    """Return the first `struct X: View` name, or None."""
    match = STRUCT_PATTERN.search(content)
    return match.group(1) if match else None


def extract_edges(content: str) -> tuple[NavEdge, ...]:
    """Collect navigation edges, deduplicated by (target, mechanism).

    Order is rule-table order, then match order within each rule.
    """
    edges: list[NavEdge] = []
    seen: set[tuple[str, str]] = set()
    for pattern, mechanism in NAV_RULES:
        for match in pattern.finditer(content):
            key = (match.group(1), mechanism)
            if key not in seen:
                seen.add(key)
                edges.append(NavEdge(target=key[0], mechanism=mechanism))
    return tuple(edges)


def infer_category(content: str, rules: tuple[CategoryRule, ...] = CATEGORY_RULES) -> StepCategory:
    """First matching rule wins; display when none apply."""
    for rule in rules:
        if rule.applies(content):
            return rule.category
    return DEFAULT_CATEGORY


def parse_source_file(path: str, content: str) -> StructuralDescriptor | None:
    """Extract a descriptor from one file.

    Args:
        path: Repository-relative path of the file.
        content: Full file text.

    Returns:
        StructuralDescriptor, or None when the file defines no view.
    """
    entity_name = extract_entity_name(content)
    if entity_name is None:
        return None
    return StructuralDescriptor(
        entity_name=entity_name,
        path=path,
        edges=extract_edges(content),
        category=infer_category(content),
    )


__all__ = [
    "NAV_RULES",
    "CATEGORY_RULES",
    "CategoryRule",
    "NavEdge",
    "StructuralDescriptor",
    "extract_edges",
    "extract_entity_name",
    "infer_category",
    "parse_source_file",
]
