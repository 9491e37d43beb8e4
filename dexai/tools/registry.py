"""Tool registry consumed by the pattern matcher and the intent router.

Architectural role:
    Holds the ordered list of data tools supplied at startup. Registration order
    is rule-evaluation order for the pattern matcher.

Determinism:
    Immutable after construction; lookups are pure.
"""

import re
from dataclasses import dataclass, field

from dexai.core.classification_types import ENTITY_QUERY_LABEL


@dataclass(frozen=True)
class PatternRule:
    """One routing rule.

    `unambiguous` marks rules that match literal catalog names; only those may
    short-circuit classification in quality mode.
    """

    pattern: re.Pattern
    unambiguous: bool = False
    description: str = ""

    @classmethod
    def compile(cls, expression: str, unambiguous: bool = False, description: str = "") -> "PatternRule":
        return cls(re.compile(expression, re.IGNORECASE), unambiguous=unambiguous, description=description)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str = ""
    pattern_rules: tuple = field(default_factory=tuple)
    handles_entity_queries: bool = False


class ToolRegistry:
    """Ordered, read-only collection of `ToolSpec` entries."""

    def __init__(self, tools=()) -> None:
        ordered = []
        seen = set()
        for tool in tools:
            if tool.name in seen:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            seen.add(tool.name)
            ordered.append(tool)
        self._tools = tuple(ordered)

    def __iter__(self):
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name) -> bool:
        return self.get(name) is not None

    @property
    def names(self) -> list[str]:
        return [tool.name for tool in self._tools]

    def get(self, name: str) -> ToolSpec | None:
        for tool in self._tools:
            if tool.name == name:
                return tool
        return None

    def default_entity_tool(self) -> ToolSpec | None:
        """First tool that accepts generic entity queries, if any."""
        for tool in self._tools:
            if tool.handles_entity_queries:
                return tool
        return None

    def resolve(self, label: str) -> ToolSpec | None:
        """Map a tier label onto a registered tool.

        Edge cases:
        - A label equal to a tool name resolves to that tool.
        - The generic `entity-query` label resolves to the default entity tool.
        - Anything else (e.g. `general`, `greeting`) resolves to `None`.
        """
        if not label:
            return None
        tool = self.get(label)
        if tool is not None:
            return tool
        if label == ENTITY_QUERY_LABEL:
            return self.default_entity_tool()
        return None
