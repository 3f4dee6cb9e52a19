#!/usr/bin/env python3
"""
URI templates for MCP resources.

A template is a URI with optional path segments written as `{/name}`, e.g.
`brex://expenses{/id}`. Each optional segment becomes one positional capture
group; the whole URI must match.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Pattern, Tuple

_PARAM_PATTERN = re.compile(r"\{/([^}]+)\}")
_OPTIONAL_SEGMENT = "(?:/([^/]+))?"


def compile_template(pattern: str) -> Tuple[Pattern, Tuple[str, ...]]:
    """
    Compile a template pattern into an anchored regex and its parameter names.

    Only `{/name}` segments and `/` are rewritten. Any other regex
    metacharacter in the literal part is left as-is and keeps its regex
    meaning.

    Examples:
        >>> regex, names = compile_template("brex://accounts{/id}")
        >>> regex.pattern
        '^brex:\\\\/\\\\/accounts(?:\\\\/([^\\\\/]+))?$'
        >>> names
        ('id',)
    """
    names = tuple(_PARAM_PATTERN.findall(pattern))
    regex_str = _PARAM_PATTERN.sub(lambda _: _OPTIONAL_SEGMENT, pattern)
    regex_str = regex_str.replace("/", "\\/")
    return re.compile(f"^{regex_str}$"), names


@dataclass(frozen=True)
class ResourceTemplate:
    """
    Matcher and parameter extractor for one URI template.

    Examples:
        >>> t = ResourceTemplate("brex://expenses{/id}")
        >>> t.match("brex://expenses/abc123"), t.parse("brex://expenses/abc123")
        (True, {'id': 'abc123'})
        >>> t.match("brex://expenses"), t.parse("brex://expenses")
        (True, {})
        >>> t.match("brex://expenses/abc/def")
        False
    """

    pattern: str
    param_names: Tuple[str, ...] = field(init=False)
    regex: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        regex, names = compile_template(self.pattern)
        if regex.groups != len(names):
            raise ValueError(
                f"Template '{self.pattern}' compiles to {regex.groups} groups "
                f"for {len(names)} parameters"
            )
        object.__setattr__(self, "regex", regex)
        object.__setattr__(self, "param_names", names)

    def match(self, uri: str) -> bool:
        """True iff the whole URI matches the template."""
        return self.regex.fullmatch(uri) is not None

    def parse(self, uri: str) -> Dict[str, str]:
        """
        Extract parameters from a matching URI.

        Returns an empty dict when the URI does not match. Optional segments
        that are absent in the URI are absent from the result.
        """
        m = self.regex.fullmatch(uri)
        if m is None:
            return {}
        return {
            name: value
            for name, value in zip(self.param_names, m.groups())
            if value is not None
        }
