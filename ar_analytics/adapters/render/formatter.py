"""
XML and JSON rendering of result trees.

Layout follows the legacy results API: every line carries a one-space prefix
and two-space indentation, numbers are written in shortest round-trip form
(``100``, ``68.13896116893515``) and JSON values are strings.
"""

from decimal import Decimal
from typing import List, Tuple
from xml.sax.saxutils import escape, quoteattr
import json
import math

from ...core.domain.filters import DateFormat, output_format
from ...core.domain.results import GroupResult, ResultTree


PREFIX = " "
INDENT = "  "

MEDIA_TYPES = {
    "xml": "application/xml",
    "json": "application/json",
}


# Exponent notation is used outside [SMALLEST_FIXED, LARGEST_FIXED)
SMALLEST_FIXED = 1e-4
LARGEST_FIXED = 1e21


def format_number(value: float) -> str:
    """
    Shortest representation that round-trips, without a trailing ``.0``.

    Magnitudes between 1e-4 and 1e21 are written in positional notation,
    large values padded with zeros after the shortest significant digits
    (``1e+17`` becomes ``100000000000000000``).
    """
    if value is None:
        return ""
    number = float(value)
    magnitude = abs(number)
    if not math.isfinite(number) or magnitude >= LARGEST_FIXED or 0 < magnitude < SMALLEST_FIXED:
        return repr(number)
    text = format(Decimal(repr(number)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class ResponseFormatter:
    """Renders a ResultTree into XML or JSON bytes."""

    def media_type(self, fmt: str) -> str:
        return MEDIA_TYPES[output_format(fmt)]

    def render(self, tree: ResultTree, fmt: str, date_format: DateFormat) -> bytes:
        """
        Render a result tree.

        Args:
            tree: Result tree with groups and records already ordered
            fmt: ``xml`` (default) or ``json``
            date_format: Request-scoped format used to display buckets

        Returns:
            UTF-8 encoded payload
        """
        if output_format(fmt) == "json":
            return self._render_json(tree, date_format).encode("utf-8")
        return self._render_xml(tree, date_format).encode("utf-8")

    def render_error(self, message: str, fmt: str) -> bytes:
        if output_format(fmt) == "json":
            return json.dumps({"error": message}).encode("utf-8")
        return f"<root><error>{escape(message)}</error></root>".encode("utf-8")

    def _render_xml(self, tree: ResultTree, date_format: DateFormat) -> str:
        if not tree.groups:
            return f"{PREFIX}<root></root>"

        lines: List[str] = [f"{PREFIX}<root>"]
        for group in tree.groups:
            lines.append(f"{PREFIX}{INDENT}<group {self._group_attributes(group)}>")
            for record in group.results:
                lines.append(
                    f"{PREFIX}{INDENT * 2}<results timestamp={quoteattr(date_format.display(record.bucket))}"
                    f" availability={quoteattr(format_number(record.availability))}"
                    f" reliability={quoteattr(format_number(record.reliability))}></results>"
                )
            lines.append(f"{PREFIX}{INDENT}</group>")
        lines.append(f"{PREFIX}</root>")
        return "\n".join(lines)

    @staticmethod
    def _optional_fields(group: GroupResult) -> List[Tuple[str, str]]:
        """Parent, profile and namespace of a group, when known."""
        fields = (("parent", group.parent), ("profile", group.profile), ("namespace", group.namespace))
        return [(key, value) for key, value in fields if value]

    def _group_attributes(self, group: GroupResult) -> str:
        attributes = f"name={quoteattr(group.name)} type={quoteattr(group.type)}"
        for key, value in self._optional_fields(group):
            attributes += f" {key}={quoteattr(value)}"
        return attributes

    def _render_json(self, tree: ResultTree, date_format: DateFormat) -> str:
        root = []
        for group in tree.groups:
            node = {"name": group.name, "type": group.type}
            node.update(self._optional_fields(group))
            node["results"] = [
                {
                    "timestamp": date_format.display(record.bucket),
                    "availability": format_number(record.availability),
                    "reliability": format_number(record.reliability),
                }
                for record in group.results
            ]
            root.append(node)

        rendered = json.dumps({"root": root}, indent=len(INDENT))
        return ("\n" + PREFIX).join(rendered.split("\n"))
