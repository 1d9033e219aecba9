"""
Provider payload templates.

Each provider ships two JSON templates: one for plain messages and one for
broken-streak notifications. Templates use ``${field}`` placeholders and are
filled by plain substitution. The output is never validated as JSON.

A renderer may be given an escape function applied to every value before
substitution. The Discord sender escapes values for JSON strings; the Google
Chat sender inserts them verbatim, so free text containing a double quote
yields a card payload Google Chat will reject.
"""

import json
from enum import Enum
from pathlib import Path
from string import Template
from typing import Callable, Dict, Mapping, Optional, Union

from wilson_bot.utils.exceptions import TemplateExecutionError, TemplateParseError


TEMPLATES_DIR = Path(__file__).parent / "payloads"


def json_escape(value: str) -> str:
    """Escape a value for use inside a JSON string literal."""
    return json.dumps(value, ensure_ascii=False)[1:-1]


class TemplateKind(str, Enum):
    """Which of a provider's templates to render."""
    MESSAGE = "message"
    BROKEN = "broken"


class TemplateRenderer:
    """
    Renders messages into one provider's payload format.

    Templates are parsed when the renderer is built; an invalid placeholder
    fails construction rather than a later delivery.
    """

    def __init__(
        self,
        templates: Mapping[TemplateKind, str],
        name: str = "templates",
        escape: Optional[Callable[[str], str]] = None,
    ) -> None:
        """
        Args:
            templates: Template source for every TemplateKind
            name: Label used in error context
            escape: Applied to every value before substitution

        Raises:
            TemplateParseError: If a kind is missing or a template is invalid
        """
        self.name = name
        self.escape = escape
        self._templates: Dict[TemplateKind, Template] = {}

        for kind in TemplateKind:
            if kind not in templates:
                raise TemplateParseError(
                    "Missing template",
                    context={"templates": name, "kind": kind.value},
                )
            template = Template(templates[kind])
            if not template.is_valid():
                raise TemplateParseError(
                    "Invalid template placeholder",
                    context={"templates": name, "kind": kind.value},
                )
            self._templates[kind] = template

    @classmethod
    def from_directory(
        cls,
        path: Union[str, Path],
        escape: Optional[Callable[[str], str]] = None,
    ) -> "TemplateRenderer":
        """
        Load ``message.json`` and ``broken.json`` from a directory.

        Raises:
            TemplateParseError: If a file is missing, unreadable or invalid
        """
        directory = Path(path)
        sources = {}
        for kind in TemplateKind:
            template_file = directory / f"{kind.value}.json"
            try:
                sources[kind] = template_file.read_text(encoding="utf-8")
            except OSError as e:
                raise TemplateParseError(
                    "Failed to read template",
                    context={"path": str(template_file)},
                    original_error=e,
                )
        return cls(sources, name=directory.name, escape=escape)

    @classmethod
    def for_provider(
        cls,
        provider: str,
        escape: Optional[Callable[[str], str]] = None,
    ) -> "TemplateRenderer":
        """Load the bundled templates of a provider."""
        return cls.from_directory(TEMPLATES_DIR / provider, escape=escape)

    def fields(self, kind: TemplateKind) -> frozenset:
        """Placeholder names a template references."""
        return frozenset(self._templates[kind].get_identifiers())

    def render(self, kind: TemplateKind, data: Mapping[str, str]) -> bytes:
        """
        Substitute data into a template.

        Returns:
            The UTF-8 encoded payload

        Raises:
            TemplateExecutionError: If the template references a field data lacks
        """
        if self.escape is not None:
            data = {key: self.escape(value) for key, value in data.items()}

        try:
            rendered = self._templates[kind].substitute(data)
        except KeyError as e:
            raise TemplateExecutionError(
                "Template references an undefined field",
                context={"templates": self.name, "kind": kind.value, "field": e.args[0]},
                original_error=e,
            )
        except ValueError as e:
            raise TemplateExecutionError(
                "Failed to execute template",
                context={"templates": self.name, "kind": kind.value},
                original_error=e,
            )
        return rendered.encode("utf-8")
