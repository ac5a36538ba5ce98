"""Prompt templates loaded from YAML resources.

Each template lives in ``templates/<name>.yaml`` with:
- system: the instruction message
- user: the final user message
- examples: optional few-shot list of {user, assistant} pairs

Placeholders use ``{name}`` syntax. Unknown placeholders are left as-is
so user-supplied overrides never fail on a stray brace pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

import yaml

from backend.core.errors import InvalidInputError

TEMPLATES_DIR = Path(__file__).parent / "templates"


class TemplateNotFoundError(LookupError):
    """Raised when no template resource exists for a name."""

    pass


class _Variables(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render(text: str, variables: Mapping[str, str]) -> str:
    """Substitute named variables into a template string."""
    try:
        return text.format_map(_Variables(variables))
    except (ValueError, IndexError, AttributeError, TypeError) as e:
        raise InvalidInputError(f"Malformed prompt template: {e}") from e


@dataclass(frozen=True)
class PromptTemplate:
    """A chat prompt: system instruction, few-shot examples and user turn."""

    name: str
    system: str
    user: str
    examples: tuple[tuple[str, str], ...] = ()

    def render_messages(
        self,
        variables: Mapping[str, str],
        *,
        system_override: str | None = None,
        history: list[dict[str, str]] | None = None,
    ) -> list[dict[str, str]]:
        """Render the template into chat messages.

        Args:
            variables: Values for the template placeholders.
            system_override: Replaces the default system instruction.
            history: Prior conversation turns placed before the final user turn.

        Returns:
            List of {"role", "content"} dicts.
        """
        messages = [{"role": "system", "content": render(system_override or self.system, variables).strip()}]
        for user, assistant in self.examples:
            messages.append({"role": "user", "content": user.strip()})
            messages.append({"role": "assistant", "content": assistant.strip()})
        messages.extend(history or [])
        messages.append({"role": "user", "content": render(self.user, variables).strip()})
        return messages


@lru_cache
def load_template(name: str) -> PromptTemplate:
    """Load a template resource by name.

    Raises:
        TemplateNotFoundError: If no ``<name>.yaml`` exists.
    """
    path = TEMPLATES_DIR / f"{name}.yaml"
    if not path.is_file():
        raise TemplateNotFoundError(f"Prompt template not found: {name}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if "system" not in data or "user" not in data:
        raise TemplateNotFoundError(f"Prompt template {name} must define 'system' and 'user'")

    examples = tuple((ex["user"], ex["assistant"]) for ex in data.get("examples") or [])
    return PromptTemplate(name=name, system=data["system"], user=data["user"], examples=examples)
