"""
Knowledge base model and loading.

The knowledge base is a static JSON document describing the brand, its
contact details, the service packages it sells, an FAQ list and the
routing rules that map trigger phrases to packages. It is loaded once at
startup and shared read-only by every request.
"""
import copy
import json
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from logger import logger

PACKAGE_SUMMARY_FIELDS = ("id", "name", "headline", "summary")

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class KnowledgeBaseError(Exception):
    """Raised when the knowledge base file cannot be read or parsed."""


def _frozen(record: Any) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        return _EMPTY
    return MappingProxyType(copy.deepcopy(dict(record)))


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Package:
    id: str | None
    name: str | None = None
    headline: str | None = None
    summary: str | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Package":
        extra = {k: v for k, v in record.items() if k not in PACKAGE_SUMMARY_FIELDS}
        return cls(
            id=_optional_str(record.get("id")),
            name=record.get("name"),
            headline=record.get("headline"),
            summary=record.get("summary"),
            extra=_frozen(extra),
        )

    def lightweight(self) -> "Package":
        """Return a copy carrying only id, name, headline and summary."""
        return Package(id=self.id, name=self.name, headline=self.headline, summary=self.summary)

    def to_dict(self) -> dict[str, Any]:
        data = {
            key: getattr(self, key)
            for key in PACKAGE_SUMMARY_FIELDS
            if getattr(self, key) is not None
        }
        data.update(copy.deepcopy(dict(self.extra)))
        return data


@dataclass(frozen=True)
class FaqEntry:
    q: str = ""
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "FaqEntry":
        extra = {k: v for k, v in record.items() if k != "q"}
        question = record.get("q")
        return cls(q=question if isinstance(question, str) else "", extra=_frozen(extra))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"q": self.q}
        data.update(copy.deepcopy(dict(self.extra)))
        return data


@dataclass(frozen=True)
class SuggestionRule:
    triggers: frozenset[str]
    target_package_id: str

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "SuggestionRule | None":
        """Build a rule, or return None when it has no target package."""
        target = record.get("targetPackageId", record.get("target_package_id"))
        if not target:
            return None
        triggers = record.get("triggers") or []
        if isinstance(triggers, str):
            triggers = [triggers]
        return cls(
            triggers=frozenset(
                t.lower() for t in triggers if isinstance(t, str) and t.strip()
            ),
            target_package_id=str(target),
        )

    def matches(self, lowered_question: str) -> bool:
        return any(trigger.lower() in lowered_question for trigger in self.triggers if trigger)


@dataclass(frozen=True)
class KnowledgeBase:
    brand: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    contact: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    packages: tuple[Package, ...] = ()
    faq: tuple[FaqEntry, ...] = ()
    routing: tuple[SuggestionRule, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KnowledgeBase":
        """
        Build a knowledge base from its JSON document.

        Missing or malformed optional sections are treated as empty.
        ``routing`` may be a list of rules or an object holding them under
        ``packageSuggestionRules``.
        """
        routing = data.get("routing")
        if isinstance(routing, Mapping):
            routing = routing.get("packageSuggestionRules")
        if not isinstance(routing, list):
            routing = []

        rules = []
        for record in routing:
            if isinstance(record, Mapping):
                rule = SuggestionRule.from_dict(record)
                if rule is not None:
                    rules.append(rule)

        return cls(
            brand=_frozen(data.get("brand")),
            contact=_frozen(data.get("contact")),
            packages=tuple(
                Package.from_dict(p) for p in _records(data.get("packages"))
            ),
            faq=tuple(FaqEntry.from_dict(f) for f in _records(data.get("faq"))),
            routing=tuple(rules),
        )


def _records(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def load_knowledge_base(file_path: str) -> KnowledgeBase:
    """Loads the knowledge base from a JSON file."""
    if not os.path.exists(file_path):
        raise KnowledgeBaseError(f"Knowledge base file not found at {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise KnowledgeBaseError(f"Could not read knowledge base {file_path}: {e}") from e

    if not isinstance(data, Mapping):
        raise KnowledgeBaseError(f"Knowledge base {file_path} must contain a JSON object")

    kb = KnowledgeBase.from_dict(data)
    logger.info(
        "Knowledge base loaded from %s: %d packages, %d FAQ entries, %d routing rules",
        file_path,
        len(kb.packages),
        len(kb.faq),
        len(kb.routing),
    )
    return kb
