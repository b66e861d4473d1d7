"""
Context selection: narrow the knowledge base to the slice relevant to a
question before it is sent to the model.
"""
import copy
import re
from dataclasses import dataclass
from typing import Any, Mapping

from knowledge import FaqEntry, KnowledgeBase, Package

WORD_SPLIT = re.compile(r"\W+")


@dataclass(frozen=True)
class SelectionPolicy:
    faq_limit: int = 4
    faq_fallback: int = 3
    # When no routing rule matches, send every package reduced to
    # id/name/headline/summary instead of the full records.
    lightweight_fallback: bool = True


DEFAULT_POLICY = SelectionPolicy()


@dataclass(frozen=True)
class ContextSlice:
    brand: Mapping[str, Any]
    contact: Mapping[str, Any]
    packages: tuple[Package, ...]
    faq: tuple[FaqEntry, ...]

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-serialisable copy of the slice."""
        return {
            "brand": _plain(self.brand),
            "contact": _plain(self.contact),
            "packages": [p.to_dict() for p in self.packages],
            "faq": [f.to_dict() for f in self.faq],
        }


def _plain(record: Mapping[str, Any] | None) -> dict[str, Any]:
    if not isinstance(record, Mapping):
        return {}
    return copy.deepcopy(dict(record))


def relevant_package_ids(lowered_question: str, kb: KnowledgeBase) -> set[str]:
    """Target ids of every routing rule with a trigger found in the question."""
    return {
        rule.target_package_id
        for rule in kb.routing
        if rule.matches(lowered_question)
    }


def select_packages(
    lowered_question: str, kb: KnowledgeBase, policy: SelectionPolicy = DEFAULT_POLICY
) -> tuple[Package, ...]:
    relevant_ids = relevant_package_ids(lowered_question, kb)
    if relevant_ids:
        return tuple(p for p in kb.packages if p.id in relevant_ids)
    if policy.lightweight_fallback:
        return tuple(p.lightweight() for p in kb.packages)
    return kb.packages


def select_faq(
    lowered_question: str, kb: KnowledgeBase, policy: SelectionPolicy = DEFAULT_POLICY
) -> tuple[FaqEntry, ...]:
    words = {word for word in WORD_SPLIT.split(lowered_question) if word}

    matches = []
    for entry in kb.faq:
        if len(matches) >= policy.faq_limit:
            break
        fq = entry.q.lower()
        if fq and any(word in fq for word in words):
            matches.append(entry)

    if matches:
        return tuple(matches)
    return kb.faq[: policy.faq_fallback]


def select(
    question: str, kb: KnowledgeBase, policy: SelectionPolicy = DEFAULT_POLICY
) -> ContextSlice:
    """
    Build the context slice for a question.

    Packages are narrowed by the routing rules' trigger phrases; FAQ
    entries by shared words with the question. Both fall back to a broad
    selection when nothing matches, so the result is never empty when the
    knowledge base is not. Never raises for a string question.
    """
    lowered = (question or "").lower()
    return ContextSlice(
        brand=kb.brand,
        contact=kb.contact,
        packages=select_packages(lowered, kb, policy),
        faq=select_faq(lowered, kb, policy),
    )
