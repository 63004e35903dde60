"""
Model catalog and scorer.

The catalog flattens every node's inference capabilities into CatalogEntry
records; it is derived state, rebuilt lazily after a reset and never
persisted. score() ranks an entry for a semantic role. Blacklisting costs
a large but finite amount so that, when every candidate is blacklisted, the
relatively-best one can still be picked during last-resort recovery. The
veto for incompatible family/provider pairs is absolute.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from config import (
    CODING_TERMS, DEFAULT_CONTEXT_LENGTH, FREE_TIER_MARKERS, HIGH_MERIT_FAMILIES,
    HIGH_MERIT_THRESHOLD, REASONING_TERMS, SCORE_ARTISAN_CODING, SCORE_BLACKLISTED,
    SCORE_CONTEXT_FLOOR, SCORE_FREE_TIER, SCORE_LOW_MERIT, SCORE_STRATEGIST_REASONING,
    SCORE_VETO, VETOED_MODEL_FAMILIES, VETOED_PROVIDER_CLASSES,
)
from inference.protocol import Role
from inference.registry import NodeRegistry

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    id: str
    provider_node_id: str
    context_length: int = DEFAULT_CONTEXT_LENGTH
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "provider": self.provider_node_id,
            "context_length": self.context_length,
            "description": self.description,
        }


# ── Compatibility ──

def vetoed_family(model_id: str) -> Optional[str]:
    lowered = model_id.lower()
    for family in VETOED_MODEL_FAMILIES:
        if family in lowered:
            return family
    return None


def is_vetoed_provider(node_id: str) -> bool:
    lowered = node_id.lower()
    return any(lowered.startswith(cls) for cls in VETOED_PROVIDER_CLASSES)


def is_incompatible(model_id: str, node_id: str) -> bool:
    """True when this model family cannot be served through this provider class."""
    return vetoed_family(model_id) is not None and is_vetoed_provider(node_id)


# ── Scoring ──

def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def score(entry: CatalogEntry, role: Role, min_context: int, merit_required: int,
          blacklisted: bool = False, preferences: Optional[dict[str, int]] = None) -> int:
    """Rank one catalog entry for a role. Higher is better."""
    if is_incompatible(entry.id, entry.provider_node_id):
        return SCORE_VETO + (SCORE_BLACKLISTED if blacklisted else 0)

    model_id = entry.id.lower()
    text = f"{model_id} {entry.description.lower()}"
    total = 0

    if entry.context_length < min_context:
        total += SCORE_CONTEXT_FLOOR

    for keyword, delta in (preferences or {}).items():
        if keyword and keyword.lower() in model_id:
            total += delta

    if _contains_any(model_id, FREE_TIER_MARKERS):
        total += SCORE_FREE_TIER

    if blacklisted:
        total += SCORE_BLACKLISTED

    if role == Role.STRATEGIST and _contains_any(text, REASONING_TERMS):
        total += SCORE_STRATEGIST_REASONING
    if role == Role.ARTISAN and _contains_any(text, CODING_TERMS):
        total += SCORE_ARTISAN_CODING

    if merit_required >= HIGH_MERIT_THRESHOLD and not _contains_any(model_id, HIGH_MERIT_FAMILIES):
        total += SCORE_LOW_MERIT

    return total


# ── Catalog ──

class ModelCatalog:
    """Flat, lazily-built view of every inference capability in the cluster."""

    def __init__(self, registry: NodeRegistry):
        self.registry = registry
        self._entries: list[CatalogEntry] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def invalidate(self):
        self._entries = []
        self._loaded = False

    async def refresh(self) -> list[CatalogEntry]:
        """Re-discover every node, then rebuild the entry list."""
        await self.registry.discover_all()
        entries = []
        for node in self.registry.all():
            for cap in node.inference_capabilities():
                meta = cap.metadata or {}
                summary = " ".join(
                    str(meta[k]) for k in ("display_name", "summary") if meta.get(k)
                )
                entries.append(CatalogEntry(
                    id=cap.description,
                    provider_node_id=node.id,
                    context_length=int(meta.get("context_length") or DEFAULT_CONTEXT_LENGTH),
                    description=summary or cap.description,
                ))
        self._entries = entries
        self._loaded = True
        logger.info("Catalog rebuilt: %d models across %d nodes", len(entries), len(self.registry))
        return self.entries

    async def ensure_loaded(self) -> list[CatalogEntry]:
        if not self._loaded:
            await self.refresh()
        return self.entries


def rank(entries: list[CatalogEntry], role: Role, min_context: int, merit_required: int,
         blacklist: set[str], preferences: Optional[dict[str, int]] = None) -> list[CatalogEntry]:
    """Sort entries best-first for a role.

    Blacklisted providers are filtered out; when that leaves nothing, every
    entry is ranked instead so last-resort recovery still has a pick.
    """
    candidates = [e for e in entries if e.provider_node_id not in blacklist] or list(entries)
    return sorted(
        candidates,
        key=lambda e: score(e, role, min_context, merit_required,
                            blacklisted=e.provider_node_id in blacklist,
                            preferences=preferences),
        reverse=True,
    )
