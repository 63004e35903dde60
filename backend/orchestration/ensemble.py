"""
Picks one model id per semantic role for a query.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from config import FALLBACK_MODEL_ID, RESEARCHER_MIN_CONTEXT
from inference.catalog import CatalogEntry, rank
from inference.protocol import Role
from orchestration.planner import AgentType

logger = logging.getLogger(__name__)


@dataclass
class Ensemble:
    strategist: str = FALLBACK_MODEL_ID
    artisan: str = FALLBACK_MODEL_ID
    sentinel: str = FALLBACK_MODEL_ID
    researcher: str = FALLBACK_MODEL_ID

    def for_agent(self, agent_type: AgentType) -> str:
        return {
            AgentType.ARTISAN: self.artisan,
            AgentType.SENTINEL: self.sentinel,
            AgentType.RESEARCHER: self.researcher,
        }[agent_type]

    def to_dict(self) -> dict:
        return asdict(self)


class EnsembleSelector:
    def __init__(self, preferences: Optional[dict[str, int]] = None):
        self.preferences = preferences or {}

    def _pick(self, entries: list[CatalogEntry], role: Role, min_context: int,
              merit: int, blacklist: set[str]) -> str:
        ranked = rank(entries, role, min_context, merit, blacklist, self.preferences)
        if not ranked:
            return FALLBACK_MODEL_ID
        return ranked[0].id

    def select(self, entries: list[CatalogEntry], blacklist: set[str],
               prompt_tokens: int, merit: int) -> Ensemble:
        """Assign the best-scoring model to each role.

        The researcher is scored with the strategist heuristic but needs a
        context window of at least RESEARCHER_MIN_CONTEXT tokens.
        """
        if not entries:
            logger.warning("Catalog empty — every role falls back to %s", FALLBACK_MODEL_ID)
            return Ensemble()
        ensemble = Ensemble(
            strategist=self._pick(entries, Role.STRATEGIST, prompt_tokens, merit, blacklist),
            artisan=self._pick(entries, Role.ARTISAN, prompt_tokens, merit, blacklist),
            sentinel=self._pick(entries, Role.SENTINEL, prompt_tokens, merit, blacklist),
            researcher=self._pick(entries, Role.STRATEGIST,
                                  max(prompt_tokens, RESEARCHER_MIN_CONTEXT), merit, blacklist),
        )
        logger.info("Ensemble: %s", ensemble.to_dict())
        return ensemble
