"""
ErrorInterpreter — turns a failure into a suggested repair.

Purely textual, case-insensitive, first match wins. The classification is a
heuristic: callers treat the result as a suggestion and must tolerate a
wrong answer.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from inference.errors import RepairAction
from inference.protocol import Dialect

logger = logging.getLogger(__name__)

SHAPE_MISMATCH_TERMS = ("invalid field", "unknown property")
BUDGET_TERMS = ("402", "payment", "budget")
AUTH_TERMS = ("401", "unauthorized", "api key")
TRANSIENT_TERMS = ("rate limit", "429", "503", "502")


@dataclass
class Repair:
    action: RepairAction
    reason: str
    suggested_protocol: Optional[Dialect] = None


def _mentions(text: str, terms: tuple[str, ...]) -> bool:
    return any(term in text for term in terms)


class ErrorInterpreter:
    """Classifies provider failures into repair actions."""

    def analyze(self, error, request_body: Optional[dict] = None) -> Repair:
        """Classify `error` given the wire body that provoked it.

        `request_body` is the dialect-specific payload that was sent, so a
        Google-style body carries "contents" and an OpenAI-style body
        carries "messages".
        """
        text = str(error).lower()
        body = request_body or {}
        logger.info("Analyzing failure: %s", text[:300])

        if _mentions(text, SHAPE_MISMATCH_TERMS):
            if "contents" in body and "google" not in text:
                return Repair(
                    action=RepairAction.SWITCH_PROTOCOL,
                    suggested_protocol=Dialect.OPENAI,
                    reason="Endpoint rejected a Google-style 'contents' payload; trying OpenAI.",
                )
            if "messages" in body and "contents" in text:
                return Repair(
                    action=RepairAction.SWITCH_PROTOCOL,
                    suggested_protocol=Dialect.GOOGLE,
                    reason="Endpoint expected 'contents' but got an OpenAI payload; trying Google.",
                )

        if _mentions(text, BUDGET_TERMS):
            return Repair(
                action=RepairAction.SWITCH_PROVIDER,
                reason="Budget/payment limit exceeded on this provider.",
            )

        if _mentions(text, AUTH_TERMS):
            return Repair(
                action=RepairAction.SWITCH_PROVIDER,
                reason="Authentication failure or invalid API key for this provider.",
            )

        if _mentions(text, TRANSIENT_TERMS):
            return Repair(
                action=RepairAction.RETRY,
                reason="Transient network or rate limit error.",
            )

        return Repair(action=RepairAction.FAIL, reason=str(error))
