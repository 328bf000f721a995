"""Database context for the assistant, chosen by keyword matching on the user's message."""

import json
import re
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

logger = structlog.get_logger(__name__)

LIMIT_PER_COLLECTION = 20
DEFAULT_INTENTS = ("projects", "calibrations", "gauges", "reports")

# (collection, keyword pattern), in the order context sections are emitted
INTENT_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("projects", re.compile(r"\b(project|projects)\b")),
    ("calibrations", re.compile(r"\b(calibration|calibrations)\b")),
    ("gauges", re.compile(r"\b(gauge|gauges)\b")),
    ("reports", re.compile(r"\b(report|reports)\b")),
    ("services", re.compile(r"\b(service|services)\b")),
    ("users", re.compile(r"\b(user|users|account|accounts)\b")),
    ("faqs", re.compile(r"\b(help|faq|faqs)\b")),
]

SECTION_TITLES = {
    "projects": "Projects",
    "calibrations": "Calibrations",
    "gauges": "Gauges",
    "reports": "Reports",
    "users": "Users (no passwords)",
    "services": "services",
    "faqs": "faqs",
}

# Never sent to the model
HIDDEN_FIELDS = {"users": {"password_hash": 0}}


def detect_intent(text: str | None) -> list[str]:
    """Return the collections a message is about; generic messages get the four entity collections."""
    if not text or not isinstance(text, str):
        return []
    lower = text.lower().strip()
    intents = [collection for collection, pattern in INTENT_PATTERNS if pattern.search(lower)]
    return intents or list(DEFAULT_INTENTS)


def format_section(collection_name: str, docs: list[dict[str, Any]]) -> str:
    title = SECTION_TITLES.get(collection_name, collection_name)
    return f"{title}:\n" + json.dumps(docs, default=str, ensure_ascii=False, separators=(",", ":"))


async def build_context(database: AsyncDatabase[dict[str, Any]], text: str | None) -> tuple[list[str], str]:
    """Fetch a bounded sample of every detected collection and render it as prompt context.

    Collections that fail to load are logged and skipped.

    Returns:
        Detected intents and the context text (empty when nothing was found)
    """
    intents = detect_intent(text)
    parts: list[str] = []
    for collection_name in intents:
        try:
            cursor = database.get_collection(collection_name).find({}, HIDDEN_FIELDS.get(collection_name))
            docs = await cursor.limit(LIMIT_PER_COLLECTION).to_list()
        except Exception as e:
            logger.warning("chat_context_fetch_failed", collection=collection_name, error=str(e))
            continue
        if docs:
            parts.append(format_section(collection_name, docs))
    return intents, "\n\n".join(parts)
