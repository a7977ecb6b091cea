"""
Intent Analyzer.
Classifies a transcript plus the conversation snapshot into an intent,
entities, sentiment and confidence through the NLU backend.

Backend output is untrusted free text. It is read by a two-stage parser:
a structured stage that loads the first JSON object in the output, then a
label-oriented stage that scrapes `intent:`, `confidence:` and friends line
by line. Each stage raises IntentParseError; the fail-soft default is built
by the caller from IntentAnalysisResult.fallback().
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from voice_commerce.config import get_settings, INTENT_KEYWORDS, PRODUCT_CATEGORIES
from voice_commerce.core.exceptions import IntentAnalysisError, IntentParseError
from voice_commerce.core.languages import get_language
from voice_commerce.core.session import ConversationContext

logger = logging.getLogger(__name__)
settings = get_settings()


class Intent(str, Enum):
    PRODUCT_CREATE = "product_create"
    PRODUCT_LIST = "product_list"
    ANALYTICS = "analytics"
    PRICING = "pricing"
    ORDERS = "orders"
    HELP = "help"
    UNKNOWN = "unknown"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# Names backends tend to invent for the known intents
INTENT_ALIASES = {
    "create_product": Intent.PRODUCT_CREATE,
    "add_product": Intent.PRODUCT_CREATE,
    "new_product": Intent.PRODUCT_CREATE,
    "product_creation": Intent.PRODUCT_CREATE,
    "list_products": Intent.PRODUCT_LIST,
    "show_products": Intent.PRODUCT_LIST,
    "products": Intent.PRODUCT_LIST,
    "get_analytics": Intent.ANALYTICS,
    "sales": Intent.ANALYTICS,
    "business_analytics": Intent.ANALYTICS,
    "update_price": Intent.PRICING,
    "price": Intent.PRICING,
    "price_check": Intent.PRICING,
    "check_orders": Intent.ORDERS,
    "list_orders": Intent.ORDERS,
    "order_status": Intent.ORDERS,
    "assistance": Intent.HELP,
}

DEFAULT_CONFIDENCE = 50

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
_PRICE_NEAR_CURRENCY = re.compile(
    r"(?:₹|rs\.?)\s*(\d[\d,]*)|(\d[\d,]*)\s*(?:रुपए|रुपये|रुपया|rupees?|rs\.?|₹|/-)",
    re.IGNORECASE
)
_PRODUCT_LABEL = re.compile(r"\bproduct(?:[\s_]?name)?\s*[:\-]\s*([^,.\n]+)", re.IGNORECASE)
_DIGITS = re.compile(r"\d+")


def _label(name: str) -> "re.Pattern":
    return re.compile(rf"^[\s\-*#>\"']*{name}[\w \-]*?[\"']?\s*[:=]\s*(.+)$", re.IGNORECASE | re.MULTILINE)


_INTENT_LABEL = _label("intent")
_SENTIMENT_LABEL = _label("sentiment")
_CONFIDENCE_LABEL = _label("confidence")
_CATEGORY_LABEL = _label("category")
_ANALYTICS_LABEL = _label("analytics[_ ]?type")
_FOLLOW_UP_LABEL = _label("follow")


# =========================
# Result types
# =========================

@dataclass
class Entities:
    """Values extracted from one utterance."""
    product_name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[int] = None
    analytics_type: Optional[str] = None
    text: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = {
        "productName": "product_name",
        "product_name": "product_name",
        "name": "product_name",
        "category": "category",
        "price": "price",
        "analyticsType": "analytics_type",
        "analytics_type": "analytics_type",
        "text": "text",
    }

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any], text: str) -> "Entities":
        """Build from a free-form backend map; unknown keys go to `extra`."""
        entities = cls(text=text)
        for key, value in (raw or {}).items():
            if value is None or value == "":
                continue
            attr = cls._KNOWN_KEYS.get(key)
            if attr is None:
                entities.extra[key] = value
            elif attr == "price":
                entities.price = coerce_price(value)
            elif attr == "text":
                continue
            else:
                setattr(entities, attr, str(value).strip())
        return entities

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "productName": self.product_name,
            "category": self.category,
            "price": self.price,
            "analyticsType": self.analytics_type,
            "text": self.text
        })
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class IntentAnalysisResult:
    intent: Intent
    entities: Entities
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: int = DEFAULT_CONFIDENCE
    follow_up: List[str] = field(default_factory=list)

    @classmethod
    def fallback(cls, text: str = "") -> "IntentAnalysisResult":
        """Safe default used when the utterance could not be classified."""
        return cls(
            intent=Intent.HELP,
            entities=Entities(text=text),
            sentiment=Sentiment.NEUTRAL,
            confidence=DEFAULT_CONFIDENCE,
            follow_up=[]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "entities": self.entities.to_dict(),
            "sentiment": self.sentiment.value,
            "confidence": self.confidence,
            "followUp": list(self.follow_up)
        }


# =========================
# Coercion helpers
# =========================

def coerce_intent(value: Any) -> Intent:
    """Map a backend intent name onto the enumeration; anything else is unknown."""
    name = re.sub(r"[\s\-]+", "_", str(value or "").strip().strip("\"'.,").lower())
    try:
        return Intent(name)
    except ValueError:
        pass
    if name in INTENT_ALIASES:
        return INTENT_ALIASES[name]

    # "product_create (the user wants...)" and similar chatter
    for intent in Intent:
        if re.search(rf"(?<![a-z]){intent.value}(?![a-z])", name):
            return intent
    return Intent.UNKNOWN


def coerce_sentiment(value: Any) -> Sentiment:
    name = str(value or "").strip().strip("\"'.,").lower()
    for sentiment in Sentiment:
        if name.startswith(sentiment.value):
            return sentiment
    return Sentiment.NEUTRAL


def coerce_confidence(value: Any) -> int:
    """Integer confidence clamped to 0..100."""
    if isinstance(value, str):
        match = re.search(r"-?\d+(?:\.\d+)?", value)
        if not match:
            return DEFAULT_CONFIDENCE
        value = match.group()
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    return max(0, min(100, number))


def coerce_price(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return max(0, int(value))
    match = _DIGITS.search(str(value).replace(",", ""))
    return int(match.group()) if match else None


def _coerce_follow_up(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


# =========================
# Parser
# =========================

class IntentParser:
    """Two-stage lenient parser for backend output."""

    def parse_structured(self, raw: str, text: str) -> IntentAnalysisResult:
        """Load the first {...} block of the output as JSON."""
        match = _JSON_BLOCK.search(raw or "")
        if not match:
            raise IntentParseError("structured", "no JSON object found")

        try:
            payload = json.loads(match.group())
        except ValueError as e:
            raise IntentParseError("structured", f"invalid JSON: {e}")

        if not isinstance(payload, dict) or "intent" not in payload:
            raise IntentParseError("structured", "object has no intent")

        entities = payload.get("entities")
        if not isinstance(entities, dict):
            entities = {}

        follow_up = payload.get("followUp", payload.get("follow_up", payload.get("followUpQuestions")))

        return IntentAnalysisResult(
            intent=coerce_intent(payload.get("intent")),
            entities=Entities.from_mapping(entities, text),
            sentiment=coerce_sentiment(payload.get("sentiment")),
            confidence=coerce_confidence(payload.get("confidence", DEFAULT_CONFIDENCE)),
            follow_up=_coerce_follow_up(follow_up)
        )

    def parse_by_pattern(self, raw: str, text: str) -> IntentAnalysisResult:
        """Scrape labelled lines and entity patterns out of prose output."""
        raw = raw or ""
        intent_match = _INTENT_LABEL.search(raw)
        if not intent_match:
            raise IntentParseError("pattern", "no intent label found")

        entities = Entities(text=text)

        price = _PRICE_NEAR_CURRENCY.search(raw)
        if price:
            entities.price = coerce_price(price.group(1) or price.group(2))

        product = _PRODUCT_LABEL.search(raw)
        if product:
            entities.product_name = product.group(1).strip().strip("\"'")

        category = _CATEGORY_LABEL.search(raw)
        if category:
            entities.category = category.group(1).strip().strip("\"'.,").lower()

        analytics_type = _ANALYTICS_LABEL.search(raw)
        if analytics_type:
            entities.analytics_type = analytics_type.group(1).strip().strip("\"'.,").lower()

        sentiment = _SENTIMENT_LABEL.search(raw)
        confidence = _CONFIDENCE_LABEL.search(raw)
        follow_up = _FOLLOW_UP_LABEL.search(raw)

        return IntentAnalysisResult(
            intent=coerce_intent(intent_match.group(1)),
            entities=entities,
            sentiment=coerce_sentiment(sentiment.group(1)) if sentiment else Sentiment.NEUTRAL,
            confidence=coerce_confidence(confidence.group(1)) if confidence else DEFAULT_CONFIDENCE,
            follow_up=_coerce_follow_up(follow_up.group(1)) if follow_up else []
        )

    def parse(self, raw: str, text: str) -> IntentAnalysisResult:
        """Structured first, then by pattern; raises IntentParseError if both fail."""
        try:
            return self.parse_structured(raw, text)
        except IntentParseError as structured_error:
            logger.debug(f"Structured parse failed: {structured_error.message}")
            try:
                return self.parse_by_pattern(raw, text)
            except IntentParseError as pattern_error:
                raise IntentParseError(
                    "all",
                    f"{structured_error.details['reason']}; {pattern_error.details['reason']}"
                )


# =========================
# Analyzer
# =========================

SYSTEM_PROMPT = """You are the intent classifier of a voice assistant that helps Indian artisans run their online shop.
Classify the artisan's utterance and extract entities.

Intents:
- product_create: add or list a new product for sale
- product_list: see their own products
- analytics: sales, views, business performance
- pricing: prices of their products
- orders: orders received and their status
- help: what the assistant can do
- unknown: anything else

Product categories: {categories}

Known phrasings:
{keywords}

Reply with one JSON object and nothing else:
{{"intent": "<intent>", "entities": {{"productName": "...", "category": "...", "price": 0, "analyticsType": "..."}}, "sentiment": "positive|neutral|negative", "confidence": 0-100, "followUp": ["..."]}}
Omit entities you cannot find. followUp holds clarifying questions in the artisan's language, or is empty."""


def _keyword_hints() -> str:
    return "\n".join(
        f"- {intent}: " + ", ".join(f'"{phrase}"' for phrase in phrases)
        for intent, phrases in INTENT_KEYWORDS.items()
    )


class IntentAnalyzer:
    """
    Asks the NLU backend to classify an utterance.

    Raises IntentAnalysisError when the backend fails, times out, or returns
    nothing the parser can use.
    """

    def __init__(self, llm_service: Any, parser: Optional[IntentParser] = None):
        self.llm = llm_service
        self.parser = parser or IntentParser()
        self._system_prompt = SYSTEM_PROMPT.format(
            categories=", ".join(PRODUCT_CATEGORIES),
            keywords=_keyword_hints()
        )

    def build_prompt(self, text: str, language: str, context: ConversationContext) -> str:
        snapshot = {
            "lastIntent": context.last_intent,
            "lastAction": context.last_action,
            "productCreation": context.product_creation.to_dict() if context.product_creation else None
        }
        return (
            f"Language: {get_language(language).name} ({language})\n"
            f"Conversation so far:\n{context.get_context_summary()}\n"
            f"Context: {json.dumps(snapshot, ensure_ascii=False)}\n\n"
            f"Utterance: \"{text}\""
        )

    async def analyze(
        self,
        text: str,
        language: str,
        context: ConversationContext
    ) -> IntentAnalysisResult:
        prompt = self.build_prompt(text, language, context)

        try:
            raw = await asyncio.wait_for(
                self.llm.generate(prompt, system=self._system_prompt),
                timeout=settings.LLM_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            raise IntentAnalysisError(
                f"NLU backend timed out after {settings.LLM_TIMEOUT_SECONDS}s",
                details={"stage": "backend"}
            )
        except Exception as e:
            raise IntentAnalysisError(f"NLU backend failed: {e}", details={"stage": "backend"})

        result = self.parser.parse(raw, text)
        logger.info(
            f"Intent for session {context.session_id}: {result.intent.value} "
            f"(confidence {result.confidence})"
        )
        return result
