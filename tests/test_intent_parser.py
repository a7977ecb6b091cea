from __future__ import annotations

import asyncio

import pytest

from voice_commerce.core.exceptions import IntentAnalysisError, IntentParseError
from voice_commerce.core.intent import (
    DEFAULT_CONFIDENCE,
    Intent,
    IntentAnalysisResult,
    IntentAnalyzer,
    IntentParser,
    Sentiment,
    coerce_confidence,
    coerce_intent,
)
from voice_commerce.core.session import AwaitingName, ConversationContext

from tests.conftest import StubNLU


@pytest.fixture
def parser() -> IntentParser:
    return IntentParser()


def test_structured_reply_wrapped_in_prose(parser) -> None:
    raw = (
        "Sure! Here is the classification:\n"
        '{"intent": "product_create", "entities": {"productName": "Blue Pottery Vase", "price": "2,500"}, '
        '"sentiment": "positive", "confidence": 92, "followUp": ["Which category?"]}\n'
        "Let me know if you need anything else."
    )

    result = parser.parse(raw, "blue pottery vase 2500")

    assert result.intent is Intent.PRODUCT_CREATE
    assert result.entities.product_name == "Blue Pottery Vase"
    assert result.entities.price == 2500
    assert result.entities.text == "blue pottery vase 2500"
    assert result.sentiment is Sentiment.POSITIVE
    assert result.confidence == 92
    assert result.follow_up == ["Which category?"]


def test_unknown_entity_keys_are_kept_as_extra(parser) -> None:
    result = parser.parse('{"intent": "pricing", "entities": {"colour": "blue"}}', "")

    assert result.entities.extra == {"colour": "blue"}
    assert result.entities.to_dict() == {"colour": "blue", "text": ""}


def test_labelled_reply_is_scraped_when_json_is_absent(parser) -> None:
    raw = (
        "- Intent: pricing\n"
        "- Product: Silk Saree\n"
        "- Sentiment: neutral\n"
        "- Confidence: 75%\n"
        "The artisan mentioned ₹ 1,200 as the target."
    )

    result = parser.parse(raw, "saree ka daam")

    assert result.intent is Intent.PRICING
    assert result.entities.product_name == "Silk Saree"
    assert result.entities.price == 1200
    assert result.confidence == 75
    assert result.sentiment is Sentiment.NEUTRAL


def test_labelled_reply_reads_hindi_currency_and_follow_up(parser) -> None:
    raw = "intent = product_create\nfollow-up: कैटेगरी क्या है?\nकीमत 800 रुपए"

    result = parser.parse(raw, "800 रुपए")

    assert result.intent is Intent.PRODUCT_CREATE
    assert result.entities.price == 800
    assert result.follow_up == ["कैटेगरी क्या है?"]
    assert result.confidence == DEFAULT_CONFIDENCE


def test_broken_json_falls_through_to_labels(parser) -> None:
    raw = '{"intent": "orders", confidence: high\nintent: orders'

    result = parser.parse(raw, "orders dikhao")

    assert result.intent is Intent.ORDERS


def test_garbage_raises_parse_error(parser) -> None:
    with pytest.raises(IntentParseError) as excinfo:
        parser.parse("I am not sure what you mean.", "??")

    assert excinfo.value.details["stage"] == "all"


def test_each_stage_raises_on_its_own(parser) -> None:
    with pytest.raises(IntentParseError):
        parser.parse_structured('{"entities": {}}', "")
    with pytest.raises(IntentParseError):
        parser.parse_by_pattern("confidence: 90", "")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("product_create", Intent.PRODUCT_CREATE),
        ("Create Product", Intent.PRODUCT_CREATE),
        ("add-product", Intent.PRODUCT_CREATE),
        ("show_products", Intent.PRODUCT_LIST),
        ("sales", Intent.ANALYTICS),
        ('"orders".', Intent.ORDERS),
        ("analytics (overall business)", Intent.ANALYTICS),
        ("cook_dinner", Intent.UNKNOWN),
        (None, Intent.UNKNOWN),
    ],
)
def test_intent_names_are_coerced(value, expected) -> None:
    assert coerce_intent(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [(150, 100), (-5, 0), ("87.5", 87), ("95%", 95), ("high", DEFAULT_CONFIDENCE), (None, DEFAULT_CONFIDENCE)],
)
def test_confidence_is_clamped(value, expected) -> None:
    assert coerce_confidence(value) == expected


def test_fallback_is_help_with_default_confidence() -> None:
    result = IntentAnalysisResult.fallback("kuch bhi")

    assert result.intent is Intent.HELP
    assert result.confidence == 50
    assert result.entities.text == "kuch bhi"
    assert result.to_dict()["intent"] == "help"


@pytest.mark.asyncio
async def test_analyzer_sends_context_and_parses_reply() -> None:
    nlu = StubNLU(classify=lambda utterance: '{"intent": "product_create", "confidence": 88}')
    analyzer = IntentAnalyzer(nlu)
    context = ConversationContext(
        session_id="S1",
        artisan_id="art_1",
        conversation_turn=1,
        product_creation=AwaitingName()
    )

    result = await analyzer.analyze("Blue Pottery Vase", "en-IN", context)

    assert result.intent is Intent.PRODUCT_CREATE
    assert result.entities.text == "Blue Pottery Vase"
    assert '"step": "name"' in nlu.prompts[0]
    assert 'Utterance: "Blue Pottery Vase"' in nlu.prompts[0]


@pytest.mark.asyncio
async def test_analyzer_wraps_backend_failure() -> None:
    analyzer = IntentAnalyzer(StubNLU(error=RuntimeError("503 from backend")))
    context = ConversationContext(session_id="S1", artisan_id="art_1")

    with pytest.raises(IntentAnalysisError) as excinfo:
        await analyzer.analyze("hello", "hi-IN", context)

    assert excinfo.value.details["stage"] == "backend"


@pytest.mark.asyncio
async def test_analyzer_times_out(monkeypatch) -> None:
    class SlowNLU:
        async def generate(self, prompt, system=None):
            await asyncio.sleep(1)
            return '{"intent": "help"}'

    monkeypatch.setattr("voice_commerce.core.intent.settings.LLM_TIMEOUT_SECONDS", 0.01)
    analyzer = IntentAnalyzer(SlowNLU())

    with pytest.raises(IntentAnalysisError):
        await analyzer.analyze("hello", "hi-IN", ConversationContext(session_id="S1", artisan_id="art_1"))


@pytest.mark.asyncio
async def test_analyzer_raises_on_unparseable_reply() -> None:
    analyzer = IntentAnalyzer(StubNLU(classify=lambda utterance: "no idea"))

    with pytest.raises(IntentParseError):
        await analyzer.analyze("hmm", "hi-IN", ConversationContext(session_id="S1", artisan_id="art_1"))
