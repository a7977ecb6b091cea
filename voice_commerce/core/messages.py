"""
Localized Message Catalog.
Per-locale reply templates keyed by symbolic name, with {param} substitution.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from voice_commerce.core.languages import DEFAULT_LANGUAGE, normalize_language

logger = logging.getLogger(__name__)


_HINDI = {
    "product_creation_welcome": "नमस्ते {artisanName} जी! आइए एक नया प्रोडक्ट बनाते हैं।",
    "ask_product_name": "आपके प्रोडक्ट का नाम क्या है?",
    "ask_product_category": "यह किस कैटेगरी का प्रोडक्ट है?",
    "ask_product_price": "इसकी कीमत क्या रखना चाहते हैं?",
    "product_created_success": "बहुत बढ़िया! {productName} सफलतापूर्वक बन गया है।",
    "product_creation_cancelled": "ठीक है, नया प्रोडक्ट बनाना रद्द कर दिया है।",
    "product_creation_failed": "माफ़ करें, प्रोडक्ट सेव नहीं हो पाया। कृपया कीमत फिर से बताइए।",
    "product_list_summary": "आपके {count} सक्रिय प्रोडक्ट हैं: {names}।",
    "product_list_empty": "अभी आपका कोई सक्रिय प्रोडक्ट नहीं है।",
    "product_list_failed": "माफ़ करें, आपके प्रोडक्ट की सूची नहीं मिल पाई।",
    "analytics_summary": "आपकी कुल बिक्री ₹{totalSales} है, {totalOrders} ऑर्डर आए हैं, {activeProducts} सक्रिय प्रोडक्ट पर {totalViews} बार देखा गया है।",
    "analytics_failed": "माफ़ करें, बिज़नेस की जानकारी नहीं मिल पाई।",
    "pricing_product": "{productName} की कीमत ₹{price} है।",
    "pricing_summary": "आपके {count} प्रोडक्ट की कीमत ₹{minPrice} से ₹{maxPrice} तक है, औसत ₹{avgPrice}।",
    "pricing_empty": "अभी कीमत बताने के लिए कोई प्रोडक्ट नहीं है।",
    "pricing_failed": "माफ़ करें, कीमत की जानकारी नहीं मिल पाई।",
    "orders_summary": "आपके {count} हाल के ऑर्डर हैं, जिनमें {pendingCount} बाकी हैं जिनकी कीमत ₹{pendingValue} है।",
    "orders_empty": "अभी आपके कोई ऑर्डर नहीं हैं।",
    "orders_failed": "माफ़ करें, ऑर्डर की जानकारी नहीं मिल पाई।",
    "help": "आप कह सकते हैं: नया प्रोडक्ट बनाना है, मेरे प्रोडक्ट दिखाओ, बिक्री कितनी हुई, या मेरे ऑर्डर दिखाओ।",
    "unknown_intent": "मैं समझ नहीं पाया। कृपया फिर से कोशिश करें।",
    "did_not_understand": "मुझे आपकी आवाज़ समझ नहीं आई। कृपया फिर से कोशिश करें।",
    "technical_error": "माफ़ करें, कुछ तकनीकी समस्या हुई है। कृपया बाद में कोशिश करें।",
    "session_conflict": "माफ़ करें, कृपया अपनी बात दोहराइए।",
    "suggest_add_product": "नया प्रोडक्ट बनाना है",
    "suggest_list_products": "मेरे प्रोडक्ट दिखाओ",
    "suggest_analytics": "बिक्री कितनी हुई",
    "suggest_orders": "मेरे ऑर्डर दिखाओ",
    "suggest_pricing": "कीमत बताओ",
}

_ENGLISH = {
    "product_creation_welcome": "Hello {artisanName}! Let's create a new product.",
    "ask_product_name": "What is the name of your product?",
    "ask_product_category": "Which category does this product belong to?",
    "ask_product_price": "What price would you like to set?",
    "product_created_success": "Excellent! {productName} has been created successfully.",
    "product_creation_cancelled": "Okay, I have cancelled the new product.",
    "product_creation_failed": "Sorry, the product could not be saved. Please tell me the price again.",
    "product_list_summary": "You have {count} active products: {names}.",
    "product_list_empty": "You have no active products yet.",
    "product_list_failed": "Sorry, I could not fetch your products.",
    "analytics_summary": "Your total sales are ₹{totalSales} across {totalOrders} orders, and your {activeProducts} active products have {totalViews} views.",
    "analytics_failed": "Sorry, I could not fetch your business analytics.",
    "pricing_product": "{productName} is priced at ₹{price}.",
    "pricing_summary": "Your {count} products range from ₹{minPrice} to ₹{maxPrice}, averaging ₹{avgPrice}.",
    "pricing_empty": "You have no products to price yet.",
    "pricing_failed": "Sorry, I could not fetch pricing information.",
    "orders_summary": "You have {count} recent orders, {pendingCount} still open worth ₹{pendingValue}.",
    "orders_empty": "You have no orders yet.",
    "orders_failed": "Sorry, I could not fetch your orders.",
    "help": "You can say: add a new product, show my products, how are my sales, or show my orders.",
    "unknown_intent": "I didn't understand that. Please try again.",
    "did_not_understand": "I couldn't understand your voice. Please try again.",
    "technical_error": "Sorry, something went wrong. Please try again later.",
    "session_conflict": "Sorry, could you please repeat that?",
    "suggest_add_product": "Add a new product",
    "suggest_list_products": "Show my products",
    "suggest_analytics": "How are my sales?",
    "suggest_orders": "Show my orders",
    "suggest_pricing": "What are my prices?",
}

_BENGALI = {
    "did_not_understand": "আমি আপনার কথা বুঝতে পারিনি। আবার চেষ্টা করুন।",
    "unknown_intent": "আমি বুঝতে পারিনি। আবার চেষ্টা করুন।",
    "technical_error": "এটি প্রক্রিয়া করতে আমার সমস্যা হচ্ছে। একটু পরে আবার চেষ্টা করুন।",
    "session_conflict": "দুঃখিত, আবার বলবেন?",
    "ask_product_name": "আপনার পণ্যের নাম কী?",
    "ask_product_category": "এটি কোন বিভাগের পণ্য?",
    "ask_product_price": "এর দাম কত রাখতে চান?",
}

_MARATHI = {
    "did_not_understand": "मला तुमचा आवाज समजला नाही. कृपया पुन्हा प्रयत्न करा.",
    "unknown_intent": "मला समजलं नाही. कृपया पुन्हा प्रयत्न करा.",
    "technical_error": "मला हे समजून घेण्यात अडचण येत आहे. कृपया थोड्या वेळाने पुन्हा प्रयत्न करा.",
    "session_conflict": "माफ करा, तुम्ही पुन्हा सांगाल का?",
    "ask_product_name": "तुमच्या उत्पादनाचे नाव काय आहे?",
    "ask_product_category": "हे कोणत्या प्रकारचे उत्पादन आहे?",
    "ask_product_price": "याची किंमत किती ठेवायची आहे?",
}

MESSAGES: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "hi-IN": MappingProxyType(_HINDI),
    "en-IN": MappingProxyType(_ENGLISH),
    "bn-IN": MappingProxyType(_BENGALI),
    "mr-IN": MappingProxyType(_MARATHI),
})


class MessageCatalog:
    """
    Renders reply templates for a locale.

    Lookup order is requested locale, then the default locale, then the raw
    key itself, so rendering always yields some text.
    """

    def __init__(
        self,
        messages: Mapping[str, Mapping[str, str]] = MESSAGES,
        default_language: str = DEFAULT_LANGUAGE
    ):
        self._messages = messages
        self._default_language = default_language

    def template(self, key: str, language: Optional[str]) -> Optional[str]:
        """Raw template for a key, with locale fallback; None if no locale has it."""
        code = normalize_language(language)
        for candidate in (code, self._default_language):
            table = self._messages.get(candidate)
            if table and key in table:
                return table[key]
        for table in self._messages.values():
            if key in table:
                return table[key]
        return None

    def render(
        self,
        key: str,
        language: Optional[str],
        params: Optional[Dict[str, Any]] = None
    ) -> str:
        """Render a template; unknown keys render as the key itself."""
        message = self.template(key, language)
        if message is None:
            logger.warning(f"No template for message key '{key}'")
            return key

        for param, value in (params or {}).items():
            message = message.replace(f"{{{param}}}", str(value))

        return message


catalog = MessageCatalog()
