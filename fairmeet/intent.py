"""Interpret free-text meeting requests ("grab a coffee", "dinner somewhere quiet")."""

import asyncio
import concurrent.futures
import json
import logging
from typing import Optional

import openai

from .models import InterpretedIntent

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'restaurant'

CATEGORIES = [
    'restaurant', 'cafe', 'bar', 'park', 'beach', 'museum', 'library', 'gym',
    'shopping', 'entertainment', 'cinema', 'theater', 'food', 'outdoors', 'other',
]

# Checked in order; first match wins
CATEGORY_KEYWORDS = {
    'cafe': ['coffee', 'cafe', 'latte', 'espresso', 'tea'],
    'bar': ['bar', 'pub', 'drinks', 'beer', 'cocktail', 'wine'],
    'restaurant': ['lunch', 'dinner', 'eat', 'food', 'restaurant', 'brunch', 'breakfast'],
    'park': ['park', 'outdoor', 'nature', 'walk', 'picnic'],
    'beach': ['beach', 'seaside', 'coast', 'ocean'],
    'gym': ['gym', 'workout', 'fitness', 'exercise'],
    'cinema': ['cinema', 'movie', 'film'],
    'museum': ['museum', 'gallery', 'exhibition', 'art'],
    'shopping': ['shop', 'mall', 'store', 'buy'],
}

SYSTEM_PROMPT = """You are a helpful assistant that interprets user requests for meeting places.
Your job is to understand what type of venue the user is looking for and extract relevant search criteria.
Be flexible and understand common phrases like "grab a coffee", "have lunch", "go for drinks", etc.
Extract any specific requirements like "quiet", "outdoor seating", "dog-friendly", etc."""

CATEGORIZE_TOOL = {
    'type': 'function',
    'function': {
        'name': 'categorize_venue_intent',
        'description': "Categorize a user's meeting place intent into structured venue categories",
        'parameters': {
            'type': 'object',
            'properties': {
                'category': {
                    'type': 'string',
                    'enum': CATEGORIES,
                    'description': 'The main category of venue the user is looking for',
                },
                'subcategory': {
                    'type': 'string',
                    'description': 'A more specific subcategory if applicable (e.g., "italian" for restaurant)',
                },
                'keywords': {
                    'type': 'array',
                    'items': {'type': 'string'},
                    'description': 'Additional search keywords (e.g., "dog-friendly", "quiet", "outdoor seating")',
                },
                'timeOfDay': {
                    'type': 'string',
                    'enum': ['morning', 'afternoon', 'evening', 'any'],
                    'description': 'The implied time of day for the meeting if mentioned',
                },
            },
            'required': ['category', 'keywords'],
        },
    },
}


def keyword_interpretation(text: str) -> InterpretedIntent:
    """Best-effort category from a fixed keyword table, used when the LLM is unavailable"""
    lowered = text.lower()
    for category, words in CATEGORY_KEYWORDS.items():
        if any(w in lowered for w in words):
            return InterpretedIntent(category=category, keywords=(text,))
    return InterpretedIntent(category=DEFAULT_CATEGORY, keywords=(text,))


class IntentClassifier:
    """Classify meeting intents with an OpenAI tool call, degrading to keyword matching"""

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini",
                 timeout: float = 15.0, client=None):
        self.model = model
        if client is None and api_key:
            client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=1)
        self.client = client
        if self.client is None:
            logger.warning("No OpenAI API key configured; intents will be classified by keyword")
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=4)

    def cleanup(self):
        self.executor.shutdown(wait=True)

    def classify(self, text: str) -> InterpretedIntent:
        if self.client is None:
            return keyword_interpretation(text)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': text},
                ],
                tools=[CATEGORIZE_TOOL],
                tool_choice={'type': 'function', 'function': {'name': 'categorize_venue_intent'}},
            )
            tool_calls = response.choices[0].message.tool_calls or []
            if not tool_calls or tool_calls[0].function.name != 'categorize_venue_intent':
                logger.warning("Classifier returned no tool call, using default category")
                return InterpretedIntent(category=DEFAULT_CATEGORY, keywords=(text,))
            parsed = json.loads(tool_calls[0].function.arguments)
        except (openai.OpenAIError, json.JSONDecodeError, IndexError) as e:
            logger.error(f"Intent classification failed, falling back to keywords: {e}")
            return keyword_interpretation(text)

        category = parsed.get('category') or DEFAULT_CATEGORY
        return InterpretedIntent(
            category=category,
            subcategory=parsed.get('subcategory') or None,
            keywords=tuple(parsed.get('keywords') or ()),
            time_of_day=parsed.get('timeOfDay'),
        )

    async def classify_async(self, text: str) -> InterpretedIntent:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self.classify, text)
