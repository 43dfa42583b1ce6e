"""Default reply generator.

Picks a reply template from keywords in the client's message and fills it with
random filler sentences. The tools only see it as ``Generator``, so any
``str -> str`` callable can replace it.
"""

import random
from collections.abc import Callable, Sequence

Generator = Callable[[str], str]

_FIRST_NAMES = ("Aiko", "Ren", "Mina", "Kenji", "Sora", "Yui", "Haru", "Emi")
_DISHES = ("miso ramen", "okonomiyaki", "katsu curry", "matcha parfait", "yakitori")
_WEATHER = ("sunny", "cloudy", "rainy", "snowy", "foggy")
_HACKER_PHRASES = (
    "Try compressing the redundant cache, maybe it will index the primary protocol",
    "We need to parse the virtual stream before the handler overflows the buffer",
    "If we connect the async socket, we can route the resilient session",
)
_FILLER = (
    "That is an interesting point to think about.",
    "There are several ways to look at it.",
    "Most people would start with the simplest explanation.",
    "Still, the details tend to matter more than expected.",
    "It helps to take one step at a time.",
    "Experience usually beats theory here.",
    "Let me know if you want to dig deeper.",
    "I hope that gives you a useful starting point.",
)

_GREETINGS = ("hello", "hi", "good morning", "good evening", "こんにちは", "おはよう", "こんばんは")
_QUESTIONS = ("?", "？", "what", "who", "where", "when", "why", "how", "ですか", "何", "誰", "どこ", "いつ", "なぜ")
_FOOD = ("food", "dish", "restaurant", "meal", "cook", "食べ物", "料理", "レストラン", "食事")
_WEATHER_WORDS = ("weather", "rain", "sunny", "temperature", "天気", "雨", "晴れ", "気温")
_TECH = ("tech", "programming", "code", "develop", "engineer", "技術", "プログラミング", "コード", "開発")


def _mentions(message: str, keywords: Sequence[str]) -> bool:
    return any(keyword in message for keyword in keywords)


def _paragraph(rng: random.Random, sentences: int) -> str:
    return " ".join(rng.choice(_FILLER) for _ in range(sentences))


def generate_response(message: str, rng: random.Random | None = None) -> str:
    """Generate a multi-sentence reply to ``message``."""
    rng = rng or random.Random()
    lowered = message.lower()
    # Longer questions get longer answers, between 1 and 5 filler sentences.
    length = min(max(len(message) // 10, 1), 5)

    if _mentions(lowered, _GREETINGS):
        return f"{message}! I am {rng.choice(_FIRST_NAMES)}. {_paragraph(rng, 2)}"
    if _mentions(lowered, _QUESTIONS):
        return f'You asked "{message}". {_paragraph(rng, length)}'
    if _mentions(lowered, _FOOD):
        return f"Speaking of food, I really like {rng.choice(_DISHES)}. {_paragraph(rng, 2)}"
    if _mentions(lowered, _WEATHER_WORDS):
        temperature = rng.randint(0, 35)
        return f"Today it is {rng.choice(_WEATHER)} and {temperature} degrees. {_paragraph(rng, 1)}"
    if _mentions(lowered, _TECH):
        return f"About technology. {rng.choice(_HACKER_PHRASES)}. {_paragraph(rng, length)}"
    return f'I thought about "{message}". {_paragraph(rng, length + 1)}'
