"""
Sentiment scoring for user messages.

Uses VADER's compound score: >= 0.05 is positive, <= -0.05 is negative,
anything in between is neutral.
"""

from functools import lru_cache

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from ..models.session import Sentiment

POSITIVE_THRESHOLD = 0.05
NEGATIVE_THRESHOLD = -0.05


@lru_cache(maxsize=1)
def get_analyzer() -> SentimentIntensityAnalyzer:
    """Shared analyzer; loading the lexicon is the expensive part."""
    return SentimentIntensityAnalyzer()


def analyze_sentiment(message: str) -> Sentiment:
    """
    Classify a message as positive, negative or neutral.

    Args:
        message: Message text

    Returns:
        "neutral" for empty text, otherwise the class of the compound score
    """
    if not message:
        return "neutral"

    compound = get_analyzer().polarity_scores(message)["compound"]
    if compound >= POSITIVE_THRESHOLD:
        return "positive"
    if compound <= NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"
