from trend_ideas.generator.base import TextGenerator
from trend_ideas.generator.claude import ClaudeTextGenerator

__all__ = [
    "ClaudeTextGenerator",
    "TextGenerator",
]
