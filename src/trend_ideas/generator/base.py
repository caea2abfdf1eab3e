from typing import Protocol


class TextGenerator(Protocol):
    """Interface for free-form LLM text generation."""

    async def generate(self, prompt: str) -> str:
        """Generate text for a prompt.

        The returned text should contain one JSON object, but no schema is
        enforced here; callers extract and validate it themselves.

        Raises:
            GenerationError: On transport, auth, or empty-response failures.
        """
        ...
