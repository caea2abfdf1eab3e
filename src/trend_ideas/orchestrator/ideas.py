"""Round-robin idea generation over the platforms of an approved report."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from trend_ideas.data import Idea, ResearchReport, Surface
from trend_ideas.errors import ParseError
from trend_ideas.generator.base import TextGenerator
from trend_ideas.orchestrator.emitter import RunEmitter
from trend_ideas.orchestrator.prompts import build_idea_prompt
from trend_ideas.orchestrator.state_machine import Trigger
from trend_ideas.parsing import parse_idea
from trend_ideas.retry import BoundedRetry, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_IDEA_POLICY = RetryPolicy(max_attempts=3, max_consecutive_failures=10, delay_seconds=1.0)


class IdeaGenerationLoop:
    """Generates up to ``idea_count`` ideas, cycling through platforms.

    Each slot is retried under ``policy``; the loop stops early once the
    policy's consecutive-failure limit is reached. Accepted ideas are
    streamed to the sidebar as they arrive and fed back into later prompts.

    Args:
        generator: Text generator producing one idea per call.
        emitter: Emitter for the run being ideated.
        policy: Per-slot attempts, breaker limit, and retry delay.
        sleep: Awaitable sleep used between attempts.
    """

    def __init__(
        self,
        generator: TextGenerator,
        emitter: RunEmitter,
        *,
        policy: RetryPolicy = DEFAULT_IDEA_POLICY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._generator = generator
        self._emitter = emitter
        self._policy = policy
        self._sleep = sleep

    async def run(
        self,
        report: ResearchReport,
        platforms: Sequence[str],
        idea_count: int,
    ) -> list[Idea]:
        """Generate ideas and move the run from ``ideating`` to ``done``.

        Returns:
            The accepted ideas, at most ``idea_count`` of them.
        """
        platforms = list(platforms)
        retry: BoundedRetry[Idea] = BoundedRetry(self._policy, sleep=self._sleep)
        ideas: list[Idea] = []

        await self._emitter.status(
            f"Generating {idea_count} ideas for {', '.join(platforms)}",
            surface=Surface.SIDEBAR,
        )

        for slot in range(idea_count if platforms else 0):
            if retry.tripped:
                logger.warning(
                    "Stopping idea generation after %d consecutive failed slots",
                    retry.consecutive_failures,
                )
                await self._emitter.log(
                    f"Stopped after {retry.consecutive_failures} consecutive failures",
                    level="error",
                    surface=Surface.SIDEBAR,
                )
                break

            platform = platforms[slot % len(platforms)]

            async def attempt(platform: str = platform) -> Idea:
                return await self._generate_one(platform, report, ideas)

            async def on_retry(
                attempt_number: int, error: Exception, platform: str = platform
            ) -> None:
                await self._emitter.log(
                    f"Retrying {platform} idea (attempt {attempt_number + 1}/"
                    f"{self._policy.max_attempts}): {error}",
                    level="warning",
                    surface=Surface.SIDEBAR,
                )

            outcome = await retry.run(attempt, on_retry=on_retry)
            if outcome.ok and outcome.value is not None:
                ideas.append(outcome.value)
                await self._emitter.idea(outcome.value)
                continue

            logger.warning("Idea slot %d for %s failed: %s", slot + 1, platform, outcome.error)
            await self._emitter.log(
                f"Failed to generate {platform} idea after {outcome.attempts} attempts",
                level="error",
                surface=Surface.SIDEBAR,
            )

        summary = f"Generated {len(ideas)} of {idea_count} ideas for {', '.join(platforms)}"
        await self._emitter.advance(Trigger.IDEAS_DONE)
        await self._emitter.status(summary)
        await self._emitter.log(summary, level="info" if len(ideas) == idea_count else "warning")
        return ideas

    async def _generate_one(
        self, platform: str, report: ResearchReport, prior: Sequence[Idea]
    ) -> Idea:
        text = await self._generator.generate(build_idea_prompt(platform, report.trends, prior))
        result = parse_idea(text, platform=platform, trends=report.trends)
        if not result.ok or result.value is None:
            raise ParseError(result.error or "Unparseable idea")
        return result.value
