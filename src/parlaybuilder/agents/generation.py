"""Bounded retry loop around the text generator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date

from parlaybuilder.agents.llm_client import TextGenerator
from parlaybuilder.agents.prompt_builder import build_prompt
from parlaybuilder.config import get_settings
from parlaybuilder.parlays.text_format import count_legs
from parlaybuilder.parlays.types import Game, GenerationOutcome, GenerationRequest, LoopState
from parlaybuilder.parlays.validator import validate_content

logger = logging.getLogger(__name__)

PromptBuilder = Callable[..., str]


def mismatch_feedback(content: str, requested: int, found: int) -> str:
    lines = [f"You produced {found} legs in the main parlay; exactly {requested} are required."]
    conflicts = validate_content(content).conflicts
    if conflicts:
        lines.append("CONFLICTS DETECTED (fix these):")
        lines.extend(f'- {c.game}: "{c.bet1}" vs "{c.bet2}"' for c in conflicts[:6])
    return "\n".join(lines)


class GenerationLoop:
    """Generate, count main-parlay legs, and retry with feedback until the count matches.

    Attempts are sequential. ``GenerationError`` from the generator is not
    retried here.
    """

    def __init__(
        self,
        generator: TextGenerator,
        prompt_builder: PromptBuilder = build_prompt,
        max_attempts: int | None = None,
    ) -> None:
        self.generator = generator
        self.prompt_builder = prompt_builder
        self.max_attempts = max_attempts or get_settings().max_generation_attempts

    def run(
        self,
        request: GenerationRequest,
        games: Sequence[Game],
        research_note: str = "",
        *,
        today: date,
    ) -> GenerationOutcome:
        state = LoopState.ATTEMPTING
        current = request
        content = ""
        found = 0
        while state is LoopState.ATTEMPTING:
            prompt = self.prompt_builder(current, games, research_note, current.attempt, today=today)
            logger.info(
                "Attempt %s/%s: generating %s-leg parlay with %s",
                current.attempt,
                self.max_attempts,
                request.num_legs,
                request.ai_model,
            )
            content = self.generator.generate(prompt, request.ai_model)
            found = count_legs(content)

            if found == request.num_legs:
                state = LoopState.SATISFIED
            elif current.attempt >= self.max_attempts:
                logger.warning(
                    "Using best available output after %s attempts (%s/%s legs)",
                    current.attempt,
                    found,
                    request.num_legs,
                )
                state = LoopState.EXHAUSTED
            else:
                logger.info("Leg count %s != %s, retrying", found, request.num_legs)
                current = current.next_attempt(mismatch_feedback(content, request.num_legs, found))

        return GenerationOutcome(
            content=content,
            state=state,
            attempts=current.attempt,
            leg_count=found,
            feedback=current.feedback,
        )
