import json
import math
import logging
from typing import Any, Dict, Optional

from .tokens import estimate_tokens
from ..core.models import BudgetConfig

logger = logging.getLogger("Podcraft.Budget")


class ContextBudgetCalculator:
    """
    Works out how many tokens a pipeline stage can spend on the transcript.

    The budget is the model's context window minus fixed reserves (prompt
    template, system message, output buffer, safety margin) and minus the
    estimated size of earlier stage outputs embedded in the prompt. Later
    stages carry more upstream context, so the prior-output reserve grows by
    10% per stage number, capped at 50%. The result never drops below the
    configured minimum.
    """

    def __init__(self, config: Optional[BudgetConfig] = None):
        self.config = config or BudgetConfig()

    def get_model_limit(self, model: Optional[str]) -> int:
        """Context window for a model name, falling back to the default."""
        limits = self.config.model_limits
        if not isinstance(model, str) or not model.strip():
            return self.config.default_context_limit

        name = model.strip().lower()
        if name in limits:
            return limits[name]

        # Dated or suffixed names resolve to their model family
        family = None
        for candidate in limits:
            if name.startswith(candidate) and (family is None or len(candidate) > len(family)):
                family = candidate
        if family:
            return limits[family]

        logger.debug(f"Unknown model '{model}', using default context limit {self.config.default_context_limit}")
        return self.config.default_context_limit

    def estimate_previous_stage_tokens(self, previous_stages: Optional[Dict[Any, Any]]) -> int:
        if not previous_stages or not isinstance(previous_stages, dict):
            return 0

        total = 0
        for stage, output in previous_stages.items():
            if not output:
                continue
            if isinstance(output, str):
                output_text = output
            else:
                try:
                    output_text = json.dumps(output)
                except (TypeError, ValueError) as e:
                    logger.debug(f"Could not serialize output of stage {stage}, counting as 0 tokens: {e}")
                    continue
            total += estimate_tokens(output_text)
        return total

    def stage_context_multiplier(self, stage_number: int) -> float:
        try:
            stage = max(float(stage_number), 0.0)
        except (TypeError, ValueError):
            stage = 0.0
        if math.isnan(stage):
            stage = 0.0
        return min(stage * self.config.stage_context_step, self.config.stage_context_max)

    def calculate(self, stage_number: int, model: Optional[str] = None,
                  previous_stages: Optional[Dict[Any, Any]] = None) -> int:
        model = model or self.config.default_model
        model_limit = self.get_model_limit(model)

        previous_stage_tokens = self.estimate_previous_stage_tokens(previous_stages)
        multiplier = self.stage_context_multiplier(stage_number)

        total_reserved = (
            self.config.reserves.total
            + previous_stage_tokens
            + int(previous_stage_tokens * multiplier)
        )
        available = model_limit - total_reserved

        logger.debug(
            f"Transcript budget for stage {stage_number} ({model}): limit {model_limit}, "
            f"reserved {total_reserved} (previous stages: {previous_stage_tokens}), available {available}"
        )

        return max(available, self.config.min_transcript_tokens)


def calculate_transcript_budget(stage_number: int, model: Optional[str] = None,
                                previous_stages: Optional[Dict[Any, Any]] = None) -> int:
    """Budget with the built-in model table and reserves."""
    return ContextBudgetCalculator().calculate(stage_number, model, previous_stages)
