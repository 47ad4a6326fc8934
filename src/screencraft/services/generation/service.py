"""Generation Service
==================

Single entry point for the pipeline: validate the caller's options, pick
the platform strategy and run it.

Usage:
    service = GenerationService.from_settings(app.config)
    artifact = await service.generate({'platform': 'web'}, [image])
"""

import logging
import random
import time
from typing import Any, Mapping, Optional, Sequence, Union

from screencraft.config.settings import Config

from .api_client import InferenceClient, OpenRouterBackend
from .assembler import ProjectAssembler
from .config import GenerationRequest, ProjectArtifact, VisualInput
from .prompt_builder import PromptBuilder, get_prompt_builder
from .strategies import StageCallback, strategy_for

logger = logging.getLogger(__name__)


class GenerationService:
    """Orchestrates one generation request end to end."""

    def __init__(
        self,
        inference_client: Optional[InferenceClient] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        step_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        self.inference_client = inference_client or InferenceClient()
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.step_delay = Config.GENERATION_STEP_DELAY if step_delay is None else step_delay
        self.rng = rng

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "GenerationService":
        """Build a service from a Flask config mapping."""
        client = InferenceClient(
            OpenRouterBackend.from_settings(settings),
            max_attempts=settings.get('INFERENCE_MAX_ATTEMPTS'),
            backoff_unit=settings.get('INFERENCE_BACKOFF_SECONDS'),
        )
        return cls(inference_client=client, step_delay=settings.get('GENERATION_STEP_DELAY'))

    async def generate(
        self,
        config: Union[Mapping[str, Any], GenerationRequest],
        visual_inputs: Sequence[VisualInput] = (),
        on_stage: Optional[StageCallback] = None,
    ) -> ProjectArtifact:
        """Generate a project from screen images.

        Args:
            config: Option mapping (platform, framework, styling, architecture,
                projectName, stylesheet, designTokens, orderedFileNames) or an
                already-built GenerationRequest
            visual_inputs: Screen images; ignored when ``config`` is a request
            on_stage: Optional progress callback (stage, detail)

        Returns:
            ProjectArtifact satisfying the platform's required-file layout

        Raises:
            InputError: Missing screens or invalid platform
            InferenceError: Backend failure that outlasted the retry policy
            GenerationError: iOS plan or screen step could not be completed
        """
        if isinstance(config, GenerationRequest):
            request = config
        else:
            request = GenerationRequest.from_config(config, visual_inputs)

        strategy = strategy_for(
            request.platform,
            self.inference_client,
            prompt_builder=self.prompt_builder,
            assembler=ProjectAssembler(self.rng),
            on_stage=on_stage,
            step_delay=self.step_delay,
        )

        logger.info(
            f"Generating {request.platform.value} project '{request.project_name}' "
            f"from {request.screen_count} screen(s)"
        )
        start_time = time.time()
        artifact = await strategy.run(request)
        logger.info(
            f"Generated '{request.project_name}' in {time.time() - start_time:.1f}s "
            f"({len(artifact.files)} files)"
        )
        return artifact


_service: Optional[GenerationService] = None


def get_generation_service() -> GenerationService:
    """Get shared generation service instance."""
    global _service
    if _service is None:
        _service = GenerationService()
    return _service
