"""Generation Pipeline
===================

Turns screen images into a runnable project for web, Android or iOS.

Components:
- config.py: request/reply/artifact dataclasses
- scaffolding.py: static option tables and default file templates
- prompt_builder.py: Jinja2 prompt rendering
- api_client.py: OpenRouter backend + bounded-retry InferenceClient
- response_parser.py: normalize() and the single-correction parser
- assembler.py: ProjectAssembler invariant passes
- strategies.py: Web / Android / iOS orchestration flows
- service.py: GenerationService entry point
"""

from .config import (
    AccuracyEstimate,
    ComponentMap,
    GenerationRequest,
    ParsedManifest,
    Plan,
    ProjectArtifact,
    Prompt,
    ScreenCode,
    VisualInput,
)
from .api_client import InferenceClient, OpenRouterBackend, get_inference_client
from .prompt_builder import PromptBuilder, get_prompt_builder
from .response_parser import ResponseParser, normalize
from .assembler import ProjectAssembler, get_project_assembler
from .strategies import AndroidStrategy, IosStrategy, WebStrategy, strategy_for
from .service import GenerationService, get_generation_service

__all__ = [
    # Data model
    'AccuracyEstimate',
    'ComponentMap',
    'GenerationRequest',
    'ParsedManifest',
    'Plan',
    'ProjectArtifact',
    'Prompt',
    'ScreenCode',
    'VisualInput',
    # Components
    'InferenceClient',
    'OpenRouterBackend',
    'get_inference_client',
    'PromptBuilder',
    'get_prompt_builder',
    'ResponseParser',
    'normalize',
    'ProjectAssembler',
    'get_project_assembler',
    # Strategies
    'WebStrategy',
    'AndroidStrategy',
    'IosStrategy',
    'strategy_for',
    # Service
    'GenerationService',
    'get_generation_service',
]
