"""Platform Strategies
===================

Three orchestration flows built from the same parts:

- ``WebStrategy``:     Requesting -> Assembling
- ``AndroidStrategy``: Requesting -> Assembling
- ``IosStrategy``:     Planning -> GeneratingComponents (skipped without
  components) -> GeneratingScreens (one call per screen, Plan order) ->
  GeneratingAppShell -> Assembling

Inference calls within one run are awaited one after another. A strategy
instance serves a single request; nothing is shared between runs.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from screencraft.config.settings import Config
from screencraft.constants import GenerationStage, Platform
from screencraft.utils.errors import GenerationError

from .assembler import IOS_APP_SHELL_PATH, IOS_COMPONENTS_DIR, IOS_SCREENS_DIR, ProjectAssembler
from .config import (
    ComponentMap, GenerationRequest, ParsedManifest, Plan, ProjectArtifact, Prompt, ScreenCode,
)
from .prompt_builder import PromptBuilder, get_prompt_builder
from .response_parser import ResponseParser, is_degraded
from .scaffolding import pascal_identifier

logger = logging.getLogger(__name__)

StageCallback = Callable[[GenerationStage, str], Any]


def canonical_names(names: List[str], fallback: str, taken: Optional[set] = None) -> List[str]:
    """PascalCase each name, suffixing duplicates with 2, 3, ...

    ``taken`` is updated in place so several calls can share one namespace.
    """
    taken = taken if taken is not None else set()
    result = []
    for name in names:
        base = pascal_identifier(name, fallback)
        candidate, counter = base, 1
        while candidate in taken:
            counter += 1
            candidate = f"{base}{counter}"
        taken.add(candidate)
        result.append(candidate)
    return result


class GenerationStrategy:
    """Shared plumbing: stage reporting and one request/parse round."""

    platform: Platform

    def __init__(
        self,
        inference_client,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Optional[ResponseParser] = None,
        assembler: Optional[ProjectAssembler] = None,
        on_stage: Optional[StageCallback] = None,
        step_delay: Optional[float] = None,
    ):
        self.inference_client = inference_client
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.parser = parser or ResponseParser(inference_client, self.prompt_builder)
        self.assembler = assembler or ProjectAssembler()
        self.on_stage = on_stage
        self.step_delay = Config.GENERATION_STEP_DELAY if step_delay is None else step_delay

    async def run(self, request: GenerationRequest) -> ProjectArtifact:
        raise NotImplementedError

    async def _enter(self, stage: GenerationStage, detail: str = "") -> None:
        logger.info(f"[{self.platform.value}] {stage.value}{': ' + detail if detail else ''}")
        if self.on_stage is not None:
            result = self.on_stage(stage, detail)
            if inspect.isawaitable(result):
                await result
        if self.step_delay > 0 and stage != GenerationStage.DONE:
            await asyncio.sleep(self.step_delay)

    async def _round(self, prompt: Prompt, schema) -> Dict[str, Any]:
        """One inference call plus its parse/correction round."""
        reply = await self.inference_client.invoke(prompt)
        return await self.parser.parse_with_correction(reply, prompt, schema=schema)


class SingleShotStrategy(GenerationStrategy):
    """One prompt for the whole project, then assembly."""

    def build_prompt(self, request: GenerationRequest) -> Prompt:
        raise NotImplementedError

    async def run(self, request: GenerationRequest) -> ProjectArtifact:
        await self._enter(GenerationStage.REQUESTING, f"{request.screen_count} screen(s)")
        prompt = self.build_prompt(request)
        payload = await self._round(prompt, ParsedManifest)
        manifest = ParsedManifest.from_payload(payload)

        await self._enter(GenerationStage.ASSEMBLING, f"{len(manifest.files)} generated file(s)")
        artifact = self.assembler.assemble(manifest, request)
        await self._enter(GenerationStage.DONE)
        return artifact


class WebStrategy(SingleShotStrategy):
    platform = Platform.WEB

    def build_prompt(self, request: GenerationRequest) -> Prompt:
        return self.prompt_builder.build_web(request)


class AndroidStrategy(SingleShotStrategy):
    platform = Platform.ANDROID

    def build_prompt(self, request: GenerationRequest) -> Prompt:
        return self.prompt_builder.build_android(request)


class IosStrategy(GenerationStrategy):
    """Plan first, then components, screens and the app shell.

    A screen that cannot be generated aborts the whole run; no partial
    project is returned.
    """

    platform = Platform.IOS

    async def run(self, request: GenerationRequest) -> ProjectArtifact:
        notes: List[str] = []
        files: Dict[str, str] = {}

        plan = await self._plan(request)

        if plan.reusable_component_names:
            await self._enter(
                GenerationStage.GENERATING_COMPONENTS,
                ', '.join(plan.reusable_component_names),
            )
            files.update(await self._components(request, plan, notes))

        for index, screen_name in enumerate(plan.screen_names, start=1):
            await self._enter(
                GenerationStage.GENERATING_SCREENS,
                f"{screen_name} ({index}/{len(plan.screen_names)})",
            )
            files[f"{IOS_SCREENS_DIR}/{screen_name}.swift"] = await self._screen(request, plan, screen_name)

        await self._enter(GenerationStage.GENERATING_APP_SHELL)
        payload = await self._round(self.prompt_builder.build_ios_app_shell(request, plan), ScreenCode)
        if is_degraded(payload):
            notes.append(f"app-shell-unparsed:{payload.get('_parse_error')}")
        else:
            files[IOS_APP_SHELL_PATH] = ScreenCode.from_payload(payload).code

        await self._enter(GenerationStage.ASSEMBLING, f"{len(files)} generated file(s)")
        artifact = self.assembler.assemble(
            ParsedManifest(files=files), request, ios_components=plan.reusable_component_names,
        )
        artifact.diagnostics[:0] = notes
        await self._enter(GenerationStage.DONE)
        return artifact

    async def _plan(self, request: GenerationRequest) -> Plan:
        await self._enter(GenerationStage.PLANNING, f"{request.screen_count} screen(s)")
        payload = await self._round(self.prompt_builder.build_ios_plan(request), Plan)
        if is_degraded(payload):
            raise GenerationError(
                "Could not derive a screen plan from the uploaded screens.",
                code='planning_failed',
                details={'parse_error': payload.get('_parse_error')},
            )
        raw = Plan.from_payload(payload)
        # Screens claim names first so components never rename a screen
        taken: set = set()
        screens = canonical_names(raw.screen_names, 'Screen', taken)
        components = canonical_names(raw.reusable_component_names, 'Component', taken)
        logger.info(f"Plan: {len(screens)} screen(s), {len(components)} component(s)")
        return Plan(screen_names=screens, reusable_component_names=components)

    async def _components(self, request: GenerationRequest, plan: Plan, notes: List[str]) -> Dict[str, str]:
        payload = await self._round(self.prompt_builder.build_ios_components(request, plan), ComponentMap)
        if is_degraded(payload):
            logger.warning("Component generation did not parse; continuing without components")
            notes.append(f"components-unparsed:{payload.get('_parse_error')}")
            return {}

        component_map = ComponentMap.from_payload(payload)
        taken = set(plan.screen_names)
        files: Dict[str, str] = {}
        for raw_name, code in component_map.components.items():
            planned = pascal_identifier(raw_name, 'Component')
            if planned in plan.reusable_component_names and planned not in taken:
                name = planned
                taken.add(name)
            else:
                name = canonical_names([raw_name], 'Component', taken)[0]
            files[f"{IOS_COMPONENTS_DIR}/{name}.swift"] = code
        return files

    async def _screen(self, request: GenerationRequest, plan: Plan, screen_name: str) -> str:
        payload = await self._round(self.prompt_builder.build_ios_screen(request, plan, screen_name), ScreenCode)
        if is_degraded(payload):
            raise GenerationError(
                f"Failed to generate screen '{screen_name}'; aborting iOS generation.",
                code='partial_generation',
                details={'screen': screen_name, 'parse_error': payload.get('_parse_error')},
            )
        return ScreenCode.from_payload(payload).code


STRATEGIES = {
    Platform.WEB: WebStrategy,
    Platform.ANDROID: AndroidStrategy,
    Platform.IOS: IosStrategy,
}


def strategy_for(platform: Platform, inference_client, **kwargs) -> GenerationStrategy:
    """Instantiate the strategy registered for ``platform``."""
    return STRATEGIES[platform](inference_client, **kwargs)
