"""Prompt Builder
==============

Renders the generation prompts from Jinja2 templates. Pure and stateless:
the same request always produces the same prompt text, so every enumerated
list is either a fixed literal, sorted, or taken in Plan order.
"""

import logging
from typing import Any, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from screencraft.constants import Styling
from screencraft.paths import PROMPTS_DIR

from .config import GenerationRequest, Plan, Prompt
from .scaffolding import (
    ANDROID_COMPOSE_DEPENDENCIES, ARCHITECTURES, ENTRY_POINTS, FRAMEWORKS,
    PLATFORMS, STYLINGS, TAILWIND_FILES, required_dependencies,
)

logger = logging.getLogger(__name__)

ANDROID_THEME_FILES = ('Color.kt', 'Theme.kt', 'Type.kt')


class PromptBuilder:
    """Builds prompts for every platform and pipeline step."""

    def __init__(self):
        if not PROMPTS_DIR.exists():
            logger.error(f"Prompts directory not found at {PROMPTS_DIR}")

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(PROMPTS_DIR)),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def _render(self, template_name: str, **context: Any) -> str:
        return self.jinja_env.get_template(template_name).render(**context).strip() + "\n"

    # ------------------------------------------------------------------
    # Single-shot platforms
    # ------------------------------------------------------------------

    def build_web(self, request: GenerationRequest) -> Prompt:
        framework = FRAMEWORKS[request.framework]
        styling = STYLINGS[request.styling]
        architecture = ARCHITECTURES[request.architecture]
        deps, dev_deps = required_dependencies(request.framework, request.styling)

        text = self._render(
            'web.md.jinja2',
            framework=framework,
            styling=styling,
            architecture=architecture,
            project_name=request.project_name,
            screen_count=request.screen_count,
            dependencies=sorted({**deps, **dev_deps}),
            file_categories=self._web_file_categories(request),
        )
        return Prompt(text=text, visual_inputs=request.visual_inputs)

    def _web_file_categories(self, request: GenerationRequest) -> List[str]:
        framework = FRAMEWORKS[request.framework]
        styling = STYLINGS[request.styling]
        architecture = ARCHITECTURES[request.architecture]
        entry = ENTRY_POINTS[request.framework]

        categories = [
            'package.json with ALL required dependencies',
            f"{entry['html'][0]} (entry HTML)",
            f"{entry['bootstrap'][0]} (entry point that mounts the app)",
        ]
        categories.extend(f"{path} (app shell)" for path in sorted(entry['shell']))
        if request.styling == Styling.UTILITY_CSS:
            categories.extend(f"{path} ({styling['name']} configuration)" for path in sorted(TAILWIND_FILES))
        categories.append(
            f"{framework['name']} component files under src/ following {architecture['name']} "
            f"({', '.join(architecture['folders'])})"
        )
        categories.append(f"Styling files using {styling['name']}")
        categories.append('README.md with setup instructions')
        return categories

    def build_android(self, request: GenerationRequest) -> Prompt:
        package_name = request.package_name
        text = self._render(
            'android.md.jinja2',
            package_name=package_name,
            source_root=f"app/src/main/java/{package_name.replace('.', '/')}",
            screen_count=request.screen_count,
            theme_files=ANDROID_THEME_FILES,
            dependencies=[dep.rsplit(':', 1)[0] for dep in ANDROID_COMPOSE_DEPENDENCIES],
        )
        return Prompt(text=text, visual_inputs=request.visual_inputs)

    # ------------------------------------------------------------------
    # iOS multi-step flow
    # ------------------------------------------------------------------

    def build_ios_plan(self, request: GenerationRequest) -> Prompt:
        text = self._render(
            'ios_plan.md.jinja2',
            language=PLATFORMS[request.platform]['language'],
            project_name=request.project_name,
            screen_count=request.screen_count,
        )
        return Prompt(text=text, visual_inputs=request.visual_inputs)

    def build_ios_components(self, request: GenerationRequest, plan: Plan) -> Prompt:
        text = self._render(
            'ios_components.md.jinja2',
            language=PLATFORMS[request.platform]['language'],
            project_name=request.project_name,
            components=list(plan.reusable_component_names),
        )
        return Prompt(text=text, visual_inputs=request.visual_inputs)

    def build_ios_screen(self, request: GenerationRequest, plan: Plan, screen_name: str) -> Prompt:
        text = self._render(
            'ios_screen.md.jinja2',
            language=PLATFORMS[request.platform]['language'],
            project_name=request.project_name,
            screen_name=screen_name,
            components=list(plan.reusable_component_names),
        )
        return Prompt(text=text, visual_inputs=request.visual_inputs)

    def build_ios_app_shell(self, request: GenerationRequest, plan: Plan) -> Prompt:
        text = self._render(
            'ios_app_shell.md.jinja2',
            project_name=request.project_name,
            screens=list(plan.screen_names),
        )
        return Prompt(text=text, visual_inputs=request.visual_inputs)

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def build_correction(
        self,
        malformed_text: str,
        original_prompt: Prompt,
        parse_error: Optional[str] = None,
    ) -> Prompt:
        """Ask the backend to re-emit its previous reply as valid JSON."""
        text = self._render(
            'correction.md.jinja2',
            original_prompt=original_prompt.text,
            malformed_text=malformed_text,
            parse_error=parse_error or '',
        )
        return Prompt(text=text, visual_inputs=original_prompt.visual_inputs, expect_json=True)


_builder: Optional[PromptBuilder] = None


def get_prompt_builder() -> PromptBuilder:
    """Get shared prompt builder instance."""
    global _builder
    if _builder is None:
        _builder = PromptBuilder()
    return _builder
