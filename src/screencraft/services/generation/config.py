"""Generation Data Model
======================

Immutable value objects passed between pipeline stages, plus the four
reply shapes a backend may return (manifest, plan, screen code, component
map). Each reply shape owns a ``validate_payload`` schema check.
"""

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from screencraft.constants import (
    Architecture, Framework, Platform, Styling,
    DEFAULT_ARCHITECTURE, DEFAULT_FRAMEWORK, DEFAULT_STYLING,
    DEFAULT_MOBILE_PROJECT_NAME, DEFAULT_WEB_PROJECT_NAME,
)
from screencraft.utils.errors import InputError, SchemaError

logger = logging.getLogger(__name__)

PARSE_ERROR_KEY = "_parse_error"
RAW_TEXT_KEY = "_raw"


@dataclass(frozen=True)
class VisualInput:
    """One raster image attached to an inference request."""
    mime_type: str
    data: bytes
    name: str = ""

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode('ascii')
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_base64(cls, mime_type: str, payload: str, name: str = "") -> "VisualInput":
        return cls(mime_type=mime_type, data=base64.b64decode(payload), name=name)


@dataclass(frozen=True)
class Prompt:
    """Prompt text plus the visual inputs sent alongside it."""
    text: str
    visual_inputs: Tuple[VisualInput, ...] = ()
    expect_json: bool = True


def _order_visual_inputs(inputs: Sequence[VisualInput], ordered_names: Sequence[str]) -> Tuple[VisualInput, ...]:
    """Reorder inputs by the caller's preferred file-name order.

    Names not present in ``ordered_names`` keep their upload order after the
    ordered ones.
    """
    if not ordered_names:
        return tuple(inputs)
    remaining = list(inputs)
    ordered: List[VisualInput] = []
    for name in ordered_names:
        for item in remaining:
            if item.name == name:
                ordered.append(item)
                remaining.remove(item)
                break
    return tuple(ordered + remaining)


@dataclass(frozen=True)
class GenerationRequest:
    """Everything one generation run needs. Immutable once submitted.

    Attributes:
        visual_inputs: Screen images in the order they should be presented
        platform: Target platform
        framework: Web framework family (ignored for mobile)
        styling: Web styling approach (ignored for mobile)
        architecture: Web architecture style (ignored for mobile)
        project_name: Human-facing project name
        stylesheet: Optional caller-supplied CSS written verbatim
        design_tokens: Optional CSS custom properties written to a token file
    """
    visual_inputs: Tuple[VisualInput, ...]
    platform: Platform
    framework: Framework = DEFAULT_FRAMEWORK
    styling: Styling = DEFAULT_STYLING
    architecture: Architecture = DEFAULT_ARCHITECTURE
    project_name: str = DEFAULT_WEB_PROJECT_NAME
    stylesheet: Optional[str] = None
    design_tokens: Dict[str, str] = field(default_factory=dict)

    @property
    def screen_count(self) -> int:
        return len(self.visual_inputs)

    @property
    def safe_project_name(self) -> str:
        """Alphanumeric, lowercased name used for Android package paths."""
        safe = re.sub(r'[^a-zA-Z0-9]', '', self.project_name).lower()
        return safe or "app"

    @property
    def package_name(self) -> str:
        return f"com.example.{self.safe_project_name}"

    def configuration(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'platform': self.platform.value, 'projectName': self.project_name}
        if self.platform == Platform.WEB:
            data.update({
                'framework': self.framework.value,
                'styling': self.styling.value,
                'architecture': self.architecture.value,
            })
        return data

    @classmethod
    def from_config(cls, config: Mapping[str, Any], visual_inputs: Sequence[VisualInput]) -> "GenerationRequest":
        """Build a request from loosely-typed caller options.

        Raises:
            InputError: No visual inputs, or the platform is missing/unknown.
        """
        if not visual_inputs:
            raise InputError("No screens were uploaded.")

        raw_platform = config.get('platform')
        platform = Platform.coerce(raw_platform)
        if platform is None:
            raise InputError(
                "A valid platform (web/android/ios) must be specified.",
                details={'platform': raw_platform},
            )

        framework = cls._option(Framework, config.get('framework'), DEFAULT_FRAMEWORK)
        styling = cls._option(Styling, config.get('styling'), DEFAULT_STYLING)
        architecture = cls._option(Architecture, config.get('architecture'), DEFAULT_ARCHITECTURE)

        default_name = DEFAULT_WEB_PROJECT_NAME if platform == Platform.WEB else DEFAULT_MOBILE_PROJECT_NAME
        project_name = str(config.get('projectName') or config.get('project_name') or '').strip() or default_name

        tokens = config.get('designTokens') or config.get('design_tokens') or {}
        if not isinstance(tokens, Mapping):
            raise InputError("designTokens must be an object of name/value pairs.")

        ordered_names = config.get('orderedFileNames') or config.get('ordered_file_names') or []
        if not isinstance(ordered_names, (list, tuple)):
            raise InputError("orderedFileNames must be a list of file names.")

        return cls(
            visual_inputs=_order_visual_inputs(visual_inputs, [str(n) for n in ordered_names]),
            platform=platform,
            framework=framework,
            styling=styling,
            architecture=architecture,
            project_name=project_name,
            stylesheet=config.get('stylesheet') or None,
            design_tokens={str(k): str(v) for k, v in tokens.items()},
        )

    @staticmethod
    def _option(enum_cls, value, default):
        member = enum_cls.coerce(value)
        if member is None:
            if value not in (None, ''):
                logger.info(f"Unrecognized {enum_cls.__name__.lower()} '{value}', using {default.value}")
            return default
        return member


# ---------------------------------------------------------------------------
# Backend reply shapes
# ---------------------------------------------------------------------------

@dataclass
class ParsedManifest:
    """Files extracted from a backend reply; possibly empty on failure."""
    files: Dict[str, Any] = field(default_factory=dict)
    summary: Optional[str] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return PARSE_ERROR_KEY in self.diagnostics

    @classmethod
    def validate_payload(cls, payload: Any) -> None:
        if not isinstance(payload, dict):
            raise SchemaError("expected a JSON object")
        if not isinstance(payload.get('files'), dict):
            raise SchemaError("expected a 'files' object mapping paths to contents")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ParsedManifest":
        files = payload.get('files')
        summary = payload.get('summary', payload.get('manifest'))
        if summary is not None and not isinstance(summary, str):
            summary = json.dumps(summary)
        diagnostics = {k: payload[k] for k in (PARSE_ERROR_KEY, RAW_TEXT_KEY) if k in payload}
        return cls(files=dict(files) if isinstance(files, dict) else {}, summary=summary, diagnostics=diagnostics)


@dataclass
class Plan:
    """Screen and component inventory for multi-step generation."""
    screen_names: List[str] = field(default_factory=list)
    reusable_component_names: List[str] = field(default_factory=list)

    @classmethod
    def validate_payload(cls, payload: Any) -> None:
        if not isinstance(payload, dict):
            raise SchemaError("expected a JSON object")
        if not isinstance(payload.get('screens'), list):
            raise SchemaError("expected 'screens' to be an array of names")
        components = payload.get('reusable_components', [])
        if components is not None and not isinstance(components, list):
            raise SchemaError("expected 'reusable_components' to be an array of names")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Plan":
        def _names(values) -> List[str]:
            return [str(v).strip() for v in (values or []) if str(v).strip()]
        return cls(
            screen_names=_names(payload.get('screens')),
            reusable_component_names=_names(payload.get('reusable_components')),
        )


@dataclass
class ScreenCode:
    """Source for a single generated screen or app shell."""
    code: str

    @classmethod
    def validate_payload(cls, payload: Any) -> None:
        if not isinstance(payload, dict):
            raise SchemaError("expected a JSON object")
        code = payload.get('code')
        if not isinstance(code, str) or not code.strip():
            raise SchemaError("expected a non-empty 'code' string")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ScreenCode":
        return cls(code=payload['code'])


@dataclass
class ComponentMap:
    """Component name to source mapping."""
    components: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        if isinstance(payload, dict) and set(payload) == {'components'} and isinstance(payload['components'], dict):
            return payload['components']
        return payload

    @classmethod
    def validate_payload(cls, payload: Any) -> None:
        payload = cls._unwrap(payload)
        if not isinstance(payload, dict):
            raise SchemaError("expected a JSON object mapping component names to code")
        bad = sorted(k for k, v in payload.items() if not isinstance(v, str))
        if bad:
            raise SchemaError(f"non-string code for components: {', '.join(bad)}")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ComponentMap":
        payload = cls._unwrap(payload)
        return cls(components={str(k): v for k, v in payload.items() if isinstance(v, str)})


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AccuracyEstimate:
    """Cosmetic confidence signal shown to users.

    The score is drawn at random from [80, 100]; it is not computed from the
    generated code and must not be treated as a quality measurement.
    """
    score: int
    justification: str

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'justification': self.justification}


@dataclass
class ProjectArtifact:
    """Final generated project handed back to the caller.

    Attributes:
        files: Relative path to file content
        accuracy: Cosmetic confidence signal (see AccuracyEstimate)
        platform: Platform the project targets
        project_name: Project name used in manifests and titles
        summary: Optional free-text summary returned by the backend
        configuration: Resolved generation options
        diagnostics: Audit trail of synthesized/augmented/replaced files
    """
    files: Dict[str, str]
    accuracy: AccuracyEstimate
    platform: Platform
    project_name: str
    summary: Optional[str] = None
    configuration: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'files': self.files,
            'accuracyResult': self.accuracy.to_dict(),
            'manifest': self.summary,
            'configuration': self.configuration,
            'platform': self.platform.value,
            'projectName': self.project_name,
            'diagnostics': self.diagnostics,
        }
