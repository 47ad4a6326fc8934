"""
Constants and Enums for Screencraft
===================================

Centralized enums for the generation options and pipeline stages.

Notes:
- Option values accept both the canonical camelCase ids (``reactFamily``)
  and the short ids used by the upload form (``react``, ``tailwind``,
  ``component-based``). See ``OptionEnum.coerce``.
- Display metadata for each option lives in
  ``screencraft.services.generation.scaffolding``.
"""

from enum import Enum
from typing import Dict, Optional


class BaseEnum(str, Enum):
    """Base enum class with string values for consistent behavior."""

    def __str__(self):
        return self.value


class OptionEnum(BaseEnum):
    """User-selectable option with alias lookup."""

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        return {}

    @classmethod
    def coerce(cls, value) -> Optional["OptionEnum"]:
        """Return the member matching ``value`` or None when unrecognized."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        key = str(value).strip()
        if not key:
            return None
        for member in cls:
            if member.value.lower() == key.lower():
                return member
        alias = cls.aliases().get(key.lower())
        return cls(alias) if alias else None


# ===========================
# GENERATION OPTIONS
# ===========================

class Platform(OptionEnum):
    """Target platform for a generated project."""
    WEB = "web"
    ANDROID = "android"
    IOS = "ios"


class Framework(OptionEnum):
    """Web framework family."""
    REACT = "reactFamily"
    VUE = "vueFamily"
    ANGULAR = "angularFamily"
    SVELTE = "svelteFamily"

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        return {
            'react': cls.REACT.value,
            'vue': cls.VUE.value,
            'vue.js': cls.VUE.value,
            'angular': cls.ANGULAR.value,
            'svelte': cls.SVELTE.value,
        }


class Styling(OptionEnum):
    """Styling approach for web projects."""
    UTILITY_CSS = "utilityCss"
    CSS_IN_JS = "cssInJs"
    PLAIN_CSS = "plainCss"
    PREPROCESSED_CSS = "preprocessedCss"

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        return {
            'tailwind': cls.UTILITY_CSS.value,
            'styled-components': cls.CSS_IN_JS.value,
            'pure-css': cls.PLAIN_CSS.value,
            'css': cls.PLAIN_CSS.value,
            'scss': cls.PREPROCESSED_CSS.value,
            'sass': cls.PREPROCESSED_CSS.value,
        }


class Architecture(OptionEnum):
    """Source-tree architecture style for web projects."""
    COMPONENT_BASED = "componentBased"
    MODULAR = "modular"
    ATOMIC_DESIGN = "atomicDesign"
    MVC_PATTERN = "mvcPattern"

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        return {
            'component-based': cls.COMPONENT_BASED.value,
            'atomic-design': cls.ATOMIC_DESIGN.value,
            'mvc-pattern': cls.MVC_PATTERN.value,
            'mvc': cls.MVC_PATTERN.value,
        }


DEFAULT_FRAMEWORK = Framework.REACT
DEFAULT_STYLING = Styling.UTILITY_CSS
DEFAULT_ARCHITECTURE = Architecture.COMPONENT_BASED

DEFAULT_WEB_PROJECT_NAME = "generated-app"
DEFAULT_MOBILE_PROJECT_NAME = "MyMobileApp"


# ===========================
# PIPELINE STAGES
# ===========================

class GenerationStage(BaseEnum):
    """Stages reported by the platform strategies."""
    REQUESTING = "requesting"
    PLANNING = "planning"
    GENERATING_COMPONENTS = "generating_components"
    GENERATING_SCREENS = "generating_screens"
    GENERATING_APP_SHELL = "generating_app_shell"
    ASSEMBLING = "assembling"
    DONE = "done"
