"""Project Assembler
=================

Turns a (possibly empty) ParsedManifest into a ProjectArtifact that always
contains the required files for its platform.

Web passes run in this fixed order, each checking for presence before it
acts:

1. sanitize          - safe relative paths, string contents
2. dependency manifest - synthesize / augment / replace package.json
3. styling config    - Tailwind + PostCSS config for utility CSS
4. entry points      - entry HTML, mounting bootstrap, app shell
5. custom assets     - caller stylesheet and design tokens, never overwriting
6. import hygiene    - React import for JSX files (React only)

Android and iOS run sanitize plus their own required-file checks. Every
file the assembler had to write or rewrite is recorded in the artifact's
diagnostics list.
"""

import json
import logging
import random
import re
from typing import Any, Dict, List, Optional, Sequence

from screencraft.constants import Framework, Platform, Styling

from .config import AccuracyEstimate, GenerationRequest, ParsedManifest, ProjectArtifact
from .scaffolding import (
    ANDROID_BUILD_GRADLE, ANDROID_MAIN_ACTIVITY, ANDROID_MANIFEST, ARCHITECTURES,
    BASE_STYLESHEET, ENTRY_POINTS, FRAMEWORKS, IOS_APP_SHELL, IOS_COMPONENT_PLACEHOLDER, PLATFORMS,
    REACT_BROWSERSLIST, STYLINGS, TAILWIND_FILES,
    android_gradle_dependency_lines, apply_substitutions, build_package_json,
    ios_navigation_links, npm_package_name, pascal_identifier, required_dependencies,
)

logger = logging.getLogger(__name__)

PACKAGE_JSON = 'package.json'
CUSTOM_STYLESHEET = 'src/custom.css'
DESIGN_TOKENS_STYLESHEET = 'src/design-tokens.css'
IOS_APP_SHELL_PATH = 'App.swift'
IOS_SCREENS_DIR = 'Screens'
IOS_COMPONENTS_DIR = 'Components'
TAILWIND_STYLESHEET = 'src/index.css'

REACT_IMPORT_LINE = "import React from 'react';\n\n"
_REACT_IMPORT_RE = re.compile(r"""import\s+(\*\s+as\s+)?React\b|from\s+['"]react['"]""")
_JSX_TAG_RE = re.compile(r"<(?:[A-Z][\w.]*|[a-z][\w-]*)(?:\s[^<>]*?)?/?>|<>")
_DIRECTIVE_RE = re.compile(r"""^\s*(['"])use (client|strict|server)\1;?[ \t]*\n""")
_WINDOWS_DRIVE_RE = re.compile(r'^[A-Za-z]:')
JSX_EXTENSIONS = ('.js', '.jsx', '.tsx')

ACCURACY_MIN = 80
ACCURACY_MAX = 100


def stringify_content(value: Any) -> str:
    """String form of a file value; non-strings are JSON-encoded."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return json.dumps(value)


def normalize_path(path: Any) -> Optional[str]:
    """Normalize a manifest key to a safe relative POSIX path, or None."""
    if not isinstance(path, str):
        return None
    candidate = path.strip().replace('\\', '/')
    if not candidate or candidate.startswith('/') or _WINDOWS_DRIVE_RE.match(candidate):
        return None
    parts = [part for part in candidate.split('/') if part not in ('', '.')]
    if not parts or '..' in parts:
        return None
    return '/'.join(parts)


class ProjectAssembler:
    """Applies the per-platform invariants to a parsed manifest.

    ``rng`` feeds the cosmetic accuracy score only; pass a seeded
    ``random.Random`` for reproducible output.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def assemble(
        self,
        manifest: ParsedManifest,
        request: GenerationRequest,
        ios_components: Sequence[str] = (),
    ) -> ProjectArtifact:
        """Apply the platform passes to ``manifest``.

        ``ios_components`` lists the planned component names; each one without
        a ``Components/<Name>.swift`` file gets a placeholder view.
        """
        diagnostics: List[str] = []
        if manifest.degraded:
            diagnostics.append(f"degraded-reply:{manifest.diagnostics.get('_parse_error', 'unknown')}")

        files = self._sanitize(manifest.files, diagnostics)

        if request.platform == Platform.WEB:
            self._ensure_dependency_manifest(files, request, diagnostics)
            self._ensure_styling_config(files, request, diagnostics)
            self._ensure_entry_points(files, request, diagnostics)
            self._inject_custom_assets(files, request, diagnostics)
            if request.framework == Framework.REACT:
                self._ensure_react_imports(files, diagnostics)
        elif request.platform == Platform.ANDROID:
            self._ensure_android_project(files, request, diagnostics)
        else:
            self._ensure_ios_components(files, ios_components, diagnostics)
            self._ensure_ios_app_shell(files, request, diagnostics)

        logger.info(
            f"Assembled {request.platform.value} project '{request.project_name}': "
            f"{len(files)} files, {len(diagnostics)} fixups"
        )
        return ProjectArtifact(
            files=files,
            accuracy=self._estimate_accuracy(request),
            platform=request.platform,
            project_name=request.project_name,
            summary=manifest.summary,
            configuration=request.configuration(),
            diagnostics=diagnostics,
        )

    # ------------------------------------------------------------------
    # Pass 1: sanitize
    # ------------------------------------------------------------------

    def _sanitize(self, raw_files: Dict[Any, Any], diagnostics: List[str]) -> Dict[str, str]:
        files: Dict[str, str] = {}
        for raw_path, raw_content in (raw_files or {}).items():
            path = normalize_path(raw_path)
            if path is None:
                logger.warning(f"Dropping unsafe path from manifest: {raw_path!r}")
                diagnostics.append(f"dropped:{raw_path}")
                continue
            if path in files:
                diagnostics.append(f"duplicate:{raw_path}")
                continue
            if not isinstance(raw_content, str):
                diagnostics.append(f"stringified:{path}")
            files[path] = stringify_content(raw_content)
        return files

    # ------------------------------------------------------------------
    # Pass 2: dependency manifest
    # ------------------------------------------------------------------

    def _ensure_dependency_manifest(self, files: Dict[str, str], request: GenerationRequest, diagnostics: List[str]) -> None:
        raw = files.get(PACKAGE_JSON)
        if raw is None:
            files[PACKAGE_JSON] = self._dump_package(build_package_json(request.project_name, request.framework, request.styling))
            diagnostics.append(f"synthesized:{PACKAGE_JSON}")
            logger.info("package.json missing, synthesized default")
            return

        try:
            package = json.loads(raw)
            if not isinstance(package, dict):
                raise ValueError("package.json root is not an object")
        except (ValueError, RecursionError) as e:
            logger.warning(f"Invalid package.json ({e}), replacing with default")
            files[PACKAGE_JSON] = self._dump_package(build_package_json(request.project_name, request.framework, request.styling))
            diagnostics.append(f"replaced:{PACKAGE_JSON}")
            return

        added = self._augment_package(package, request)
        if added:
            files[PACKAGE_JSON] = self._dump_package(package)
            diagnostics.append(f"augmented:{PACKAGE_JSON}")
            logger.info(f"Augmented package.json: {', '.join(added)}")

    def _augment_package(self, package: Dict[str, Any], request: GenerationRequest) -> List[str]:
        """Add missing required entries in place; existing versions win."""
        added: List[str] = []
        deps, dev_deps = required_dependencies(request.framework, request.styling)

        for section in ('dependencies', 'devDependencies'):
            if not isinstance(package.get(section), dict):
                package[section] = {}
        declared = set(package['dependencies']) | set(package['devDependencies'])

        for section, required in (('dependencies', deps), ('devDependencies', dev_deps)):
            for name, version in required.items():
                if name not in declared:
                    package[section].setdefault(name, version)
                    added.append(name)

        if not package.get('name'):
            package['name'] = npm_package_name(request.project_name)
            added.append('name')
        if not isinstance(package.get('scripts'), dict) or not package['scripts']:
            package['scripts'] = dict(FRAMEWORKS[request.framework]['scripts'])
            added.append('scripts')
        if request.framework == Framework.REACT and 'browserslist' not in package:
            package['browserslist'] = json.loads(json.dumps(REACT_BROWSERSLIST))
            added.append('browserslist')
        return added

    @staticmethod
    def _dump_package(package: Dict[str, Any]) -> str:
        return json.dumps(package, indent=2) + "\n"

    # ------------------------------------------------------------------
    # Pass 3: styling configuration
    # ------------------------------------------------------------------

    def _ensure_styling_config(self, files: Dict[str, str], request: GenerationRequest, diagnostics: List[str]) -> None:
        if request.styling != Styling.UTILITY_CSS:
            return
        for path, content in TAILWIND_FILES.items():
            if path.endswith('.config.js'):
                stem = path[:-len('js')]
                present = any(existing.startswith(stem) and '/' not in existing for existing in files)
            else:
                present = path in files
            if not present:
                files[path] = content
                diagnostics.append(f"synthesized:{path}")

    # ------------------------------------------------------------------
    # Pass 4: entry points
    # ------------------------------------------------------------------

    def _ensure_entry_points(self, files: Dict[str, str], request: GenerationRequest, diagnostics: List[str]) -> None:
        entry = ENTRY_POINTS[request.framework]
        subs = {'project_name': request.project_name}

        def _put(path: str, content: str) -> None:
            files[path] = apply_substitutions(content, subs)
            diagnostics.append(f"synthesized:{path}")

        html_path, html_template = entry['html']
        if html_path not in files and not any(p in files for p in ('index.html', 'public/index.html', 'src/index.html')):
            _put(html_path, html_template)

        mount = re.compile(entry['mount_pattern'])
        has_bootstrap = any(mount.search(files.get(path, '')) for path in entry['bootstrap_candidates'])
        if not has_bootstrap:
            bootstrap_path, bootstrap_template = entry['bootstrap']
            if bootstrap_path in files:
                logger.warning(f"{bootstrap_path} has no mount call; keeping generated content")
                diagnostics.append(f"unverified-entry:{bootstrap_path}")
            else:
                _put(bootstrap_path, bootstrap_template)

        if request.framework == Framework.REACT:
            if not any(path in files for path in entry['shell_modules']):
                for path, content in entry['shell'].items():
                    _put(path, content)
        else:
            for path, content in entry['shell'].items():
                if path not in files:
                    _put(path, content)

        stylesheet = entry['stylesheet']
        if stylesheet not in files:
            content = BASE_STYLESHEET
            # Tailwind directives must reach the stylesheet the bootstrap imports
            if request.styling == Styling.UTILITY_CSS and stylesheet not in TAILWIND_FILES:
                content = TAILWIND_FILES[TAILWIND_STYLESHEET] + "\n" + content
            _put(stylesheet, content)

        for path, content in entry['build_config'].items():
            stem = path[:-len('js')]
            if not any(existing.startswith(stem) and '/' not in existing for existing in files):
                _put(path, content)

    # ------------------------------------------------------------------
    # Pass 5: custom assets
    # ------------------------------------------------------------------

    def _inject_custom_assets(self, files: Dict[str, str], request: GenerationRequest, diagnostics: List[str]) -> None:
        if request.stylesheet:
            self._write_unique(files, CUSTOM_STYLESHEET, request.stylesheet, diagnostics)
        if request.design_tokens:
            self._write_unique(files, DESIGN_TOKENS_STYLESHEET, self._design_tokens_css(request.design_tokens), diagnostics)

    @staticmethod
    def _design_tokens_css(tokens: Dict[str, str]) -> str:
        lines = []
        for key in sorted(tokens):
            name = re.sub(r'\s+', '-', key.strip())
            if not name.startswith('--'):
                name = f"--{name}"
            value = str(tokens[key]).strip().rstrip(';')
            lines.append(f"  {name}: {value};")
        return ":root {\n" + "\n".join(lines) + "\n}\n"

    @staticmethod
    def _write_unique(files: Dict[str, str], path: str, content: str, diagnostics: List[str]) -> None:
        """Write ``content`` at ``path`` or the first free ``-N`` variant."""
        stem, dot, ext = path.rpartition('.')
        candidate, counter = path, 0
        while candidate in files:
            if files[candidate] == content:
                return
            counter += 1
            candidate = f"{stem}-{counter}{dot}{ext}"
        files[candidate] = content
        diagnostics.append(f"custom-asset:{candidate}")

    # ------------------------------------------------------------------
    # Pass 6: import hygiene
    # ------------------------------------------------------------------

    def _ensure_react_imports(self, files: Dict[str, str], diagnostics: List[str]) -> None:
        for path, content in files.items():
            if not path.startswith('src/') or not path.endswith(JSX_EXTENSIONS):
                continue
            if _REACT_IMPORT_RE.search(content) or not self._uses_jsx(content):
                continue
            directive = _DIRECTIVE_RE.match(content)
            if directive:
                head, tail = content[:directive.end()], content[directive.end():]
                files[path] = head + REACT_IMPORT_LINE + tail
            else:
                files[path] = REACT_IMPORT_LINE + content
            diagnostics.append(f"react-import:{path}")

    @staticmethod
    def _uses_jsx(content: str) -> bool:
        return bool(_JSX_TAG_RE.search(content)) and ('</' in content or '/>' in content)

    # ------------------------------------------------------------------
    # Mobile
    # ------------------------------------------------------------------

    def _ensure_android_project(self, files: Dict[str, str], request: GenerationRequest, diagnostics: List[str]) -> None:
        subs = {
            'package_name': request.package_name,
            'project_name': request.project_name,
            'dependency_lines': android_gradle_dependency_lines(),
        }
        source_root = f"app/src/main/java/{request.package_name.replace('.', '/')}"

        has_activity = any(
            path.endswith('/MainActivity.kt') and path.startswith(('app/src/main/java/', 'app/src/main/kotlin/'))
            for path in files
        )
        required = {
            f"{source_root}/MainActivity.kt": (not has_activity, ANDROID_MAIN_ACTIVITY),
            'app/src/main/AndroidManifest.xml': ('app/src/main/AndroidManifest.xml' not in files, ANDROID_MANIFEST),
            'app/build.gradle.kts': (
                'app/build.gradle.kts' not in files and 'app/build.gradle' not in files,
                ANDROID_BUILD_GRADLE,
            ),
        }
        for path, (missing, template) in required.items():
            if missing:
                files[path] = apply_substitutions(template, subs)
                diagnostics.append(f"synthesized:{path}")

    def _ensure_ios_components(self, files: Dict[str, str], names: Sequence[str], diagnostics: List[str]) -> None:
        for name in names:
            path = f"{IOS_COMPONENTS_DIR}/{name}.swift"
            if path not in files:
                files[path] = apply_substitutions(IOS_COMPONENT_PLACEHOLDER, {'component_name': name})
                diagnostics.append(f"synthesized:{path}")
                logger.warning(f"No code for planned component {name}; wrote placeholder view")

    def _ensure_ios_app_shell(self, files: Dict[str, str], request: GenerationRequest, diagnostics: List[str]) -> None:
        if IOS_APP_SHELL_PATH in files:
            return
        screens = [
            path[len(IOS_SCREENS_DIR) + 1:-len('.swift')]
            for path in files
            if path.startswith(f"{IOS_SCREENS_DIR}/") and path.endswith('.swift')
        ]
        subs = {
            'navigation_links': ios_navigation_links(screens),
            'app_struct': f"{pascal_identifier(request.project_name, 'Generated')}App",
            'project_name': request.project_name,
        }
        files[IOS_APP_SHELL_PATH] = apply_substitutions(IOS_APP_SHELL, subs)
        diagnostics.append(f"synthesized:{IOS_APP_SHELL_PATH}")

    # ------------------------------------------------------------------
    # Accuracy (cosmetic)
    # ------------------------------------------------------------------

    def _estimate_accuracy(self, request: GenerationRequest) -> AccuracyEstimate:
        """Random score in [80, 100] with a templated justification.

        This is a display-only confidence signal. Nothing in the generated
        code is measured.
        """
        score = self.rng.randint(ACCURACY_MIN, ACCURACY_MAX)
        if request.platform == Platform.WEB:
            justification = (
                f"Generated {FRAMEWORKS[request.framework]['name']} code using "
                f"{STYLINGS[request.styling]['name']} following "
                f"{ARCHITECTURES[request.architecture]['name']} architecture. "
                "Code quality and structure meet industry standards."
            )
        else:
            justification = (
                f"Generated {PLATFORMS[request.platform]['name']} code with proper structure "
                "and components. Code quality meets industry standards."
            )
        return AccuracyEstimate(score=score, justification=justification)


def get_project_assembler() -> ProjectAssembler:
    """Get a project assembler with an unseeded random source."""
    return ProjectAssembler()
