"""Figma Design Import
===================

Thin adapter from a Figma file URL to the inputs the generation pipeline
consumes: one raster image per frame plus a token stylesheet. Token and
frame extraction walks the document tree once; nothing here inspects the
generated code.
"""

import aiohttp
import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from screencraft.config.settings import Config
from screencraft.services.generation.config import VisualInput
from screencraft.utils.errors import GenerationError, InputError

logger = logging.getLogger(__name__)

FIGMA_API_BASE = "https://api.figma.com/v1"
USER_AGENT = "screencraft/0.1"
_FILE_KEY_RE = re.compile(r"figma\.com/(?:file|design)/([a-zA-Z0-9]+)(?:[/?#]|$)")
_CSS_NAME_RE = re.compile(r"[^A-Za-z0-9_-]+")


def extract_file_key(figma_url: str) -> Optional[str]:
    """Return the file key from a figma.com file/design URL."""
    match = _FILE_KEY_RE.search(figma_url or '')
    return match.group(1) if match else None


def _channel(value: Any) -> int:
    return round(float(value or 0) * 255)


def extract_design_tokens(document: Dict[str, Any]) -> Dict[str, Any]:
    """Collect tokens, components and frames from a Figma document tree.

    Returns:
        Dict with ``tokens`` (colors, typography, spacing, shadows,
        borderRadius), ``components`` and ``screens`` (frames, document order)
    """
    tokens: Dict[str, Dict[str, Any]] = {
        'colors': {},
        'typography': {},
        'spacing': {},
        'shadows': {},
        'borderRadius': {},
    }
    components: List[Dict[str, Any]] = []
    screens: List[Dict[str, Any]] = []

    stack = [(document or {}, '')]
    while stack:
        node, parent_path = stack.pop()
        name = node.get('name', '')
        path = f"{parent_path}/{name}" if parent_path else name

        for fill in node.get('fills') or []:
            color = fill.get('color') if isinstance(fill, dict) else None
            if fill.get('type') == 'SOLID' and color:
                r, g, b = _channel(color.get('r')), _channel(color.get('g')), _channel(color.get('b'))
                tokens['colors'][f"color-{r}-{g}-{b}"] = f"rgb({r}, {g}, {b})"

        style = node.get('style') or {}
        if style.get('fontFamily'):
            tokens['typography'][f"font-{style['fontFamily']}-{style.get('fontSize')}"] = {
                'fontFamily': style['fontFamily'],
                'fontSize': style.get('fontSize'),
                'fontWeight': style.get('fontWeight') or 400,
                'lineHeight': style.get('lineHeightPx'),
            }

        box = node.get('absoluteBoundingBox') or {}
        if box:
            width, height = box.get('width') or 0, box.get('height') or 0
            tokens['spacing'][f"w-{round(width)}"] = f"{width}px"
            tokens['spacing'][f"h-{round(height)}"] = f"{height}px"

        for effect in node.get('effects') or []:
            if effect.get('type') == 'DROP_SHADOW':
                offset = effect.get('offset') or {}
                radius = effect.get('radius') or 0
                opacity = (effect.get('color') or {}).get('a', effect.get('opacity', 1))
                tokens['shadows'][f"shadow-{round(radius)}"] = (
                    f"{offset.get('x', 0)}px {offset.get('y', 0)}px {radius}px rgba(0,0,0,{opacity})"
                )

        if node.get('cornerRadius'):
            tokens['borderRadius'][f"radius-{round(node['cornerRadius'])}"] = f"{node['cornerRadius']}px"

        if node.get('type') in ('COMPONENT', 'COMPONENT_SET'):
            components.append({'id': node.get('id'), 'name': name, 'path': path, 'type': node['type']})

        if node.get('type') == 'FRAME':
            screens.append({
                'id': node.get('id'),
                'name': name,
                'path': path,
                'width': box.get('width'),
                'height': box.get('height'),
                'children': len(node.get('children') or []),
            })

        # Reverse so children pop in document order
        for child in reversed(node.get('children') or []):
            stack.append((child, path))

    return {'tokens': tokens, 'components': components, 'screens': screens}


@dataclass
class DesignSnapshot:
    """Everything the pipeline takes from one design file."""
    color_tokens: Dict[str, str] = field(default_factory=dict)
    typography_tokens: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    spacing_tokens: Dict[str, str] = field(default_factory=dict)
    shadow_tokens: Dict[str, str] = field(default_factory=dict)
    radius_tokens: Dict[str, str] = field(default_factory=dict)
    components: List[Dict[str, Any]] = field(default_factory=list)
    screens: List[Dict[str, Any]] = field(default_factory=list)
    image_by_screen: Dict[str, VisualInput] = field(default_factory=dict)

    @classmethod
    def from_extraction(cls, extracted: Dict[str, Any]) -> "DesignSnapshot":
        tokens = extracted.get('tokens', {})
        return cls(
            color_tokens=dict(tokens.get('colors', {})),
            typography_tokens=dict(tokens.get('typography', {})),
            spacing_tokens=dict(tokens.get('spacing', {})),
            shadow_tokens=dict(tokens.get('shadows', {})),
            radius_tokens=dict(tokens.get('borderRadius', {})),
            components=list(extracted.get('components', [])),
            screens=list(extracted.get('screens', [])),
        )

    def visual_inputs(self) -> List[VisualInput]:
        """Frame images in screen order, skipping frames without a render."""
        return [self.image_by_screen[s['id']] for s in self.screens if s.get('id') in self.image_by_screen]

    def as_stylesheet(self) -> str:
        """All tokens as CSS custom properties on ``:root``."""
        declarations: List[str] = []

        def _add(name: str, value: Any) -> None:
            if value is None:
                return
            declarations.append(f"  --{_CSS_NAME_RE.sub('-', name).strip('-')}: {value};")

        for table in (self.color_tokens, self.spacing_tokens, self.shadow_tokens, self.radius_tokens):
            for key in sorted(table):
                _add(key, table[key])
        for key in sorted(self.typography_tokens):
            font = self.typography_tokens[key]
            _add(f"{key}-family", f"'{font.get('fontFamily')}'")
            if font.get('fontSize') is not None:
                _add(f"{key}-size", f"{font['fontSize']}px")
            _add(f"{key}-weight", font.get('fontWeight'))
            if font.get('lineHeight') is not None:
                _add(f"{key}-line-height", f"{font['lineHeight']}px")

        return ":root {\n" + "\n".join(declarations) + "\n}\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'designTokens': {
                'colors': self.color_tokens,
                'typography': self.typography_tokens,
                'spacing': self.spacing_tokens,
                'shadows': self.shadow_tokens,
                'borderRadius': self.radius_tokens,
            },
            'components': self.components,
            'screens': self.screens,
        }


class FigmaImporter:
    """Fetches a Figma file and renders its frames as PNG visual inputs."""

    def __init__(self, token: Optional[str] = None, timeout: int = 60):
        self.token = token if token is not None else Config.FIGMA_API_TOKEN
        self.timeout = timeout

    def _api_headers(self) -> Dict[str, str]:
        # Render URLs are pre-signed on another host; only API calls carry the token
        return {
            'X-Figma-Token': self.token,
            'Accept': 'application/json',
        }

    async def fetch(self, design_url: str) -> DesignSnapshot:
        """Fetch tokens, frames and frame renders for ``design_url``.

        Raises:
            InputError: URL is missing or not a Figma file/design URL
            GenerationError: Token not configured or the Figma API failed
        """
        if not design_url:
            raise InputError("No figmaUrl provided.")
        file_key = extract_file_key(design_url)
        if not file_key:
            raise InputError("Invalid Figma URL.", details={'figmaUrl': design_url})
        if not self.token:
            raise GenerationError("FIGMA_API_TOKEN is not configured on the server.", code='figma_not_configured')

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(headers={'User-Agent': USER_AGENT}, timeout=timeout) as session:
                file_data = await self._get_json(session, f"{FIGMA_API_BASE}/files/{file_key}")
                snapshot = DesignSnapshot.from_extraction(extract_design_tokens(file_data.get('document') or {}))
                logger.info(
                    f"Figma file {file_key}: {len(snapshot.screens)} frame(s), "
                    f"{len(snapshot.components)} component(s)"
                )

                if snapshot.screens:
                    ids = ','.join(s['id'] for s in snapshot.screens if s.get('id'))
                    images = await self._get_json(
                        session, f"{FIGMA_API_BASE}/images/{file_key}", params={'ids': ids, 'format': 'png'}
                    )
                    urls = images.get('images') or {}
                    for screen in snapshot.screens:
                        url = urls.get(screen.get('id'))
                        if url:
                            data = await self._get_bytes(session, url)
                            snapshot.image_by_screen[screen['id']] = VisualInput(
                                mime_type='image/png', data=data, name=screen.get('name', '')
                            )
        except asyncio.TimeoutError as e:
            raise GenerationError("Figma API request timed out", http_status=504, code='design_import_failed') from e
        except aiohttp.ClientError as e:
            raise GenerationError(f"Figma API request failed: {e}", http_status=502, code='design_import_failed') from e

        return snapshot

    async def _get_json(self, session: aiohttp.ClientSession, url: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        async with session.get(url, params=params, headers=self._api_headers()) as response:
            if response.status != 200:
                text = await response.text()
                raise GenerationError(
                    f"Figma API error {response.status}: {text[:200]}",
                    http_status=502,
                    code='design_import_failed',
                )
            return await response.json()

    async def _get_bytes(self, session: aiohttp.ClientSession, url: str) -> bytes:
        async with session.get(url) as response:
            if response.status != 200:
                raise GenerationError(
                    f"Failed to download frame render ({response.status})",
                    http_status=502,
                    code='design_import_failed',
                )
            return await response.read()
