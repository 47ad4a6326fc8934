"""Generation API
==============

Endpoints:
GET  /api/config-options   Selectable platforms, frameworks, styling, architectures
POST /api/generate         multipart ``screens`` + form options -> ProjectArtifact
POST /api/import/figma     {"figmaUrl": ...} -> ProjectArtifact + extracted design data

Each request builds its own service; inference calls run to completion
inside ``asyncio.run`` on the request thread.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List

from flask import Blueprint, current_app, request

from screencraft.routes.response_utils import handle_exceptions, json_success
from screencraft.services.design_import import FigmaImporter
from screencraft.services.generation import GenerationService, VisualInput
from screencraft.services.generation.scaffolding import config_options
from screencraft.utils.errors import InputError

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')

_FORM_FIELDS = ('platform', 'framework', 'styling', 'architecture', 'projectName', 'stylesheet')
_JSON_FORM_FIELDS = ('designTokens', 'orderedFileNames')


def _json_field(name: str) -> Any:
    raw = request.form.get(name)
    if raw in (None, ''):
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise InputError(f"{name} is not valid JSON.", details={'field': name, 'error': str(e)}) from e


def _uploaded_screens() -> List[VisualInput]:
    screens = []
    for upload in request.files.getlist('screens'):
        data = upload.read()
        if not data:
            continue
        screens.append(VisualInput(
            mime_type=upload.mimetype or 'image/png',
            data=data,
            name=upload.filename or '',
        ))
    return screens


@api_bp.route('/config-options', methods=['GET'])
@handle_exceptions
def get_config_options():
    """Options the client can pick from before generating."""
    return json_success(config_options())


@api_bp.route('/generate', methods=['POST'])
@handle_exceptions(logger_override=logger)
def generate():
    """Generate a project from uploaded screen images."""
    screens = _uploaded_screens()
    if not screens:
        raise InputError("No screens were uploaded.")

    options: Dict[str, Any] = {
        field: request.form.get(field) for field in _FORM_FIELDS if request.form.get(field)
    }
    options.setdefault('platform', 'web')
    for field in _JSON_FORM_FIELDS:
        value = _json_field(field)
        if value is not None:
            options[field] = value

    logger.info(f"Generate request: platform={options['platform']}, {len(screens)} screen(s)")

    service = GenerationService.from_settings(current_app.config)
    artifact = asyncio.run(service.generate(options, screens))
    return json_success(artifact.to_dict(), "Generation successful")


@api_bp.route('/import/figma', methods=['POST'])
@handle_exceptions(logger_override=logger)
def import_figma():
    """Generate a web project from the frames of a Figma file."""
    data = request.get_json(silent=True) or {}
    figma_url = data.get('figmaUrl')

    importer = FigmaImporter(
        token=current_app.config.get('FIGMA_API_TOKEN', ''),
        timeout=current_app.config.get('INFERENCE_TIMEOUT', 60),
    )
    service = GenerationService.from_settings(current_app.config)

    async def _run():
        snapshot = await importer.fetch(figma_url)
        options = {
            'platform': 'web',
            'framework': data.get('framework'),
            'styling': data.get('styling'),
            'architecture': data.get('architecture'),
            'projectName': data.get('projectName'),
            'stylesheet': snapshot.as_stylesheet(),
        }
        frames = snapshot.visual_inputs()
        if not frames:
            raise InputError("No frames could be rendered from the Figma file.", details={'figmaUrl': figma_url})
        artifact = await service.generate(options, frames)
        return snapshot, artifact

    snapshot, artifact = asyncio.run(_run())
    result = artifact.to_dict()
    result.update(snapshot.to_dict())
    return json_success(result, "Figma import successful")
