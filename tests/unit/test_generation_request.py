"""Tests for option coercion, GenerationRequest and the reply shapes."""

import pytest

from screencraft.constants import Architecture, Framework, Platform, Styling
from screencraft.services.generation import (
    ComponentMap, GenerationRequest, ParsedManifest, Plan, ScreenCode, VisualInput,
)
from screencraft.utils.errors import InputError, SchemaError


def _image(name: str) -> VisualInput:
    return VisualInput(mime_type='image/png', data=name.encode(), name=name)


@pytest.mark.unit
class TestOptionCoercion:

    def test_canonical_ids_match_case_insensitively(self):
        assert Framework.coerce('ReactFamily') == Framework.REACT
        assert Platform.coerce('IOS') == Platform.IOS

    def test_short_form_aliases(self):
        assert Framework.coerce('vue') == Framework.VUE
        assert Styling.coerce('tailwind') == Styling.UTILITY_CSS
        assert Styling.coerce('scss') == Styling.PREPROCESSED_CSS
        assert Architecture.coerce('atomic-design') == Architecture.ATOMIC_DESIGN

    def test_unknown_value_returns_none(self):
        assert Framework.coerce('ember') is None
        assert Framework.coerce('') is None
        assert Framework.coerce(None) is None


@pytest.mark.unit
class TestGenerationRequest:

    def test_rejects_empty_visual_inputs(self):
        with pytest.raises(InputError) as exc_info:
            GenerationRequest.from_config({'platform': 'web'}, [])
        assert exc_info.value.http_status == 400

    @pytest.mark.parametrize('platform', [None, '', 'windows'])
    def test_rejects_missing_or_unknown_platform(self, platform):
        with pytest.raises(InputError):
            GenerationRequest.from_config({'platform': platform}, [_image('a.png')])

    def test_web_defaults(self):
        request = GenerationRequest.from_config({'platform': 'web'}, [_image('a.png')])
        assert request.framework == Framework.REACT
        assert request.styling == Styling.UTILITY_CSS
        assert request.architecture == Architecture.COMPONENT_BASED
        assert request.project_name == 'generated-app'

    def test_mobile_default_project_name(self):
        request = GenerationRequest.from_config({'platform': 'android'}, [_image('a.png')])
        assert request.project_name == 'MyMobileApp'
        assert request.package_name == 'com.example.mymobileapp'

    def test_unknown_option_falls_back_to_default(self):
        request = GenerationRequest.from_config(
            {'platform': 'web', 'framework': 'ember', 'styling': 'sass'}, [_image('a.png')]
        )
        assert request.framework == Framework.REACT
        assert request.styling == Styling.PREPROCESSED_CSS

    def test_safe_project_name_strips_non_alphanumerics(self):
        request = GenerationRequest.from_config(
            {'platform': 'android', 'projectName': 'My Shop-2!'}, [_image('a.png')]
        )
        assert request.safe_project_name == 'myshop2'

    def test_safe_project_name_never_empty(self):
        request = GenerationRequest.from_config(
            {'platform': 'android', 'projectName': '***'}, [_image('a.png')]
        )
        assert request.safe_project_name == 'app'

    def test_ordered_file_names_reorder_inputs(self):
        images = [_image('a.png'), _image('b.png'), _image('c.png')]
        request = GenerationRequest.from_config(
            {'platform': 'web', 'orderedFileNames': ['c.png', 'a.png']}, images
        )
        assert [i.name for i in request.visual_inputs] == ['c.png', 'a.png', 'b.png']

    def test_design_tokens_must_be_mapping(self):
        with pytest.raises(InputError):
            GenerationRequest.from_config({'platform': 'web', 'designTokens': ['red']}, [_image('a.png')])

    def test_configuration_omits_web_options_for_mobile(self):
        request = GenerationRequest.from_config({'platform': 'ios'}, [_image('a.png')])
        assert request.configuration() == {'platform': 'ios', 'projectName': 'MyMobileApp'}


@pytest.mark.unit
class TestReplyShapes:

    def test_manifest_requires_files_object(self):
        ParsedManifest.validate_payload({'files': {}})
        with pytest.raises(SchemaError):
            ParsedManifest.validate_payload({'files': ['a.js']})
        with pytest.raises(SchemaError):
            ParsedManifest.validate_payload([])

    def test_manifest_summary_from_manifest_key(self):
        manifest = ParsedManifest.from_payload({'files': {}, 'manifest': 'A todo app'})
        assert manifest.summary == 'A todo app'
        assert manifest.degraded is False

    def test_manifest_degraded_when_parse_error_present(self):
        manifest = ParsedManifest.from_payload({'files': {}, '_raw': 'x', '_parse_error': 'bad'})
        assert manifest.degraded is True

    def test_plan_requires_screens_array(self):
        with pytest.raises(SchemaError):
            Plan.validate_payload({'reusable_components': []})
        plan = Plan.from_payload({'screens': ['Login', ' ', 'Home']})
        assert plan.screen_names == ['Login', 'Home']
        assert plan.reusable_component_names == []

    def test_screen_code_requires_non_empty_code(self):
        with pytest.raises(SchemaError):
            ScreenCode.validate_payload({'code': '   '})
        assert ScreenCode.from_payload({'code': 'struct A {}'}).code == 'struct A {}'

    def test_component_map_unwraps_components_key(self):
        payload = {'components': {'PrimaryButton': 'struct PrimaryButton {}'}}
        ComponentMap.validate_payload(payload)
        assert ComponentMap.from_payload(payload).components == {'PrimaryButton': 'struct PrimaryButton {}'}

    def test_component_map_rejects_non_string_code(self):
        with pytest.raises(SchemaError):
            ComponentMap.validate_payload({'Card': {'code': 'x'}})
