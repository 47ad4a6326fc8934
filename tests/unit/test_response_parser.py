"""Tests for normalize() and the single-correction ResponseParser."""

import json

import pytest

from screencraft.services.generation import ParsedManifest, Prompt, ResponseParser, ScreenCode, normalize
from screencraft.services.generation.response_parser import is_degraded, try_parse
from screencraft.utils.errors import InferenceError, TransientInferenceError


@pytest.mark.unit
class TestNormalize:

    def test_strips_prose_and_fences(self):
        text = 'Sure! Here it is:\n```json\n{"files": {"a.js": "x"}}\n```\nEnjoy.'
        assert normalize(text) == '{"files": {"a.js": "x"}}'

    def test_keeps_outermost_braces(self):
        text = 'note {"files": {"a.js": "function f() { return 1; }"}} trailing'
        assert normalize(text) == '{"files": {"a.js": "function f() { return 1; }"}}'

    def test_without_braces_removes_fences_and_whitespace(self):
        assert normalize('```js\nconsole.log(1)\n```') == 'console.log(1)'

    def test_none_and_empty(self):
        assert normalize(None) == ''
        assert normalize('') == ''
        assert normalize('   ') == ''

    def test_closing_brace_before_opening(self):
        assert normalize('} nothing {') == '} nothing {'

    @pytest.mark.parametrize('text', [
        'Sure! ```json\n{"files": {}}\n```',
        '``````json',
        '```js```',
        '  plain words  ',
        '} {',
        '```\n{"a": "```"}\n```',
    ])
    def test_idempotent(self, text):
        once = normalize(text)
        assert normalize(once) == once


@pytest.mark.unit
class TestTryParse:

    def test_valid_manifest(self):
        payload, error = try_parse('```json\n{"files": {"a.js": "x"}}\n```')
        assert error is None
        assert payload == {'files': {'a.js': 'x'}}

    def test_raw_newlines_inside_strings_are_tolerated(self):
        payload, error = try_parse('{"files": {"a.js": "line1\nline2"}}')
        assert error is None
        assert payload['files']['a.js'] == 'line1\nline2'

    def test_invalid_json(self):
        payload, error = try_parse('{"files": {')
        assert payload is None
        assert error.startswith('invalid JSON')

    def test_wrong_shape(self):
        payload, error = try_parse('{"code": "x"}', ParsedManifest)
        assert payload is None
        assert error.startswith('unexpected shape')

    def test_excessive_nesting_is_a_parse_error(self):
        payload, error = try_parse('{"files": ' + '[' * 100000 + ']' * 100000 + '}')
        assert payload is None
        assert error == 'invalid JSON: nesting too deep'


@pytest.fixture
def original_prompt(screen_image):
    return Prompt(text='Generate the project', visual_inputs=(screen_image,))


@pytest.mark.unit
class TestParseWithCorrection:

    @pytest.mark.asyncio
    async def test_valid_reply_needs_no_correction(self, scripted_client, original_prompt):
        client = scripted_client()
        parser = ResponseParser(client)
        payload = await parser.parse_with_correction('{"files": {"a.js": "x"}}', original_prompt)
        assert payload == {'files': {'a.js': 'x'}}
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_correction_repairs_reply(self, scripted_client, original_prompt, screen_image):
        client = scripted_client('```json\n{"files": {"src/App.jsx": "export default 1"}}\n```')
        parser = ResponseParser(client)

        payload = await parser.parse_with_correction('{"files": {"src/App.jsx": ', original_prompt)

        assert payload == {'files': {'src/App.jsx': 'export default 1'}}
        assert len(client.calls) == 1
        correction, images = client.calls[0]
        assert 'Generate the project' in correction.text
        assert '{"files": {"src/App.jsx": ' in correction.text
        assert images == (screen_image,)

    @pytest.mark.asyncio
    async def test_still_invalid_after_correction_degrades(self, scripted_client, original_prompt):
        client = scripted_client('still broken', 'never used')
        parser = ResponseParser(client)

        payload = await parser.parse_with_correction('broken', original_prompt)

        assert is_degraded(payload)
        assert payload['files'] == {}
        assert payload['_raw'] == 'still broken'
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_transient_correction_failure_propagates(self, scripted_client, original_prompt):
        client = scripted_client(TransientInferenceError("overloaded", status_code=429))
        parser = ResponseParser(client)

        with pytest.raises(TransientInferenceError):
            await parser.parse_with_correction('broken', original_prompt)
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_permanent_correction_failure_propagates(self, scripted_client, original_prompt):
        client = scripted_client(InferenceError("rejected", status_code=400))
        with pytest.raises(InferenceError) as exc_info:
            await ResponseParser(client).parse_with_correction(None, original_prompt)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_deeply_nested_reply_degrades(self, scripted_client, original_prompt):
        nested = '{"files": ' + '[' * 100000 + ']' * 100000 + '}'
        client = scripted_client(nested)

        payload = await ResponseParser(client).parse_with_correction(nested, original_prompt)

        assert is_degraded(payload)
        assert 'nesting too deep' in payload['_parse_error']
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_explicit_visual_inputs_are_resent(self, scripted_client, original_prompt):
        client = scripted_client('{"files": {}}')
        await ResponseParser(client).parse_with_correction('nope', original_prompt, visual_inputs=[])
        assert client.calls[0][1] == ()

    @pytest.mark.asyncio
    async def test_schema_is_respected(self, scripted_client, original_prompt):
        client = scripted_client(json.dumps({'code': 'struct LoginScreen: View {}'}))
        payload = await ResponseParser(client).parse_with_correction(
            '{"files": {}}', original_prompt, schema=ScreenCode
        )
        assert payload == {'code': 'struct LoginScreen: View {}'}
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_parse_manifest_returns_manifest(self, scripted_client, original_prompt):
        client = scripted_client('garbage again')
        manifest = await ResponseParser(client).parse_manifest('garbage', original_prompt)
        assert isinstance(manifest, ParsedManifest)
        assert manifest.files == {}
        assert manifest.degraded is True
