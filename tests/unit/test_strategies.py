"""Tests for the Web / Android / iOS orchestration flows."""

import json
import random

import pytest

from screencraft.constants import GenerationStage, Platform
from screencraft.services.generation import (
    AndroidStrategy, GenerationRequest, IosStrategy, ProjectAssembler, VisualInput, WebStrategy, strategy_for,
)
from screencraft.services.generation.strategies import canonical_names
from screencraft.utils.errors import GenerationError, TransientInferenceError


def _request(platform, count=1, **config):
    images = [VisualInput('image/png', f'img{i}'.encode(), f's{i}.png') for i in range(count)]
    config['platform'] = platform
    return GenerationRequest.from_config(config, images)


def _strategy(cls, client, stages=None):
    def on_stage(stage, detail):
        if stages is not None:
            stages.append((stage, detail))
    return cls(client, assembler=ProjectAssembler(random.Random(0)), on_stage=on_stage, step_delay=0)


def _plan(screens, components=()):
    return json.dumps({'screens': list(screens), 'reusable_components': list(components)})


def _code(code):
    return json.dumps({'code': code})


@pytest.mark.unit
class TestCanonicalNames:

    def test_pascal_cases_free_form_names(self):
        assert canonical_names(['login screen', 'user-profile', 'Home'], 'Screen') == [
            'LoginScreen', 'UserProfile', 'Home',
        ]

    def test_duplicates_get_numeric_suffix(self):
        assert canonical_names(['Home', 'home', 'HOME'], 'Screen') == ['Home', 'Home2', 'HOME']

    def test_shared_namespace(self):
        taken = set()
        canonical_names(['Card'], 'Screen', taken)
        assert canonical_names(['card'], 'Component', taken) == ['Card2']

    def test_fallback_for_unusable_names(self):
        assert canonical_names(['!!!', '2fa'], 'Screen') == ['Screen', 'Screen2fa']


@pytest.mark.unit
class TestSingleShotStrategies:

    @pytest.mark.asyncio
    async def test_web_one_inference_call_and_stages(self, scripted_client):
        client = scripted_client('{"files": {"src/App.jsx": "import React from \'react\';\\nexport default () => <main />;"}}')
        stages = []
        artifact = await _strategy(WebStrategy, client, stages).run(_request('web', count=2))

        assert len(client.calls) == 1
        assert len(client.calls[0][0].visual_inputs) == 2
        assert [s for s, _ in stages] == [GenerationStage.REQUESTING, GenerationStage.ASSEMBLING, GenerationStage.DONE]
        assert 'package.json' in artifact.files
        assert artifact.files['src/App.jsx'].startswith("import React from 'react';")

    @pytest.mark.asyncio
    async def test_web_chatty_reply_is_normalized(self, scripted_client):
        client = scripted_client('Sure! ```json\n{"files": {"README.md": "# Shop"}}\n```')
        artifact = await _strategy(WebStrategy, client).run(_request('web'))
        assert artifact.files['README.md'] == '# Shop'
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_web_unparseable_reply_still_yields_runnable_project(self, scripted_client):
        client = scripted_client('I cannot do that.', 'Still no JSON, sorry.')
        artifact = await _strategy(WebStrategy, client).run(_request('web'))

        assert len(client.calls) == 2
        for path in ('package.json', 'public/index.html', 'src/index.js', 'src/App.jsx'):
            assert path in artifact.files
        assert artifact.diagnostics[0].startswith('degraded-reply:')

    @pytest.mark.asyncio
    async def test_web_overloaded_correction_is_fatal(self, scripted_client):
        client = scripted_client('not json', TransientInferenceError("overloaded", status_code=503))
        with pytest.raises(TransientInferenceError):
            await _strategy(WebStrategy, client).run(_request('web'))
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_android_scalar_values_are_stringified(self, scripted_client):
        client = scripted_client(json.dumps({'files': {'a.kt': 5, 'b.kt': True}}))
        artifact = await _strategy(AndroidStrategy, client).run(_request('android'))
        assert artifact.files['a.kt'] == '5'
        assert artifact.files['b.kt'] == 'true'
        assert 'stringified:a.kt' in artifact.diagnostics

    @pytest.mark.asyncio
    async def test_android_single_call(self, scripted_client):
        client = scripted_client(json.dumps({'files': {'app/src/main/res/values/colors.xml': '<resources/>'}}))
        artifact = await _strategy(AndroidStrategy, client).run(_request('android', projectName='Shop'))
        assert len(client.calls) == 1
        assert 'app/src/main/java/com/example/shop/MainActivity.kt' in artifact.files
        assert artifact.platform == Platform.ANDROID

    @pytest.mark.asyncio
    async def test_async_stage_callback_is_awaited(self, scripted_client):
        seen = []

        async def on_stage(stage, detail):
            seen.append(stage)

        strategy = WebStrategy(scripted_client('{"files": {}}'), on_stage=on_stage, step_delay=0)
        await strategy.run(_request('web'))
        assert seen[-1] == GenerationStage.DONE


@pytest.mark.unit
class TestIosStrategy:

    @pytest.mark.asyncio
    async def test_full_flow_order_and_layout(self, scripted_client):
        client = scripted_client(
            _plan(['welcome', 'login screen'], ['primary button']),
            json.dumps({'PrimaryButton': 'struct PrimaryButton: View {}'}),
            _code('struct Welcome: View {}'),
            _code('struct LoginScreen: View {}'),
            _code('@main struct ShopApp: App {}'),
        )
        stages = []
        artifact = await _strategy(IosStrategy, client, stages).run(_request('ios', count=2))

        assert len(client.calls) == 5
        assert artifact.files['Components/PrimaryButton.swift'] == 'struct PrimaryButton: View {}'
        assert artifact.files['Screens/Welcome.swift'] == 'struct Welcome: View {}'
        assert artifact.files['Screens/LoginScreen.swift'] == 'struct LoginScreen: View {}'
        assert artifact.files['App.swift'] == '@main struct ShopApp: App {}'

        order = [s for s, _ in stages]
        assert order == [
            GenerationStage.PLANNING,
            GenerationStage.GENERATING_COMPONENTS,
            GenerationStage.GENERATING_SCREENS,
            GenerationStage.GENERATING_SCREENS,
            GenerationStage.GENERATING_APP_SHELL,
            GenerationStage.ASSEMBLING,
            GenerationStage.DONE,
        ]
        screen_prompts = [call[0].text for call in client.calls[2:4]]
        assert '`Welcome`' in screen_prompts[0]
        assert '`LoginScreen`' in screen_prompts[1]

    @pytest.mark.asyncio
    async def test_components_step_skipped_without_components(self, scripted_client):
        client = scripted_client(_plan(['Home']), _code('struct Home: View {}'), _code('@main struct A: App {}'))
        stages = []
        artifact = await _strategy(IosStrategy, client, stages).run(_request('ios'))

        assert len(client.calls) == 3
        assert GenerationStage.GENERATING_COMPONENTS not in [s for s, _ in stages]
        assert not any(p.startswith('Components/') for p in artifact.files)

    @pytest.mark.asyncio
    async def test_screen_failure_aborts_run(self, scripted_client):
        client = scripted_client(
            _plan(['Home', 'Settings']),
            _code('struct Home: View {}'),
            'not json',
            'still not json',
        )
        with pytest.raises(GenerationError) as exc_info:
            await _strategy(IosStrategy, client).run(_request('ios'))

        assert exc_info.value.code == 'partial_generation'
        assert exc_info.value.details['screen'] == 'Settings'
        assert len(client.calls) == 4

    @pytest.mark.asyncio
    async def test_plan_failure_aborts_run(self, scripted_client):
        client = scripted_client('no plan', 'no plan either')
        with pytest.raises(GenerationError) as exc_info:
            await _strategy(IosStrategy, client).run(_request('ios'))
        assert exc_info.value.code == 'planning_failed'

    @pytest.mark.asyncio
    async def test_unparseable_components_get_placeholders(self, scripted_client):
        client = scripted_client(
            _plan(['login screen'], ['primary button']),
            'garbage', 'more garbage',
            _code('struct LoginScreen: View { var body: some View { PrimaryButton() } }'),
            _code('@main struct A: App {}'),
        )
        artifact = await _strategy(IosStrategy, client).run(_request('ios'))
        assert 'Screens/LoginScreen.swift' in artifact.files
        placeholder = artifact.files['Components/PrimaryButton.swift']
        assert 'struct PrimaryButton: View' in placeholder
        assert 'EmptyView()' in placeholder
        assert artifact.diagnostics[0].startswith('components-unparsed:')
        assert 'synthesized:Components/PrimaryButton.swift' in artifact.diagnostics

    @pytest.mark.asyncio
    async def test_component_missing_from_map_gets_placeholder(self, scripted_client):
        client = scripted_client(
            _plan(['Home'], ['Card', 'Badge']),
            json.dumps({'Card': 'struct Card: View {}'}),
            _code('struct Home: View {}'),
            _code('@main struct A: App {}'),
        )
        artifact = await _strategy(IosStrategy, client).run(_request('ios'))
        assert artifact.files['Components/Card.swift'] == 'struct Card: View {}'
        assert 'struct Badge: View' in artifact.files['Components/Badge.swift']
        assert 'synthesized:Components/Badge.swift' in artifact.diagnostics
        assert 'synthesized:Components/Card.swift' not in artifact.diagnostics

    @pytest.mark.asyncio
    async def test_unparseable_app_shell_is_synthesized(self, scripted_client):
        client = scripted_client(_plan(['Home']), _code('struct Home: View {}'), 'bad', 'bad again')
        artifact = await _strategy(IosStrategy, client).run(_request('ios'))
        assert 'NavigationLink("Home") { Home() }' in artifact.files['App.swift']
        assert artifact.diagnostics[0].startswith('app-shell-unparsed:')
        assert 'synthesized:App.swift' in artifact.diagnostics

    @pytest.mark.asyncio
    async def test_component_names_never_collide_with_screens(self, scripted_client):
        client = scripted_client(
            _plan(['Card'], ['card']),
            json.dumps({'card': 'struct Card2: View {}'}),
            _code('struct Card: View {}'),
            _code('@main struct A: App {}'),
        )
        artifact = await _strategy(IosStrategy, client).run(_request('ios'))
        assert artifact.files['Screens/Card.swift'] == 'struct Card: View {}'
        assert artifact.files['Components/Card2.swift'] == 'struct Card2: View {}'


@pytest.mark.unit
def test_strategy_for_registry(scripted_client):
    client = scripted_client()
    assert isinstance(strategy_for(Platform.WEB, client), WebStrategy)
    assert isinstance(strategy_for(Platform.ANDROID, client), AndroidStrategy)
    assert isinstance(strategy_for(Platform.IOS, client), IosStrategy)
