"""Tests for PromptBuilder rendering."""

import pytest

from screencraft.services.generation import GenerationRequest, Plan, Prompt, PromptBuilder


@pytest.fixture
def builder():
    return PromptBuilder()


def _request(screen_image, **config):
    config.setdefault('platform', 'web')
    return GenerationRequest.from_config(config, [screen_image])


@pytest.mark.unit
class TestWebPrompt:

    def test_names_selected_options(self, builder, screen_image):
        prompt = builder.build_web(_request(screen_image, framework='vue', styling='scss', architecture='mvc'))
        assert 'Vue.js' in prompt.text
        assert 'SCSS' in prompt.text
        assert 'MVC Pattern' in prompt.text
        assert 'models, views, controllers, services' in prompt.text

    def test_lists_required_dependencies(self, builder, screen_image):
        prompt = builder.build_web(_request(screen_image))
        for name in ('react', 'react-dom', 'tailwindcss', 'postcss', 'autoprefixer'):
            assert f"- {name}\n" in prompt.text

    def test_utility_css_lists_tailwind_config_files(self, builder, screen_image):
        prompt = builder.build_web(_request(screen_image))
        assert 'tailwind.config.js' in prompt.text
        assert 'postcss.config.js' in prompt.text

    def test_plain_css_omits_tailwind_config(self, builder, screen_image):
        prompt = builder.build_web(_request(screen_image, styling='css'))
        assert 'tailwind.config.js' not in prompt.text

    def test_carries_visual_inputs_and_expects_json(self, builder, screen_image):
        prompt = builder.build_web(_request(screen_image))
        assert prompt.visual_inputs == (screen_image,)
        assert prompt.expect_json is True

    def test_rendering_is_deterministic(self, builder, screen_image):
        request = _request(screen_image)
        assert builder.build_web(request).text == builder.build_web(request).text

    def test_project_name_is_not_html_escaped(self, builder, screen_image):
        prompt = builder.build_web(_request(screen_image, projectName='Tom & Jerry <Shop>'))
        assert 'Tom & Jerry <Shop>' in prompt.text


@pytest.mark.unit
class TestMobilePrompts:

    def test_android_prompt_uses_package_path(self, builder, screen_image):
        prompt = builder.build_android(_request(screen_image, platform='android', projectName='Shop App'))
        assert 'com.example.shopapp' in prompt.text
        assert 'app/src/main/java/com/example/shopapp/' in prompt.text
        assert 'androidx.compose.material3:material3' in prompt.text

    def test_ios_plan_prompt(self, builder, screen_image):
        prompt = builder.build_ios_plan(_request(screen_image, platform='ios'))
        assert '"screens"' in prompt.text
        assert '"reusable_components"' in prompt.text
        assert 'Swift with SwiftUI' in prompt.text

    def test_ios_screen_prompt_lists_components(self, builder, screen_image):
        plan = Plan(screen_names=['LoginScreen'], reusable_component_names=['PrimaryButton'])
        prompt = builder.build_ios_screen(_request(screen_image, platform='ios'), plan, 'LoginScreen')
        assert '`LoginScreen`' in prompt.text
        assert '- PrimaryButton' in prompt.text

    def test_ios_app_shell_prompt_keeps_plan_order(self, builder, screen_image):
        plan = Plan(screen_names=['Welcome', 'Login', 'Home'])
        text = builder.build_ios_app_shell(_request(screen_image, platform='ios'), plan).text
        assert text.index('- Welcome') < text.index('- Login') < text.index('- Home')


@pytest.mark.unit
class TestCorrectionPrompt:

    def test_embeds_original_prompt_and_malformed_reply(self, builder, screen_image):
        original = Prompt(text='Generate a todo app', visual_inputs=(screen_image,))
        correction = builder.build_correction('{"files": {', original, 'invalid JSON: Expecting value')
        assert 'Generate a todo app' in correction.text
        assert '{"files": {' in correction.text
        assert 'invalid JSON: Expecting value' in correction.text
        assert correction.visual_inputs == (screen_image,)
        assert correction.expect_json is True
