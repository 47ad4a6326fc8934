"""Scaffolding Tables
====================

Static per-framework / per-styling / per-architecture configuration and the
default file templates the assembler falls back to. Templates use
``{{key}}`` / ``{{key|default}}`` placeholders.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Tuple

from screencraft.constants import Architecture, Framework, Platform, Styling

logger = logging.getLogger(__name__)


def pascal_identifier(name: Any, fallback: str) -> str:
    """Canonicalize a free-form name to a PascalCase identifier.

    ``"login screen"`` -> ``LoginScreen``; ``"2fa"`` -> ``Screen2fa`` with
    ``fallback="Screen"``; names with no alphanumerics become ``fallback``.
    """
    words = re.findall(r'[A-Za-z0-9]+', str(name or ''))
    identifier = ''.join(word[:1].upper() + word[1:] for word in words)
    if not identifier:
        return fallback
    if identifier[0].isdigit():
        identifier = f"{fallback}{identifier}"
    return identifier


def apply_substitutions(content: str, subs: Dict[str, Any]) -> str:
    """Fill ``{{key}}`` and ``{{key|default}}`` placeholders."""
    def _default_repl(match: re.Match) -> str:
        key, default = match.group(1), match.group(2)
        value = subs.get(key)
        return str(value) if value is not None else default

    content = re.sub(r'\{\{(\w+)\|([^}]*)\}\}', _default_repl, content)
    for key, value in subs.items():
        content = content.replace(f'{{{{{key}}}}}', str(value))
    return content


# ---------------------------------------------------------------------------
# Option tables
# ---------------------------------------------------------------------------

FRAMEWORKS: Dict[Framework, Dict[str, Any]] = {
    Framework.REACT: {
        'id': 'react',
        'name': 'React',
        'description': 'A JavaScript library for building user interfaces',
        'features': ['Component-based', 'Virtual DOM', 'JSX', 'Hooks'],
        'extension': '.jsx',
        'dependencies': {
            'react': '^18.2.0',
            'react-dom': '^18.2.0',
            'react-scripts': '5.0.1',
            'react-router-dom': '^6.8.0',
        },
        'devDependencies': {
            '@types/react': '^18.2.0',
            '@types/react-dom': '^18.2.0',
            'typescript': '^5.0.0',
        },
        'scripts': {
            'start': 'react-scripts start',
            'build': 'react-scripts build',
            'test': 'react-scripts test',
            'eject': 'react-scripts eject',
        },
    },
    Framework.VUE: {
        'id': 'vue',
        'name': 'Vue.js',
        'description': 'The Progressive JavaScript Framework',
        'features': ['Reactive', 'Component-based', 'Single File Components'],
        'extension': '.vue',
        'dependencies': {
            'vue': '^3.3.0',
            '@vitejs/plugin-vue': '^4.2.0',
            'vite': '^4.4.0',
            'vue-router': '^4.2.0',
        },
        'devDependencies': {
            '@vue/compiler-sfc': '^3.3.0',
        },
        'scripts': {
            'dev': 'vite',
            'build': 'vite build',
            'preview': 'vite preview',
        },
    },
    Framework.ANGULAR: {
        'id': 'angular',
        'name': 'Angular',
        'description': 'Platform for building mobile and desktop web applications',
        'features': ['TypeScript', 'Dependency Injection', 'CLI Tools'],
        'extension': '.ts',
        'dependencies': {
            '@angular/core': '^16.0.0',
            '@angular/common': '^16.0.0',
            '@angular/platform-browser': '^16.0.0',
            '@angular/platform-browser-dynamic': '^16.0.0',
            '@angular/compiler': '^16.0.0',
            '@angular/forms': '^16.0.0',
            '@angular/router': '^16.0.0',
            'rxjs': '^7.8.0',
            'zone.js': '^0.13.0',
        },
        'devDependencies': {
            '@angular/cli': '^16.0.0',
            '@angular/compiler-cli': '^16.0.0',
            'typescript': '^5.0.0',
        },
        'scripts': {
            'start': 'ng serve',
            'build': 'ng build',
            'test': 'ng test',
        },
    },
    Framework.SVELTE: {
        'id': 'svelte',
        'name': 'Svelte',
        'description': 'Cybernetically enhanced web apps',
        'features': ['Compile-time', 'No Virtual DOM', 'Reactive'],
        'extension': '.svelte',
        'dependencies': {
            'svelte': '^4.0.0',
            '@sveltejs/kit': '^1.20.0',
            'vite': '^4.4.0',
        },
        'devDependencies': {
            '@sveltejs/vite-plugin-svelte': '^2.4.0',
            'svelte-preprocess': '^5.0.0',
        },
        'scripts': {
            'dev': 'vite dev',
            'build': 'vite build',
            'preview': 'vite preview',
        },
    },
}

STYLINGS: Dict[Styling, Dict[str, Any]] = {
    Styling.UTILITY_CSS: {
        'id': 'tailwind',
        'name': 'Tailwind CSS',
        'description': 'A utility-first CSS framework',
        'features': ['Utility-first', 'Responsive', 'Customizable'],
        'dependencies': {},
        'devDependencies': {
            'tailwindcss': '^3.4.1',
            'postcss': '^8.4.38',
            'autoprefixer': '^10.4.19',
        },
    },
    Styling.CSS_IN_JS: {
        'id': 'styled-components',
        'name': 'Styled Components',
        'description': 'Visual primitives for the component age',
        'features': ['CSS-in-JS', 'Dynamic styling', 'Theme support'],
        'dependencies': {
            'styled-components': '^6.0.0',
        },
        'devDependencies': {
            '@types/styled-components': '^5.1.0',
        },
    },
    Styling.PLAIN_CSS: {
        'id': 'pure-css',
        'name': 'Pure CSS',
        'description': 'A set of small, responsive CSS modules',
        'features': ['Lightweight', 'Modular', 'Responsive'],
        'dependencies': {},
        'devDependencies': {},
    },
    Styling.PREPROCESSED_CSS: {
        'id': 'scss',
        'name': 'SCSS',
        'description': 'Sass is the most mature, stable, and powerful CSS extension language',
        'features': ['Variables', 'Nesting', 'Mixins', 'Functions'],
        'dependencies': {},
        'devDependencies': {
            'sass': '^1.60.0',
        },
    },
}

ARCHITECTURES: Dict[Architecture, Dict[str, Any]] = {
    Architecture.COMPONENT_BASED: {
        'id': 'component-based',
        'name': 'Component-based',
        'description': 'Modular components with clear separation of concerns',
        'features': ['Reusable components', 'Clear separation', 'Easy testing'],
        'folders': ['components', 'pages', 'utils', 'hooks'],
    },
    Architecture.MODULAR: {
        'id': 'modular',
        'name': 'Modular',
        'description': 'Feature-based modules with shared utilities',
        'features': ['Feature modules', 'Shared utilities', 'Scalable'],
        'folders': ['modules', 'shared', 'utils', 'services'],
    },
    Architecture.ATOMIC_DESIGN: {
        'id': 'atomic-design',
        'name': 'Atomic Design',
        'description': 'Atoms, molecules, organisms, templates, and pages',
        'features': ['Systematic approach', 'Design system', 'Consistency'],
        'folders': ['atoms', 'molecules', 'organisms', 'templates', 'pages'],
    },
    Architecture.MVC_PATTERN: {
        'id': 'mvc-pattern',
        'name': 'MVC Pattern',
        'description': 'Model-View-Controller architecture',
        'features': ['Separation of concerns', 'Maintainable', 'Testable'],
        'folders': ['models', 'views', 'controllers', 'services'],
    },
}

PLATFORMS: Dict[Platform, Dict[str, Any]] = {
    Platform.WEB: {
        'name': 'Web',
        'description': 'Single-page web application',
        'language': 'JavaScript / TypeScript',
    },
    Platform.ANDROID: {
        'name': 'Android',
        'description': 'Jetpack Compose application',
        'language': 'Kotlin with Jetpack Compose',
    },
    Platform.IOS: {
        'name': 'iOS',
        'description': 'SwiftUI application',
        'language': 'Swift with SwiftUI',
    },
}

IMPORT_SOURCES: List[Dict[str, Any]] = [
    {
        'id': 'figma',
        'name': 'Figma',
        'description': 'Collaborative interface design tool',
        'features': ['Design files', 'Components', 'Prototypes'],
    },
]

REACT_BROWSERSLIST = {
    'production': ['>0.2%', 'not dead', 'not op_mini all'],
    'development': ['last 1 chrome version', 'last 1 firefox version', 'last 1 safari version'],
}


def required_dependencies(framework: Framework, styling: Styling) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return (dependencies, devDependencies) for a framework/styling pair."""
    fw, st = FRAMEWORKS[framework], STYLINGS[styling]
    deps = {**fw['dependencies'], **st['dependencies']}
    dev_deps = {**fw['devDependencies'], **st['devDependencies']}
    return deps, dev_deps


def build_package_json(project_name: str, framework: Framework, styling: Styling) -> Dict[str, Any]:
    """Synthesize a complete package.json document."""
    deps, dev_deps = required_dependencies(framework, styling)
    package: Dict[str, Any] = {
        'name': npm_package_name(project_name),
        'version': '0.1.0',
        'private': True,
        'dependencies': deps,
        'devDependencies': dev_deps,
        'scripts': dict(FRAMEWORKS[framework]['scripts']),
    }
    if framework == Framework.REACT:
        package['browserslist'] = json.loads(json.dumps(REACT_BROWSERSLIST))
    return package


def npm_package_name(project_name: str) -> str:
    """npm names are lowercase, URL-safe, without spaces."""
    name = re.sub(r'[^a-z0-9._-]+', '-', project_name.strip().lower()).strip('-._')
    return name or 'generated-app'


def _catalog_entries(table: Dict[Any, Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            'id': member.value,
            'legacyId': meta.get('id'),
            'name': meta['name'],
            'description': meta['description'],
            'features': list(meta.get('features', [])),
        }
        for member, meta in table.items()
    ]


def config_options() -> Dict[str, Any]:
    """Option catalog exposed by ``GET /api/config-options``."""
    return {
        'platforms': [
            {'id': p.value, 'name': meta['name'], 'description': meta['description']}
            for p, meta in PLATFORMS.items()
        ],
        'frameworks': _catalog_entries(FRAMEWORKS),
        'styling': _catalog_entries(STYLINGS),
        'architecture': _catalog_entries(ARCHITECTURES),
        'importSources': [dict(src) for src in IMPORT_SOURCES],
        'defaults': {
            'framework': Framework.REACT.value,
            'styling': Styling.UTILITY_CSS.value,
            'architecture': Architecture.COMPONENT_BASED.value,
        },
    }


# ---------------------------------------------------------------------------
# Styling configuration templates
# ---------------------------------------------------------------------------

TAILWIND_FILES: Dict[str, str] = {
    'tailwind.config.js': """/** @type {import('tailwindcss').Config} */
module.exports = {
  content: [
    "./src/**/*.{js,jsx,ts,tsx,vue,svelte}",
    "./public/index.html",
    "./index.html"
  ],
  theme: {
    extend: {},
  },
  plugins: [],
}
""",
    'postcss.config.js': """module.exports = {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
}
""",
    'src/index.css': """@tailwind base;
@tailwind components;
@tailwind utilities;
""",
}

BASE_STYLESHEET = """*,
*::before,
*::after {
  box-sizing: border-box;
}

body {
  margin: 0;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
}
"""


# ---------------------------------------------------------------------------
# Entry point templates
# ---------------------------------------------------------------------------

_VITE_INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{{project_name}}</title>
  </head>
  <body>
    <div id="app"></div>
    <script type="module" src="/src/main.js"></script>
  </body>
</html>
"""

ENTRY_POINTS: Dict[Framework, Dict[str, Any]] = {
    Framework.REACT: {
        'html': ('public/index.html', """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <meta name="theme-color" content="#000000" />
    <meta name="description" content="Generated React App" />
    <title>{{project_name}}</title>
  </head>
  <body>
    <noscript>You need to enable JavaScript to run this app.</noscript>
    <div id="root"></div>
  </body>
</html>
"""),
        'bootstrap': ('src/index.js', """import React from 'react';
import ReactDOM from 'react-dom/client';
import './index.css';
import App from './App';

const root = ReactDOM.createRoot(document.getElementById('root'));
root.render(
  <React.StrictMode>
    <App />
  </React.StrictMode>
);
"""),
        'bootstrap_candidates': ['src/index.js', 'src/index.jsx', 'src/index.tsx', 'src/index.ts', 'src/main.jsx', 'src/main.tsx', 'src/main.js'],
        'mount_pattern': r'(createRoot\s*\(|ReactDOM\.render\s*\(|\bhydrateRoot\s*\()',
        'shell_modules': ('src/App.js', 'src/App.jsx', 'src/App.ts', 'src/App.tsx'),
        'shell': {
            'src/App.jsx': """import React from 'react';

export default function App() {
  return (
    <div className="min-h-screen bg-gray-100 flex items-center justify-center">
      <div className="bg-white p-8 rounded-lg shadow-md">
        <h1 className="text-2xl font-bold text-gray-800 mb-4">Welcome to Your Generated App</h1>
        <p className="text-gray-600">Your React application has been successfully generated!</p>
      </div>
    </div>
  );
}
""",
        },
        'stylesheet': 'src/index.css',
        'build_config': {},
    },
    Framework.VUE: {
        'html': ('index.html', _VITE_INDEX_HTML),
        'bootstrap': ('src/main.js', """import { createApp } from 'vue'
import App from './App.vue'
import './style.css'

createApp(App).mount('#app')
"""),
        'bootstrap_candidates': ['src/main.js', 'src/main.ts'],
        'mount_pattern': r'\.mount\s*\(',
        'shell': {
            'src/App.vue': """<template>
  <main class="app">
    <h1>Welcome to Your Generated App</h1>
    <p>Your Vue application has been successfully generated!</p>
  </main>
</template>

<script setup>
</script>
""",
        },
        'stylesheet': 'src/style.css',
        'build_config': {
            'vite.config.js': """import { defineConfig } from 'vite'
import vue from '@vitejs/plugin-vue'

export default defineConfig({
  plugins: [vue()],
})
""",
        },
    },
    Framework.ANGULAR: {
        'html': ('src/index.html', """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{{project_name}}</title>
    <base href="/" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
  </head>
  <body>
    <app-root></app-root>
  </body>
</html>
"""),
        'bootstrap': ('src/main.ts', """import { platformBrowserDynamic } from '@angular/platform-browser-dynamic';
import { AppModule } from './app/app.module';

platformBrowserDynamic().bootstrapModule(AppModule)
  .catch(err => console.error(err));
"""),
        'bootstrap_candidates': ['src/main.ts'],
        'mount_pattern': r'(bootstrapModule\s*\(|bootstrapApplication\s*\()',
        'shell': {
            'src/app/app.module.ts': """import { NgModule } from '@angular/core';
import { BrowserModule } from '@angular/platform-browser';

import { AppComponent } from './app.component';

@NgModule({
  declarations: [AppComponent],
  imports: [BrowserModule],
  bootstrap: [AppComponent]
})
export class AppModule { }
""",
            'src/app/app.component.ts': """import { Component } from '@angular/core';

@Component({
  selector: 'app-root',
  template: `
    <main class="app">
      <h1>Welcome to Your Generated App</h1>
      <p>Your Angular application has been successfully generated!</p>
    </main>
  `
})
export class AppComponent { }
""",
        },
        'stylesheet': 'src/styles.css',
        'build_config': {},
    },
    Framework.SVELTE: {
        'html': ('index.html', _VITE_INDEX_HTML),
        'bootstrap': ('src/main.js', """import App from './App.svelte'
import './index.css'

const app = new App({
  target: document.getElementById('app')
})

export default app
"""),
        'bootstrap_candidates': ['src/main.js', 'src/main.ts'],
        'mount_pattern': r'(new\s+App\s*\(|\bmount\s*\()',
        'shell': {
            'src/App.svelte': """<main class="app">
  <h1>Welcome to Your Generated App</h1>
  <p>Your Svelte application has been successfully generated!</p>
</main>
""",
        },
        'stylesheet': 'src/index.css',
        'build_config': {
            'vite.config.js': """import { defineConfig } from 'vite'
import { svelte } from '@sveltejs/vite-plugin-svelte'

export default defineConfig({
  plugins: [svelte()],
})
""",
        },
    },
}


# ---------------------------------------------------------------------------
# Android templates
# ---------------------------------------------------------------------------

ANDROID_COMPOSE_DEPENDENCIES: List[str] = sorted([
    'androidx.activity:activity-compose:1.8.2',
    'androidx.compose.material3:material3:1.1.2',
    'androidx.compose.ui:ui-tooling-preview:1.5.4',
    'androidx.compose.ui:ui:1.5.4',
    'androidx.core:core-ktx:1.12.0',
    'androidx.lifecycle:lifecycle-runtime-ktx:2.7.0',
])

ANDROID_MAIN_ACTIVITY = """package {{package_name}}

import android.os.Bundle
import androidx.activity.ComponentActivity
import androidx.activity.compose.setContent
import androidx.compose.material3.MaterialTheme
import androidx.compose.material3.Surface
import androidx.compose.material3.Text

class MainActivity : ComponentActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
        super.onCreate(savedInstanceState)
        setContent {
            MaterialTheme {
                Surface {
                    Text(text = "{{project_name}}")
                }
            }
        }
    }
}
"""

ANDROID_MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">

    <application
        android:allowBackup="true"
        android:label="{{project_name}}"
        android:supportsRtl="true">
        <activity
            android:name=".MainActivity"
            android:exported="true">
            <intent-filter>
                <action android:name="android.intent.action.MAIN" />
                <category android:name="android.intent.category.LAUNCHER" />
            </intent-filter>
        </activity>
    </application>

</manifest>
"""

ANDROID_BUILD_GRADLE = """plugins {
    id("com.android.application")
    id("org.jetbrains.kotlin.android")
}

android {
    namespace = "{{package_name}}"
    compileSdk = 34

    defaultConfig {
        applicationId = "{{package_name}}"
        minSdk = 24
        targetSdk = 34
        versionCode = 1
        versionName = "1.0"
    }

    buildFeatures {
        compose = true
    }
    composeOptions {
        kotlinCompilerExtensionVersion = "1.5.4"
    }
}

dependencies {
{{dependency_lines}}
}
"""


def android_gradle_dependency_lines() -> str:
    return "\n".join(f'    implementation("{dep}")' for dep in ANDROID_COMPOSE_DEPENDENCIES)


# ---------------------------------------------------------------------------
# iOS templates
# ---------------------------------------------------------------------------

IOS_APP_SHELL = """import SwiftUI

@main
struct {{app_struct}}: App {
    var body: some Scene {
        WindowGroup {
            NavigationStack {
                List {
{{navigation_links}}
                }
                .navigationTitle("{{project_name}}")
            }
        }
    }
}
"""

IOS_COMPONENT_PLACEHOLDER = """import SwiftUI

struct {{component_name}}: View {
    var body: some View {
        EmptyView()
    }
}
"""


def ios_navigation_links(screen_names: Iterable[str]) -> str:
    links = [
        f'                    NavigationLink("{name}") {{ {name}() }}'
        for name in screen_names
    ]
    return "\n".join(links) or '                    Text("Welcome")'
