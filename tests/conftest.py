"""
Pytest configuration.

Provides temporary provider / template directories and helpers for writing
provider files into them.
"""

import textwrap

import pytest

from subscription_generator.config import normalize_config


@pytest.fixture
def provider_dir(tmp_path):
    path = tmp_path / 'provider'
    path.mkdir()
    return path


@pytest.fixture
def template_dir(tmp_path):
    path = tmp_path / 'template'
    path.mkdir()
    return path


@pytest.fixture
def write_provider(provider_dir):
    def _write(name, source):
        file_path = provider_dir / f"{name}.py"
        file_path.write_text(textwrap.dedent(source), encoding='utf-8')
        return file_path
    return _write


@pytest.fixture
def write_template(template_dir):
    def _write(name, source):
        file_path = template_dir / f"{name}.tpl"
        file_path.write_text(textwrap.dedent(source), encoding='utf-8')
        return file_path
    return _write


@pytest.fixture
def make_config(tmp_path, provider_dir, template_dir):
    def _make(artifacts=None, **overrides):
        data = {
            'output_dir': 'dist',
            'provider_dir': 'provider',
            'template_dir': 'template',
            'artifacts': artifacts or [],
        }
        data.update(overrides)
        return normalize_config(data, str(tmp_path))
    return _make


class StaticRegistry:
    """Registry returning pre-built providers, used to inspect node objects directly."""

    def __init__(self, providers):
        self.providers = providers

    def load(self, name):
        provider = self.providers[name]
        provider.file_path = f"/providers/{name}.py"
        return provider


@pytest.fixture
def static_registry():
    return StaticRegistry
