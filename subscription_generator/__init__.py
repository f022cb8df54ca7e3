"""
Subscription Generator

根据 Provider 提供的节点和模板，为各种代理客户端生成订阅配置文件。
"""

__version__ = '0.1.0'
__author__ = 'SubscriptionGenerator'

from .config import ArtifactConfig, CommandConfig, load_config, normalize_config
from .errors import (
    ConfigurationError,
    GeneratorError,
    ProviderExecutionError,
    ProviderNotFoundError,
    ProviderResolutionError,
    RenderError,
)
from .generator import AggregationResult, ArtifactGenerator, GenerationEvent, generate_all
from .provider import Provider, ProviderRegistry

__all__ = [
    'ArtifactConfig',
    'CommandConfig',
    'load_config',
    'normalize_config',
    'ArtifactGenerator',
    'AggregationResult',
    'GenerationEvent',
    'generate_all',
    'Provider',
    'ProviderRegistry',
    'GeneratorError',
    'ConfigurationError',
    'ProviderResolutionError',
    'ProviderNotFoundError',
    'ProviderExecutionError',
    'RenderError',
]
