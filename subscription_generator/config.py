import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigurationError
from .proxy_group import DEFAULT_PROXY_GROUP_MODIFIER
from .utils import load_yaml_file

logger = logging.getLogger(__name__)

ARTIFACT_KEYS = ('name', 'template', 'provider', 'combine_providers', 'custom_params', 'proxy_group_modifier')


@dataclass
class ArtifactConfig:
    """一个输出文件的配置"""

    name: Optional[str]
    template: Optional[str]
    provider: Optional[str]
    combine_providers: List[str] = field(default_factory=list)
    custom_params: Dict[str, Any] = field(default_factory=dict)
    proxy_group_modifier: Any = None

    @property
    def provider_list(self):
        """Provider 的处理顺序"""
        return [self.provider] + list(self.combine_providers)


@dataclass
class CommandConfig:
    """一次运行的全部配置"""

    output_dir: str
    provider_dir: str
    template_dir: str
    artifacts: List[ArtifactConfig] = field(default_factory=list)
    url_base: str = '/'
    bin_path: Dict[str, str] = field(default_factory=dict)
    gateway: Dict[str, Any] = field(default_factory=dict)
    remote_snippets: List[Dict[str, str]] = field(default_factory=list)
    surge_config: Dict[str, Any] = field(default_factory=dict)

    @property
    def access_token(self):
        return self.gateway.get('access_token') or None


def _resolve_dir(base_dir, path):
    return path if os.path.isabs(path) else os.path.normpath(os.path.join(base_dir, path))


def normalize_artifact(data):
    if not isinstance(data, dict):
        raise ConfigurationError(f"artifact 配置必须是字典: {data}")

    unknown = sorted(set(data) - set(ARTIFACT_KEYS))
    if unknown:
        raise ConfigurationError(f"artifact {data.get('name')} 包含未知字段: {', '.join(unknown)}")

    combine_providers = data.get('combine_providers') or []
    if not isinstance(combine_providers, list):
        raise ConfigurationError(f"artifact {data.get('name')} 的 combine_providers 必须是列表")

    modifier = data.get('proxy_group_modifier')
    if modifier == 'default':
        modifier = DEFAULT_PROXY_GROUP_MODIFIER

    return ArtifactConfig(
        name=data.get('name'),
        template=data.get('template'),
        provider=data.get('provider'),
        combine_providers=list(combine_providers),
        custom_params=dict(data.get('custom_params') or {}),
        proxy_group_modifier=modifier,
    )


def normalize_config(data, base_dir='.'):
    """
    将配置字典转换为 CommandConfig

    Args:
        data (dict): 配置内容
        base_dir (str): 相对路径的基准目录

    Returns:
        CommandConfig: 规范化后的配置
    """
    if not isinstance(data, dict):
        raise ConfigurationError("配置文件内容必须是字典")

    artifacts = data.get('artifacts')
    if not isinstance(artifacts, list):
        raise ConfigurationError("配置中必须包含 artifacts 列表")

    bin_path = dict(data.get('bin_path') or {})
    # v2ray 是 vmess 的别名
    if bin_path.get('v2ray'):
        bin_path['vmess'] = bin_path['v2ray']

    remote_snippets = data.get('remote_snippets') or []
    if not isinstance(remote_snippets, list):
        raise ConfigurationError("remote_snippets 必须是列表")

    config = CommandConfig(
        output_dir=_resolve_dir(base_dir, data.get('output_dir', 'dist')),
        provider_dir=_resolve_dir(base_dir, data.get('provider_dir', 'provider')),
        template_dir=_resolve_dir(base_dir, data.get('template_dir', 'template')),
        artifacts=[normalize_artifact(item) for item in artifacts],
        url_base=data.get('url_base', '/'),
        bin_path=bin_path,
        gateway=dict(data.get('gateway') or {}),
        remote_snippets=list(remote_snippets),
        surge_config=dict(data.get('surge_config') or {}),
    )
    logger.debug(f"配置已加载，共 {len(config.artifacts)} 个 artifact")
    return config


def load_config(file_path):
    """
    从YAML文件加载配置，相对路径以配置文件所在目录为准
    """
    if not os.path.exists(file_path):
        raise ConfigurationError(f"配置文件 {file_path} 不存在")

    try:
        data = load_yaml_file(file_path)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"配置文件 {file_path} 解析失败: {e}") from e

    logger.info(f"加载配置文件: {file_path}")
    return normalize_config(data, os.path.dirname(os.path.abspath(file_path)))
