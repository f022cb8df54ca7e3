"""
Provider 加载

Provider 是一个 Python 文件，放在 provider 目录下，文件名即 Provider 名称。
文件可以通过两种方式声明能力：

1. 直接定义 ``async def get_node_list()``，以及可选的 ``node_filter``、``add_flag``、
   ``netflix_filter``、``youtube_premium_filter``、``custom_filters``、``start_port``；
2. 定义 ``provider = {'type': 'clash', 'url': ...}``，使用内置的 Provider 类型。
"""

import asyncio
import importlib.util
import inspect
import logging
import os

import yaml

from .errors import ProviderExecutionError, ProviderNotFoundError
from .models import NodeConfig, node_from_dict
from .node_parser import NodeParser, node_from_clash_proxy
from .utils import fetch_text

logger = logging.getLogger(__name__)

DEFAULT_START_PORT = 61100


class Provider:
    """Provider 基类，子类需要实现 fetch_node_list"""

    def __init__(self, name, node_filter=None, add_flag=False, netflix_filter=None,
                 youtube_premium_filter=None, custom_filters=None, start_port=None):
        for attr, value in (('node_filter', node_filter),
                            ('netflix_filter', netflix_filter),
                            ('youtube_premium_filter', youtube_premium_filter)):
            if value is not None and not callable(value):
                raise TypeError(f"{attr} 必须是函数")

        if custom_filters is not None:
            if not isinstance(custom_filters, dict):
                raise TypeError("custom_filters 必须是字典")
            for filter_name, node_filter_func in custom_filters.items():
                if not callable(node_filter_func):
                    raise TypeError(f"custom_filters.{filter_name} 必须是函数")

        self.name = name
        self.file_path = None
        self.node_filter = node_filter
        self.add_flag = bool(add_flag)
        self.netflix_filter = netflix_filter
        self.youtube_premium_filter = youtube_premium_filter
        self.custom_filters = custom_filters
        self.start_port = int(start_port) if start_port is not None else DEFAULT_START_PORT
        self._port = self.start_port

    @property
    def next_port(self):
        """每次读取返回一个新的本地端口"""
        port = self._port
        self._port += 1
        return port

    async def fetch_node_list(self):
        raise NotImplementedError

    async def get_node_list(self):
        """
        获取节点列表

        Returns:
            list: NodeConfig 列表，字典形式的节点会被转换为对应的协议类型
        """
        node_list = await self.fetch_node_list()
        return [
            node if isinstance(node, NodeConfig) else node_from_dict(node)
            for node in node_list
        ]


class ModuleProvider(Provider):
    """由 Provider 文件中的 get_node_list 函数提供节点"""

    def __init__(self, name, get_node_list, **kwargs):
        if not callable(get_node_list):
            raise TypeError("get_node_list 必须是函数")
        super().__init__(name, **kwargs)
        self._get_node_list = get_node_list

    async def fetch_node_list(self):
        result = self._get_node_list()
        if inspect.isawaitable(result):
            result = await result
        return list(result)


class CustomProvider(Provider):
    """在配置中直接列出节点"""

    def __init__(self, name, node_list, **kwargs):
        super().__init__(name, **kwargs)
        self.node_list = list(node_list)

    async def fetch_node_list(self):
        return list(self.node_list)


class ClashProvider(Provider):
    """从 Clash 订阅中读取 proxies"""

    def __init__(self, name, url, timeout=60, **kwargs):
        super().__init__(name, **kwargs)
        self.url = url
        self.timeout = timeout

    async def fetch_node_list(self):
        content = await asyncio.to_thread(fetch_text, self.url, self.timeout)
        data = yaml.safe_load(content)
        if not isinstance(data, dict) or not isinstance(data.get('proxies'), list):
            raise ValueError(f"订阅 {self.url} 中没有找到 proxies")

        nodes = [node_from_clash_proxy(proxy) for proxy in data['proxies']]
        nodes = [node for node in nodes if node is not None]
        logger.info(f"从 Clash 订阅 {self.name} 中获取到 {len(nodes)} 个节点")
        return nodes


class SubscribeProvider(Provider):
    """Base64 编码的 URI 列表订阅，只保留指定协议的节点"""

    def __init__(self, name, url, node_type, timeout=60, **kwargs):
        super().__init__(name, **kwargs)
        self.url = url
        self.node_type = node_type
        self.timeout = timeout

    async def fetch_node_list(self):
        content = await asyncio.to_thread(fetch_text, self.url, self.timeout)
        nodes = NodeParser().parse_subscription(content)
        return [node for node in nodes if node.type == self.node_type]


PROVIDER_TYPES = {
    'custom': lambda name, config: CustomProvider(name, **config),
    'clash': lambda name, config: ClashProvider(name, **config),
    'shadowsocks_subscribe': lambda name, config: SubscribeProvider(name, node_type='shadowsocks', **config),
    'shadowsocksr_subscribe': lambda name, config: SubscribeProvider(name, node_type='shadowsocksr', **config),
    'v2rayn_subscribe': lambda name, config: SubscribeProvider(name, node_type='vmess', **config),
}

# Provider 文件中可以声明的可选能力
CAPABILITY_ATTRS = (
    'node_filter',
    'add_flag',
    'netflix_filter',
    'youtube_premium_filter',
    'custom_filters',
    'start_port',
)


def get_provider(name, module):
    """
    将 Provider 文件转换为 Provider 对象，并检查其是否满足接口要求

    Args:
        name (str): Provider 名称
        module: 已加载的 Provider 模块

    Returns:
        Provider: Provider 对象

    Raises:
        TypeError: 模块既没有 get_node_list 也没有合法的 provider 配置
    """
    if hasattr(module, 'get_node_list'):
        capabilities = {
            attr: getattr(module, attr)
            for attr in CAPABILITY_ATTRS if hasattr(module, attr)
        }
        return ModuleProvider(name, module.get_node_list, **capabilities)

    config = getattr(module, 'provider', None)
    if isinstance(config, Provider):
        return config
    if not isinstance(config, dict):
        raise TypeError("Provider 必须定义 get_node_list 函数或 provider 配置")

    config = dict(config)
    provider_type = config.pop('type', None)
    factory = PROVIDER_TYPES.get(provider_type)
    if factory is None:
        raise TypeError(f"不支持的 Provider 类型: {provider_type}")
    return factory(name, config)


class ProviderRegistry:
    """按目录扫描并加载 Provider"""

    EXTENSION = '.py'

    def __init__(self, provider_dir):
        self.provider_dir = os.path.abspath(provider_dir)

    def discover(self):
        """
        扫描 Provider 目录

        Returns:
            dict: Provider 名称到文件路径的映射
        """
        if not os.path.isdir(self.provider_dir):
            return {}

        providers = {}
        for file_name in sorted(os.listdir(self.provider_dir)):
            name, ext = os.path.splitext(file_name)
            if ext == self.EXTENSION and not name.startswith('_'):
                providers[name] = os.path.join(self.provider_dir, file_name)
        return providers

    def resolve(self, name):
        file_path = os.path.join(self.provider_dir, f"{name}{self.EXTENSION}")
        if not os.path.isfile(file_path):
            raise ProviderNotFoundError(file_path)
        return file_path

    def load(self, name):
        """
        加载指定名称的 Provider

        Raises:
            ProviderNotFoundError: 文件不存在
            ProviderExecutionError: 文件执行出错或不满足接口要求
        """
        file_path = self.resolve(name)

        try:
            spec = importlib.util.spec_from_file_location(f"_providers.{name}", file_path)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            provider = get_provider(name, module)
        except Exception as e:
            raise ProviderExecutionError(
                file_path, f"处理 Provider 时出现错误，相关文件 {file_path} ，错误原因: {e}"
            ) from e

        provider.file_path = file_path
        logger.debug(f"已加载 Provider {name}: {type(provider).__name__}")
        return provider
