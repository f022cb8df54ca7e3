import copy
import logging

from .errors import ConfigurationError
from .formatters import get_clash_node_names

logger = logging.getLogger(__name__)

DEFAULT_TEST_URL = 'http://www.gstatic.com/generate_204'
DEFAULT_TEST_INTERVAL = 300

# 需要测速的代理组类型
AUTO_GROUP_TYPES = ('url-test', 'fallback', 'load-balance')

# 描述字段，不会原样输出到 Clash 配置中
DESCRIPTOR_KEYS = ('filter', 'include_all_nodes')

DEFAULT_PROXY_GROUP_MODIFIER = [
    {
        'name': '🚀 节点选择',
        'type': 'select',
        'proxies': ['♻️ 自动选择', 'DIRECT'],
        'include_all_nodes': True,
    },
    {
        'name': '♻️ 自动选择',
        'type': 'url-test',
        'tolerance': 50,
    },
    {
        'name': '🎥 Netflix',
        'type': 'select',
        'proxies': ['🚀 节点选择'],
        'filter': 'netflix_filter',
    },
    {
        'name': '📺 YouTube Premium',
        'type': 'select',
        'proxies': ['🚀 节点选择'],
        'filter': 'youtube_premium_filter',
    },
    {
        'name': '🇺🇸 美国节点',
        'type': 'url-test',
        'filter': 'us_filter',
    },
    {
        'name': '🇭🇰 香港节点',
        'type': 'url-test',
        'filter': 'hk_filter',
    },
    {
        'name': '🇯🇵 日本节点',
        'type': 'url-test',
        'filter': 'japan_filter',
    },
    {
        'name': '🎯 全球直连',
        'type': 'select',
        'proxies': ['DIRECT', '🚀 节点选择'],
    },
    {
        'name': '🛑 全球拦截',
        'type': 'select',
        'proxies': ['REJECT', 'DIRECT'],
    },
]


def _resolve_filter(group_name, node_filter, filters):
    if callable(node_filter):
        return node_filter
    if node_filter not in filters:
        raise ConfigurationError(f"代理组 {group_name} 使用了不存在的过滤器: {node_filter}")
    return filters[node_filter]


def normalize_group(item, node_list, filters):
    """
    将一个代理组描述转换为 Clash 代理组

    Args:
        item (dict): 代理组描述，必须包含 name 和 type
        node_list (list): 节点列表
        filters (dict): 过滤器名称到函数的映射

    Returns:
        dict: Clash 格式的代理组
    """
    if not item.get('name') or not item.get('type'):
        raise ConfigurationError(f"代理组必须包含 name 和 type: {item}")

    group = {key: copy.deepcopy(value) for key, value in item.items() if key not in DESCRIPTOR_KEYS}
    static_proxies = list(item.get('proxies') or [])

    if item.get('filter') is not None:
        node_filter = _resolve_filter(item['name'], item['filter'], filters)
        group['proxies'] = get_clash_node_names(node_list, node_filter, static_proxies)
    elif item.get('include_all_nodes') or 'proxies' not in item:
        group['proxies'] = get_clash_node_names(node_list, existing_proxies=static_proxies)
    else:
        group['proxies'] = static_proxies

    if group['type'] in AUTO_GROUP_TYPES:
        group.setdefault('url', DEFAULT_TEST_URL)
        group.setdefault('interval', DEFAULT_TEST_INTERVAL)

    if not group['proxies']:
        logger.warning(f"代理组 {group['name']} 中没有任何节点")

    return group


def normalize_clash_proxy_group_config(node_list, filters, proxy_group_modifier):
    """
    根据代理组模板生成 Clash 代理组列表

    Args:
        node_list (list): 节点列表
        filters (dict): 合并后的过滤器
        proxy_group_modifier (list | callable): 代理组描述列表，或返回该列表的函数

    Returns:
        list: Clash 代理组列表
    """
    if callable(proxy_group_modifier):
        groups = proxy_group_modifier(node_list, filters)
    else:
        groups = proxy_group_modifier

    if not isinstance(groups, (list, tuple)):
        raise ConfigurationError("proxy_group_modifier 必须是代理组列表")

    proxy_groups = [normalize_group(item, node_list, filters) for item in groups]
    logger.info(f"生成了 {len(proxy_groups)} 个代理组")
    return proxy_groups
