"""
各客户端的节点格式化函数

每个格式化函数都为全部节点类型提供处理逻辑，客户端不支持的类型会输出警告并跳过。
这些函数会直接暴露在模板上下文中。
"""

import json
import logging

from .models import NODE_TYPES
from .utils import encode_uri_component, to_base64, to_url_safe_base64

logger = logging.getLogger(__name__)


def _select(node_list, node_filter=None):
    return [
        node for node in node_list
        if node.enable and (node_filter is None or node_filter(node))
    ]


def _dispatch(client, handlers):
    """检查 handlers 覆盖全部节点类型，返回按类型分发的格式化函数"""
    missing = set(NODE_TYPES) - set(handlers)
    if missing:
        raise RuntimeError(f"{client} 缺少节点类型的处理: {', '.join(sorted(missing))}")

    def format_node(node):
        result = handlers[node.type](node)
        if result is None:
            logger.warning(f"不支持为 {client} 生成 {node.type} 节点: {node.node_name}")
        return result

    return format_node


def _unsupported(node):
    return None


# ==================== Clash ====================

def _clash_shadowsocks(node):
    proxy = {
        'name': node.node_name,
        'type': 'ss',
        'server': node.hostname,
        'port': node.port,
        'cipher': node.method,
        'password': node.password,
        'udp': node.udp_relay,
    }
    if node.obfs:
        proxy['plugin'] = 'obfs'
        proxy['plugin-opts'] = {'mode': node.obfs, 'host': node.obfs_host or 'www.bing.com'}
    return proxy


def _clash_shadowsocksr(node):
    return {
        'name': node.node_name,
        'type': 'ssr',
        'server': node.hostname,
        'port': node.port,
        'cipher': node.method,
        'password': node.password,
        'obfs': node.obfs,
        'obfs-param': node.obfs_param,
        'protocol': node.protocol,
        'protocol-param': node.protocol_param,
    }


def _clash_vmess(node):
    proxy = {
        'name': node.node_name,
        'type': 'vmess',
        'server': node.hostname,
        'port': node.port,
        'uuid': node.uuid,
        'alterId': node.alter_id,
        'cipher': node.method,
        'udp': True,
    }
    if node.network == 'ws':
        proxy['network'] = 'ws'
        proxy['ws-opts'] = {'path': node.path}
        if node.host:
            proxy['ws-opts']['headers'] = {'Host': node.host}
    if node.tls:
        proxy['tls'] = True
        proxy['skip-cert-verify'] = node.skip_cert_verify
    return proxy


def _clash_https(node):
    return {
        'name': node.node_name,
        'type': 'http',
        'server': node.hostname,
        'port': node.port,
        'username': node.username,
        'password': node.password,
        'tls': True,
        'skip-cert-verify': node.skip_cert_verify,
    }


def _clash_snell(node):
    proxy = {
        'name': node.node_name,
        'type': 'snell',
        'server': node.hostname,
        'port': node.port,
        'psk': node.psk,
    }
    if node.obfs:
        proxy['obfs-opts'] = {'mode': node.obfs, 'host': node.obfs_host or 'www.bing.com'}
    return proxy


_format_clash = _dispatch('Clash', {
    'shadowsocks': _clash_shadowsocks,
    'shadowsocksr': _clash_shadowsocksr,
    'vmess': _clash_vmess,
    'https': _clash_https,
    'snell': _clash_snell,
})


def get_clash_nodes(node_list, node_filter=None):
    """
    生成 Clash 的 proxies 列表

    Args:
        node_list (list): 节点列表
        node_filter (callable, optional): 过滤器

    Returns:
        list: Clash 格式的节点字典
    """
    proxies = (_format_clash(node) for node in _select(node_list, node_filter))
    return [proxy for proxy in proxies if proxy is not None]


def get_clash_node_names(node_list, node_filter=None, existing_proxies=None):
    names = [proxy['name'] for proxy in get_clash_nodes(node_list, node_filter)]
    return list(existing_proxies or []) + names


# ==================== Surge ====================

def _surge_shadowsocks(node):
    parts = [
        f"{node.node_name} = ss",
        node.hostname,
        str(node.port),
        f"encrypt-method={node.method}",
        f"password={node.password}",
    ]
    if node.obfs:
        parts.append(f"obfs={node.obfs}")
        parts.append(f"obfs-host={node.obfs_host or 'www.bing.com'}")
    if node.udp_relay:
        parts.append('udp-relay=true')
    if node.tfo:
        parts.append('tfo=true')
    return ', '.join(parts)


def _surge_shadowsocksr(node):
    # Surge 不支持 SSR，需要通过 external 调用本地客户端
    if not node.bin_path or node.local_port is None:
        return None

    args = [
        '-s', node.hostname,
        '-p', node.port,
        '-m', node.method,
        '-o', node.obfs,
        '-O', node.protocol,
        '-k', node.password,
        '-l', node.local_port,
        '-b', '127.0.0.1',
    ]
    if node.obfs_param:
        args += ['-g', node.obfs_param]
    if node.protocol_param:
        args += ['-G', node.protocol_param]

    parts = [f"{node.node_name} = external", f'exec = "{node.bin_path}"']
    parts += [f'args = "{arg}"' for arg in args]
    parts.append(f"local-port = {node.local_port}")
    parts.append(f"addresses = {node.hostname}")
    return ', '.join(parts)


def _surge_vmess(node):
    parts = [
        f"{node.node_name} = vmess",
        node.hostname,
        str(node.port),
        f"username={node.uuid}",
    ]
    if node.network == 'ws':
        parts.append('ws=true')
        parts.append(f"ws-path={node.path}")
        if node.host:
            parts.append(f"ws-headers=Host:{node.host}")
    if node.tls:
        parts.append('tls=true')
        if node.skip_cert_verify:
            parts.append('skip-cert-verify=true')
    if (node.surge_config or {}).get('vmess_aead'):
        parts.append('vmess-aead=true')
    return ', '.join(parts)


def _surge_https(node):
    parts = [
        f"{node.node_name} = https",
        node.hostname,
        str(node.port),
        node.username,
        node.password,
    ]
    if node.skip_cert_verify:
        parts.append('skip-cert-verify=true')
    return ', '.join(parts)


def _surge_snell(node):
    parts = [
        f"{node.node_name} = snell",
        node.hostname,
        str(node.port),
        f"psk={node.psk}",
    ]
    if node.obfs:
        parts.append(f"obfs={node.obfs}")
        if node.obfs_host:
            parts.append(f"obfs-host={node.obfs_host}")
    return ', '.join(parts)


_format_surge = _dispatch('Surge', {
    'shadowsocks': _surge_shadowsocks,
    'shadowsocksr': _surge_shadowsocksr,
    'vmess': _surge_vmess,
    'https': _surge_https,
    'snell': _surge_snell,
})


def get_surge_nodes(node_list, node_filter=None):
    lines = (_format_surge(node) for node in _select(node_list, node_filter))
    return '\n'.join(line for line in lines if line is not None)


# ==================== Shadowsocks / ShadowsocksR ====================

def _shadowsocks_uri(node, group_name=None):
    user_info = to_url_safe_base64(f"{node.method}:{node.password}")
    query = []
    if node.obfs:
        plugin = f"obfs-local;obfs={node.obfs};obfs-host={node.obfs_host or 'www.bing.com'}"
        query.append(f"plugin={encode_uri_component(plugin)}")
    if group_name:
        query.append(f"group={to_url_safe_base64(group_name)}")

    uri = f"ss://{user_info}@{node.hostname}:{node.port}/"
    if query:
        uri += '?' + '&'.join(query)
    return uri + '#' + encode_uri_component(node.node_name)


def _shadowsocksr_uri(node, group_name=None):
    params = {
        'obfsparam': node.obfs_param,
        'protoparam': node.protocol_param,
        'remarks': node.node_name,
        'group': group_name,
    }
    query = '&'.join(
        f"{key}={to_url_safe_base64(value)}" for key, value in params.items() if value
    )
    main = ':'.join([
        node.hostname,
        str(node.port),
        node.protocol,
        node.method,
        node.obfs,
        to_url_safe_base64(node.password),
    ])
    return 'ssr://' + to_url_safe_base64(f"{main}/?{query}")


def get_shadowsocks_nodes(node_list, group_name='Surgio'):
    """生成 SIP002 格式的 ss:// 链接，每行一个"""
    format_node = _dispatch('Shadowsocks', {
        'shadowsocks': lambda node: _shadowsocks_uri(node, group_name),
        'shadowsocksr': _unsupported,
        'vmess': _unsupported,
        'https': _unsupported,
        'snell': _unsupported,
    })
    lines = (format_node(node) for node in _select(node_list))
    return '\n'.join(line for line in lines if line is not None)


def get_shadowsocksr_nodes(node_list, group_name='Surgio'):
    format_node = _dispatch('ShadowsocksR', {
        'shadowsocks': _unsupported,
        'shadowsocksr': lambda node: _shadowsocksr_uri(node, group_name),
        'vmess': _unsupported,
        'https': _unsupported,
        'snell': _unsupported,
    })
    lines = (format_node(node) for node in _select(node_list))
    return '\n'.join(line for line in lines if line is not None)


def _shadowsocks_json(node):
    config = {
        'remarks': node.node_name,
        'server': node.hostname,
        'server_port': node.port,
        'method': node.method,
        'password': node.password,
        'enable': True,
    }
    if node.obfs:
        config['plugin'] = 'obfs-local'
        config['plugin_opts'] = f"obfs={node.obfs};obfs-host={node.obfs_host or 'www.bing.com'}"
    return config


def get_shadowsocks_nodes_json(node_list):
    """生成 ShadowsocksX-NG 等客户端可导入的 JSON 配置"""
    format_node = _dispatch('Shadowsocks JSON', {
        'shadowsocks': _shadowsocks_json,
        'shadowsocksr': _unsupported,
        'vmess': _unsupported,
        'https': _unsupported,
        'snell': _unsupported,
    })
    configs = (format_node(node) for node in _select(node_list))
    return json.dumps(
        {'configs': [config for config in configs if config is not None]},
        ensure_ascii=False,
        indent=2,
    )


# ==================== Quantumult ====================

def _quantumult_vmess(node, group_name):
    parts = [
        f"{node.node_name} = vmess",
        node.hostname,
        str(node.port),
        'chacha20-ietf-poly1305' if node.method == 'auto' else node.method,
        f'"{node.uuid}"',
        f"over-tls={'true' if node.tls else 'false'}",
        'certificate=1',
    ]
    if node.network == 'ws':
        parts.append('obfs=ws')
        parts.append(f'obfs-path="{node.path}"')
        if node.host:
            parts.append(f'obfs-header="Host: {node.host}"')
    parts.append(f"group={group_name}")
    return 'vmess://' + to_base64(', '.join(parts))


def _quantumult_https(node, group_name):
    parts = [
        f"{node.node_name} = http",
        f"upstream-proxy-address={node.hostname}",
        f"upstream-proxy-port={node.port}",
        'upstream-proxy-auth=true',
        f"upstream-proxy-username={node.username}",
        f"upstream-proxy-password={node.password}",
        'over-tls=true',
        'certificate=1',
        f"group={group_name}",
    ]
    return 'http://' + to_base64(', '.join(parts))


def get_quantumult_nodes(node_list, group_name='Surgio'):
    format_node = _dispatch('Quantumult', {
        'shadowsocks': lambda node: _shadowsocks_uri(node, group_name),
        'shadowsocksr': lambda node: _shadowsocksr_uri(node, group_name),
        'vmess': lambda node: _quantumult_vmess(node, group_name),
        'https': lambda node: _quantumult_https(node, group_name),
        'snell': _unsupported,
    })
    lines = (format_node(node) for node in _select(node_list))
    return '\n'.join(line for line in lines if line is not None)


# ==================== 名称 ====================

def get_node_names(node_name_list, node_filter=None, separator=', '):
    """
    列出节点名称

    Args:
        node_name_list (list): SimpleNodeConfig 列表
        node_filter (callable, optional): 过滤器
        separator (str): 分隔符

    Returns:
        str: 节点名称
    """
    return separator.join(node.node_name for node in _select(node_name_list, node_filter))
