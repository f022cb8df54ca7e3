import json
import logging
import re
from urllib.parse import parse_qs, unquote, urlparse

from .models import (
    HttpsNodeConfig,
    ShadowsocksNodeConfig,
    ShadowsocksrNodeConfig,
    SnellNodeConfig,
    VmessNodeConfig,
)
from .utils import decode_base64

logger = logging.getLogger(__name__)


def parse_uri(uri):
    """
    解析URI字符串，获取scheme和内容

    :param uri: URI字符串，例如 vmess://xxx
    :return: (scheme, payload) 元组
    """
    match = re.match(r'^([a-zA-Z0-9]+)://(.*?)$', uri)
    if match:
        return match.group(1).lower(), match.group(2)
    logger.warning(f"无法解析URI: {uri[:30]}...")
    return None, None


class NodeParser:
    """节点解析器，将订阅中的URI转换为节点配置"""

    def parse_ss(self, ss_uri):
        """
        解析ss://格式的URI

        新格式: ss://base64(method:password)@server:port?plugin=...#name
        旧格式: ss://base64(method:password@server:port)#name

        Args:
            ss_uri (str): ss://开头的URI

        Returns:
            ShadowsocksNodeConfig: 节点配置，解析失败返回None
        """
        try:
            parsed_url = urlparse(ss_uri)
            name = unquote(parsed_url.fragment) if parsed_url.fragment else None

            if parsed_url.username:
                auth_info = unquote(parsed_url.username)
                if ':' not in auth_info:
                    auth_info = decode_base64(auth_info)
                method, password = auth_info.split(':', 1)
                server = parsed_url.hostname
                port = parsed_url.port
            else:
                encoded_part = ss_uri.split('//', 1)[1].split('#')[0]
                decoded_part = decode_base64(encoded_part)
                auth_part, server_part = decoded_part.rsplit('@', 1)
                method, password = auth_part.split(':', 1)
                server, port_str = server_part.rsplit(':', 1)
                port = int(port_str)

            if not all([server, port, method]):
                logger.error(f"SS URI缺少必要部分: {ss_uri}")
                return None

            node = ShadowsocksNodeConfig(
                node_name=name or f"ss-{server}",
                hostname=server,
                port=int(port),
                method=method,
                password=password,
                udp_relay=True,
            )

            # 处理 simple-obfs 插件
            params = parse_qs(parsed_url.query)
            plugin = params.get('plugin', [None])[0]
            if plugin:
                plugin_opts = dict(
                    item.split('=', 1) for item in plugin.split(';')[1:] if '=' in item
                )
                node.obfs = plugin_opts.get('obfs')
                node.obfs_host = plugin_opts.get('obfs-host')

            return node

        except Exception as e:
            logger.error(f"解析SS失败: {str(e)}")
            return None

    def parse_ssr(self, ssr_uri):
        """
        解析ssr://格式的URI

        内容为 base64(server:port:protocol:method:obfs:base64(password)/?params)
        """
        try:
            _, payload = parse_uri(ssr_uri)
            decoded = decode_base64(payload)
            main_part, _, query = decoded.partition('/?')
            server, port, protocol, method, obfs, password = main_part.rsplit(':', 5)
            params = {k: decode_base64(v[0]) for k, v in parse_qs(query).items()}

            return ShadowsocksrNodeConfig(
                node_name=params.get('remarks') or f"ssr-{server}",
                hostname=server,
                port=int(port),
                method=method,
                password=decode_base64(password),
                protocol=protocol,
                protocol_param=params.get('protoparam', ''),
                obfs=obfs,
                obfs_param=params.get('obfsparam', ''),
            )

        except Exception as e:
            logger.error(f"解析SSR失败: {str(e)}")
            return None

    def parse_vmess(self, vmess_uri):
        """
        解析vmess://格式的URI（v2rayN 的 JSON 格式）
        """
        try:
            _, encoded_content = parse_uri(vmess_uri)
            vmess_config = json.loads(decode_base64(encoded_content))

            required_fields = ['add', 'port', 'id']
            if not all(field in vmess_config for field in required_fields):
                logger.error(f"Vmess配置缺少必要字段: {vmess_config}")
                return None

            name = vmess_config.get('ps') or f"vmess-{vmess_config['add']}"
            if '%' in name:
                name = unquote(name)

            return VmessNodeConfig(
                node_name=name,
                hostname=vmess_config['add'],
                port=int(vmess_config['port']),
                uuid=vmess_config['id'],
                alter_id=int(vmess_config.get('aid', 0)),
                method=vmess_config.get('scy', 'auto'),
                network=vmess_config.get('net', 'tcp'),
                tls=vmess_config.get('tls') == 'tls',
                host=vmess_config.get('host', ''),
                path=vmess_config.get('path') or '/',
            )

        except Exception as e:
            logger.error(f"解析Vmess失败: {str(e)}")
            return None

    def parse_line(self, line):
        scheme, _ = parse_uri(line)
        if scheme == 'ss':
            return self.parse_ss(line)
        elif scheme == 'ssr':
            return self.parse_ssr(line)
        elif scheme == 'vmess':
            return self.parse_vmess(line)

        logger.warning(f"不支持的协议类型: {scheme}")
        return None

    def parse_subscription(self, content):
        """
        解析Base64编码的订阅内容，每行一个节点

        Args:
            content (str): 订阅内容

        Returns:
            list: 节点列表，无法解析的行会被跳过
        """
        content = content.strip()
        if '://' not in content:
            content = decode_base64(content)

        nodes = []
        for line in content.splitlines():
            line = line.strip()
            if not line:
                continue
            node = self.parse_line(line)
            if node is not None:
                nodes.append(node)

        logger.info(f"从订阅中解析出 {len(nodes)} 个节点")
        return nodes


def node_from_clash_proxy(proxy):
    """
    将Clash格式的代理转换为节点配置

    Args:
        proxy (dict): Clash配置中 proxies 的一项

    Returns:
        NodeConfig: 节点配置，不支持的类型返回None
    """
    proxy_type = proxy.get('type')
    common = {
        'node_name': proxy['name'],
        'hostname': proxy['server'],
        'port': int(proxy['port']),
    }

    if proxy_type == 'ss':
        plugin_opts = proxy.get('plugin-opts') or {}
        return ShadowsocksNodeConfig(
            method=proxy['cipher'],
            password=str(proxy['password']),
            udp_relay=bool(proxy.get('udp', False)),
            obfs=plugin_opts.get('mode') if proxy.get('plugin') == 'obfs' else None,
            obfs_host=plugin_opts.get('host') if proxy.get('plugin') == 'obfs' else None,
            **common,
        )
    elif proxy_type == 'ssr':
        return ShadowsocksrNodeConfig(
            method=proxy['cipher'],
            password=str(proxy['password']),
            protocol=proxy.get('protocol', 'origin'),
            protocol_param=proxy.get('protocol-param') or proxy.get('protocolparam', ''),
            obfs=proxy.get('obfs', 'plain'),
            obfs_param=proxy.get('obfs-param') or proxy.get('obfsparam', ''),
            **common,
        )
    elif proxy_type == 'vmess':
        ws_opts = proxy.get('ws-opts') or {}
        headers = ws_opts.get('headers') or {}
        return VmessNodeConfig(
            uuid=proxy['uuid'],
            alter_id=int(proxy.get('alterId', 0)),
            method=proxy.get('cipher', 'auto'),
            network=proxy.get('network', 'tcp'),
            tls=bool(proxy.get('tls', False)),
            host=headers.get('Host', ''),
            path=ws_opts.get('path', '/'),
            skip_cert_verify=bool(proxy.get('skip-cert-verify', False)),
            **common,
        )
    elif proxy_type == 'http' and proxy.get('tls'):
        return HttpsNodeConfig(
            username=proxy.get('username', ''),
            password=proxy.get('password', ''),
            skip_cert_verify=bool(proxy.get('skip-cert-verify', False)),
            **common,
        )
    elif proxy_type == 'snell':
        obfs_opts = proxy.get('obfs-opts') or {}
        return SnellNodeConfig(
            psk=proxy['psk'],
            obfs=obfs_opts.get('mode'),
            obfs_host=obfs_opts.get('host'),
            **common,
        )

    logger.warning(f"跳过不支持的Clash节点: {proxy.get('name', '未命名')} ({proxy_type})")
    return None
