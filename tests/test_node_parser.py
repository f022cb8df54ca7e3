import json

import pytest

from subscription_generator.models import (
    ShadowsocksNodeConfig,
    ShadowsocksrNodeConfig,
    SnellNodeConfig,
    VmessNodeConfig,
    node_from_dict,
)
from subscription_generator.node_parser import NodeParser, node_from_clash_proxy
from subscription_generator.utils import to_base64, to_url_safe_base64


@pytest.fixture
def parser():
    return NodeParser()


def test_parse_ss_sip002_with_plugin(parser):
    uri = (
        'ss://' + to_url_safe_base64('aes-128-gcm:pass')
        + '@1.2.3.4:8388/?plugin=obfs-local%3Bobfs%3Dhttp%3Bobfs-host%3Dexample.com#Node%201'
    )

    node = parser.parse_ss(uri)

    assert isinstance(node, ShadowsocksNodeConfig)
    assert (node.node_name, node.hostname, node.port) == ('Node 1', '1.2.3.4', 8388)
    assert (node.method, node.password) == ('aes-128-gcm', 'pass')
    assert (node.obfs, node.obfs_host) == ('http', 'example.com')


def test_parse_ss_legacy(parser):
    uri = 'ss://' + to_base64('rc4-md5:p@ss@legacy.example.com:443') + '#Legacy'

    node = parser.parse_ss(uri)

    assert (node.hostname, node.port, node.password) == ('legacy.example.com', 443, 'p@ss')


def test_parse_ssr(parser):
    query = 'obfsparam={}&remarks={}'.format(
        to_url_safe_base64('breakwa11.moe'), to_url_safe_base64('SSR 节点'),
    )
    payload = 'ssr.example.com:443:auth_aes128_md5:chacha20:tls1.2_ticket_auth:{}/?{}'.format(
        to_url_safe_base64('secret'), query,
    )

    node = parser.parse_ssr('ssr://' + to_url_safe_base64(payload))

    assert isinstance(node, ShadowsocksrNodeConfig)
    assert node.node_name == 'SSR 节点'
    assert (node.protocol, node.obfs, node.obfs_param) == ('auth_aes128_md5', 'tls1.2_ticket_auth', 'breakwa11.moe')
    assert node.password == 'secret'


def test_parse_vmess(parser):
    payload = json.dumps({
        'v': '2', 'ps': 'VMess 01', 'add': 'v.example.com', 'port': '443',
        'id': '1386f85e-657b-4d6e-9d56-78badb75e1fd', 'aid': '0',
        'net': 'ws', 'host': 'cdn.example.com', 'path': '/ray', 'tls': 'tls',
    })

    node = parser.parse_vmess('vmess://' + to_base64(payload))

    assert isinstance(node, VmessNodeConfig)
    assert (node.port, node.network, node.tls, node.path, node.host) == (443, 'ws', True, '/ray', 'cdn.example.com')


def test_invalid_uris_return_none(parser):
    assert parser.parse_vmess('vmess://not-base64!') is None
    assert parser.parse_line('trojan://secret@t.example.com:443') is None


def test_parse_plain_subscription(parser):
    content = '\n'.join([
        'ss://' + to_url_safe_base64('aes-128-gcm:pass') + '@a.example.com:1#A',
        '',
        'unknown://x',
    ])

    nodes = parser.parse_subscription(content)

    assert [node.node_name for node in nodes] == ['A']


def test_node_from_clash_snell():
    node = node_from_clash_proxy({
        'name': 'snell', 'type': 'snell', 'server': 's.example.com', 'port': '443',
        'psk': 'psk', 'obfs-opts': {'mode': 'tls', 'host': 'bing.com'},
    })

    assert isinstance(node, SnellNodeConfig)
    assert (node.port, node.obfs, node.obfs_host) == (443, 'tls', 'bing.com')


def test_node_from_clash_plain_http_is_skipped():
    assert node_from_clash_proxy({'name': 'h', 'type': 'http', 'server': 'h', 'port': 80}) is None


def test_node_from_dict_rejects_unknown_fields():
    with pytest.raises(ValueError):
        node_from_dict({'type': 'snell', 'node_name': 's', 'hostname': 'h', 'port': 1, 'psk': 'p', 'foo': 1})
    with pytest.raises(ValueError):
        node_from_dict({'type': 'snell', 'node_name': 's'})
