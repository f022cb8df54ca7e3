import json

import pytest

from subscription_generator import formatters
from subscription_generator.filters import hk_filter
from subscription_generator.models import (
    HttpsNodeConfig,
    ShadowsocksNodeConfig,
    ShadowsocksrNodeConfig,
    SnellNodeConfig,
    VmessNodeConfig,
)
from subscription_generator.utils import decode_base64


@pytest.fixture
def nodes():
    return [
        ShadowsocksNodeConfig(
            node_name='🇭🇰 HK', hostname='hk.example.com', port=443,
            method='chacha20-ietf-poly1305', password='pw', udp_relay=True,
            obfs='tls', obfs_host='gateway-carry.icloud.com',
        ),
        ShadowsocksrNodeConfig(
            node_name='🇯🇵 JP', hostname='jp.example.com', port=8443,
            method='chacha20', password='pw', protocol='auth_aes128_md5',
            obfs='tls1.2_ticket_auth', obfs_param='music.163.com',
        ),
        VmessNodeConfig(
            node_name='🇺🇸 US', hostname='us.example.com', port=443,
            uuid='1386f85e-657b-4d6e-9d56-78badb75e1fd', network='ws',
            tls=True, host='cdn.example.com', path='/ws',
        ),
        HttpsNodeConfig(
            node_name='HTTPS', hostname='h.example.com', port=443,
            username='user', password='pass',
        ),
        SnellNodeConfig(
            node_name='Snell', hostname='s.example.com', port=443, psk='psk', obfs='http',
        ),
        ShadowsocksNodeConfig(
            node_name='disabled', hostname='d.example.com', port=443,
            method='aes-128-gcm', password='pw', enable=False,
        ),
    ]


def test_clash_nodes(nodes):
    proxies = formatters.get_clash_nodes(nodes)

    assert [proxy['type'] for proxy in proxies] == ['ss', 'ssr', 'vmess', 'http', 'snell']
    assert proxies[0]['plugin-opts'] == {'mode': 'tls', 'host': 'gateway-carry.icloud.com'}
    assert proxies[2]['ws-opts'] == {'path': '/ws', 'headers': {'Host': 'cdn.example.com'}}
    assert proxies[3]['tls'] is True


def test_clash_node_names_with_filter(nodes):
    assert formatters.get_clash_node_names(nodes, hk_filter, ['DIRECT']) == ['DIRECT', '🇭🇰 HK']


def test_surge_nodes_skip_ssr_without_bin_path(nodes):
    lines = formatters.get_surge_nodes(nodes).splitlines()

    assert lines[0] == (
        '🇭🇰 HK = ss, hk.example.com, 443, encrypt-method=chacha20-ietf-poly1305, '
        'password=pw, obfs=tls, obfs-host=gateway-carry.icloud.com, udp-relay=true'
    )
    assert lines[1] == (
        '🇺🇸 US = vmess, us.example.com, 443, username=1386f85e-657b-4d6e-9d56-78badb75e1fd, '
        'ws=true, ws-path=/ws, ws-headers=Host:cdn.example.com, tls=true'
    )
    assert lines[2] == 'HTTPS = https, h.example.com, 443, user, pass'
    assert lines[3] == 'Snell = snell, s.example.com, 443, psk=psk, obfs=http'
    assert len(lines) == 4


def test_surge_ssr_external_and_vmess_aead(nodes):
    ssr, vmess = nodes[1], nodes[2]
    ssr.bin_path = '/usr/local/bin/ssr-local'
    ssr.local_port = 61100
    vmess.surge_config = {'vmess_aead': True}

    lines = formatters.get_surge_nodes([ssr, vmess]).splitlines()

    assert lines[0].startswith('🇯🇵 JP = external, exec = "/usr/local/bin/ssr-local", args = "-s"')
    assert 'args = "-g", args = "music.163.com"' in lines[0]
    assert lines[0].endswith('local-port = 61100, addresses = jp.example.com')
    assert lines[1].endswith('vmess-aead=true')


def test_shadowsocks_nodes(nodes):
    lines = formatters.get_shadowsocks_nodes(nodes, 'Group').splitlines()

    assert lines == [
        'ss://Y2hhY2hhMjAtaWV0Zi1wb2x5MTMwNTpwdw@hk.example.com:443/'
        '?plugin=obfs-local%3Bobfs%3Dtls%3Bobfs-host%3Dgateway-carry.icloud.com'
        '&group=R3JvdXA#%F0%9F%87%AD%F0%9F%87%B0%20HK'
    ]


def test_shadowsocksr_nodes(nodes):
    lines = formatters.get_shadowsocksr_nodes(nodes, 'Group').splitlines()

    assert len(lines) == 1
    decoded = decode_base64(lines[0][len('ssr://'):])
    main, query = decoded.split('/?')
    assert main.split(':')[:5] == ['jp.example.com', '8443', 'auth_aes128_md5', 'chacha20', 'tls1.2_ticket_auth']
    assert 'remarks=' in query and 'group=' in query


def test_shadowsocks_nodes_json(nodes):
    data = json.loads(formatters.get_shadowsocks_nodes_json(nodes))

    assert data['configs'] == [{
        'remarks': '🇭🇰 HK',
        'server': 'hk.example.com',
        'server_port': 443,
        'method': 'chacha20-ietf-poly1305',
        'password': 'pw',
        'enable': True,
        'plugin': 'obfs-local',
        'plugin_opts': 'obfs=tls;obfs-host=gateway-carry.icloud.com',
    }]


def test_quantumult_nodes(nodes):
    lines = formatters.get_quantumult_nodes(nodes, 'Group').splitlines()

    assert [line.split('://')[0] for line in lines] == ['ss', 'ssr', 'vmess', 'http']
    vmess = decode_base64(lines[2][len('vmess://'):])
    assert vmess.startswith('🇺🇸 US = vmess, us.example.com, 443, chacha20-ietf-poly1305')
    assert 'obfs-header="Host: cdn.example.com"' in vmess
    assert vmess.endswith('group=Group')


def test_node_names(nodes):
    names = [node.to_simple() for node in nodes]

    assert formatters.get_node_names(names, separator='|') == '🇭🇰 HK|🇯🇵 JP|🇺🇸 US|HTTPS|Snell'
    assert formatters.get_node_names(names, hk_filter) == '🇭🇰 HK'
