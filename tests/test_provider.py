import pytest

from subscription_generator import provider as provider_module
from subscription_generator.errors import ProviderExecutionError, ProviderNotFoundError
from subscription_generator.models import ShadowsocksNodeConfig, VmessNodeConfig
from subscription_generator.provider import (
    ClashProvider,
    CustomProvider,
    ModuleProvider,
    ProviderRegistry,
    SubscribeProvider,
)
from subscription_generator.utils import to_base64

CLASH_SUBSCRIPTION = '''
proxies:
  - name: HK 01
    type: ss
    server: hk.example.com
    port: 443
    cipher: chacha20-ietf-poly1305
    password: secret
    udp: true
  - name: JP 01
    type: vmess
    server: jp.example.com
    port: 443
    uuid: 1386f85e-657b-4d6e-9d56-78badb75e1fd
    alterId: 0
    cipher: auto
    network: ws
    tls: true
    ws-opts:
      path: /ws
      headers:
        Host: cdn.example.com
  - name: Trojan 01
    type: trojan
    server: t.example.com
    port: 443
    password: secret
'''


def test_discover_lists_provider_files(write_provider, provider_dir):
    write_provider('b', 'provider = {"type": "custom", "node_list": []}')
    write_provider('a', 'provider = {"type": "custom", "node_list": []}')
    write_provider('_helpers', 'X = 1')
    (provider_dir / 'notes.txt').write_text('ignored')

    providers = ProviderRegistry(str(provider_dir)).discover()

    assert list(providers) == ['a', 'b']
    assert providers['a'] == str(provider_dir / 'a.py')


def test_discover_missing_directory(tmp_path):
    assert ProviderRegistry(str(tmp_path / 'missing')).discover() == {}


def test_resolve_missing_file(provider_dir):
    registry = ProviderRegistry(str(provider_dir))

    with pytest.raises(ProviderNotFoundError) as exc_info:
        registry.resolve('ghost')

    assert exc_info.value.file_path == str(provider_dir / 'ghost.py')


def test_load_module_provider(write_provider, provider_dir):
    file_path = write_provider('demo', '''
        add_flag = True
        start_port = 30000

        async def get_node_list():
            return []

        def node_filter(node):
            return True
    ''')

    provider = ProviderRegistry(str(provider_dir)).load('demo')

    assert isinstance(provider, ModuleProvider)
    assert provider.file_path == str(file_path)
    assert provider.add_flag is True
    assert provider.netflix_filter is None
    assert provider.custom_filters is None
    assert provider.next_port == 30000
    assert provider.next_port == 30001


def test_load_builtin_custom_provider(write_provider, provider_dir):
    write_provider('custom', '''
        provider = {
            'type': 'custom',
            'node_list': [
                {'type': 'snell', 'node_name': 'snell', 'hostname': 's.example.com',
                 'port': 443, 'psk': 'psk'},
            ],
        }
    ''')

    provider = ProviderRegistry(str(provider_dir)).load('custom')

    assert isinstance(provider, CustomProvider)


@pytest.mark.parametrize('source, message', [
    ('X = 1', 'get_node_list'),
    ('provider = {"type": "unknown"}', 'unknown'),
    ('def get_node_list(:\n    pass', 'demo.py'),
    ('raise RuntimeError("boom")', 'boom'),
    ('get_node_list = 1', 'get_node_list'),
    ('async def get_node_list():\n    return []\nnode_filter = "yes"', 'node_filter'),
    ('async def get_node_list():\n    return []\ncustom_filters = {"a": 1}', 'custom_filters.a'),
])
def test_load_errors_include_file_path(source, message, write_provider, provider_dir):
    file_path = write_provider('demo', source)

    with pytest.raises(ProviderExecutionError) as exc_info:
        ProviderRegistry(str(provider_dir)).load('demo')

    assert str(file_path) in str(exc_info.value)
    assert message in str(exc_info.value)
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_module_provider_accepts_sync_function():
    provider = ModuleProvider('sync', lambda: iter([
        {'type': 'https', 'node_name': 'h', 'hostname': 'h.example.com', 'port': 443,
         'username': 'u', 'password': 'p'},
    ]))

    nodes = await provider.get_node_list()

    assert [node.type for node in nodes] == ['https']


@pytest.mark.asyncio
async def test_unknown_node_type_raises():
    provider = CustomProvider('bad', [{'type': 'wireguard', 'node_name': 'w'}])

    with pytest.raises(ValueError):
        await provider.get_node_list()


@pytest.mark.asyncio
async def test_clash_provider(monkeypatch):
    monkeypatch.setattr(provider_module, 'fetch_text', lambda url, timeout: CLASH_SUBSCRIPTION)

    nodes = await ClashProvider('clash', url='https://example.com/clash.yaml').get_node_list()

    assert [node.node_name for node in nodes] == ['HK 01', 'JP 01']
    assert isinstance(nodes[0], ShadowsocksNodeConfig)
    assert nodes[0].udp_relay is True
    assert isinstance(nodes[1], VmessNodeConfig)
    assert (nodes[1].network, nodes[1].path, nodes[1].host, nodes[1].tls) == ('ws', '/ws', 'cdn.example.com', True)


@pytest.mark.asyncio
async def test_clash_provider_without_proxies(monkeypatch):
    monkeypatch.setattr(provider_module, 'fetch_text', lambda url, timeout: 'rules: []')

    with pytest.raises(ValueError):
        await ClashProvider('clash', url='https://example.com/clash.yaml').get_node_list()


@pytest.mark.asyncio
async def test_subscribe_provider_keeps_requested_type(monkeypatch):
    lines = '\n'.join([
        'ss://' + to_base64('aes-128-gcm:pw') + '@ss.example.com:8388#SS%2001',
        'trojan://secret@t.example.com:443#Trojan',
    ])
    monkeypatch.setattr(provider_module, 'fetch_text', lambda url, timeout: to_base64(lines))

    provider = SubscribeProvider('sub', url='https://example.com/sub', node_type='shadowsocks')
    nodes = await provider.get_node_list()

    assert [(node.node_name, node.hostname, node.port) for node in nodes] == [('SS 01', 'ss.example.com', 8388)]
