from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Optional


@dataclass(kw_only=True)
class NodeConfig:
    """节点配置基类，具体协议见各子类，以 type 区分"""

    type: ClassVar[str] = ''

    node_name: str
    hostname: str
    port: int
    enable: bool = True
    # 以下字段在聚合阶段写入
    bin_path: Optional[str] = None
    local_port: Optional[int] = None
    surge_config: Dict[str, Any] = field(default_factory=dict)

    def to_simple(self) -> 'SimpleNodeConfig':
        return SimpleNodeConfig(type=self.type, enable=self.enable, node_name=self.node_name)


@dataclass(kw_only=True)
class ShadowsocksNodeConfig(NodeConfig):
    type: ClassVar[str] = 'shadowsocks'

    method: str
    password: str
    udp_relay: bool = False
    obfs: Optional[str] = None  # tls / http
    obfs_host: Optional[str] = None
    tfo: bool = False


@dataclass(kw_only=True)
class ShadowsocksrNodeConfig(NodeConfig):
    type: ClassVar[str] = 'shadowsocksr'

    method: str
    password: str
    protocol: str = 'origin'
    protocol_param: str = ''
    obfs: str = 'plain'
    obfs_param: str = ''


@dataclass(kw_only=True)
class VmessNodeConfig(NodeConfig):
    type: ClassVar[str] = 'vmess'

    uuid: str
    alter_id: int = 0
    method: str = 'auto'
    network: str = 'tcp'  # tcp / ws
    tls: bool = False
    host: str = ''
    path: str = '/'
    skip_cert_verify: bool = False


@dataclass(kw_only=True)
class HttpsNodeConfig(NodeConfig):
    type: ClassVar[str] = 'https'

    username: str
    password: str
    skip_cert_verify: bool = False


@dataclass(kw_only=True)
class SnellNodeConfig(NodeConfig):
    type: ClassVar[str] = 'snell'

    psk: str
    obfs: Optional[str] = None
    obfs_host: Optional[str] = None


@dataclass(frozen=True)
class SimpleNodeConfig:
    type: str
    enable: bool
    node_name: str


NODE_TYPES = {
    cls.type: cls
    for cls in (
        ShadowsocksNodeConfig,
        ShadowsocksrNodeConfig,
        VmessNodeConfig,
        HttpsNodeConfig,
        SnellNodeConfig,
    )
}


def node_from_dict(data):
    """
    根据 type 字段构造对应协议的节点配置

    Args:
        data (dict): 包含 type 字段的节点描述

    Returns:
        NodeConfig: 对应协议的节点对象

    Raises:
        ValueError: 类型未知或包含无法识别的字段
    """
    data = dict(data)
    node_type = data.pop('type', None)
    node_cls = NODE_TYPES.get(node_type)
    if node_cls is None:
        raise ValueError(f"不支持的节点类型: {node_type}")

    known = {f.name for f in fields(node_cls) if f.init}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"{node_type} 节点包含未知字段: {', '.join(unknown)}")

    try:
        return node_cls(**data)
    except TypeError as e:
        raise ValueError(f"{node_type} 节点配置不完整: {e}") from e
