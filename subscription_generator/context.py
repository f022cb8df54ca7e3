from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

from . import formatters, utils
from .filters import REGION_FILTERS
from .proxy_group import normalize_clash_proxy_group_config


@dataclass
class RenderContext:
    """传入模板的上下文"""

    download_url: str
    get_download_url: Callable[[str], str]
    nodes: List[Any]
    node_list: List[Any]
    names: List[Any]
    provider: str
    provider_name: str
    artifact_name: str
    netflix_filter: Callable
    youtube_premium_filter: Callable
    custom_filters: Dict[str, Callable]
    remote_snippets: Dict[str, Any]
    custom_params: Dict[str, Any]
    clash_proxy_config: Optional[Dict[str, Any]] = None

    us_filter: Callable = REGION_FILTERS['us_filter']
    hk_filter: Callable = REGION_FILTERS['hk_filter']
    japan_filter: Callable = REGION_FILTERS['japan_filter']
    korea_filter: Callable = REGION_FILTERS['korea_filter']
    singapore_filter: Callable = REGION_FILTERS['singapore_filter']
    taiwan_filter: Callable = REGION_FILTERS['taiwan_filter']

    get_node_names: Callable = formatters.get_node_names
    get_clash_nodes: Callable = formatters.get_clash_nodes
    get_clash_node_names: Callable = formatters.get_clash_node_names
    get_surge_nodes: Callable = formatters.get_surge_nodes
    get_shadowsocks_nodes: Callable = formatters.get_shadowsocks_nodes
    get_shadowsocks_nodes_json: Callable = formatters.get_shadowsocks_nodes_json
    get_shadowsocksr_nodes: Callable = formatters.get_shadowsocksr_nodes
    get_quantumult_nodes: Callable = formatters.get_quantumult_nodes
    to_base64: Callable = utils.to_base64
    to_url_safe_base64: Callable = utils.to_url_safe_base64
    encode_uri_component: Callable = utils.encode_uri_component

    def as_dict(self):
        """转换为模板使用的字典，未生成代理组时不包含 clash_proxy_config"""
        context = {f.name: getattr(self, f.name) for f in fields(self)}
        if context['clash_proxy_config'] is None:
            del context['clash_proxy_config']
        return context


def build_context(config, artifact, aggregation, remote_snippet_list):
    """
    组装模板上下文

    Args:
        config (CommandConfig): 运行配置
        artifact (ArtifactConfig): 当前 artifact
        aggregation (AggregationResult): 节点聚合结果
        remote_snippet_list (tuple): 运行开始时加载的远程片段

    Returns:
        RenderContext: 模板上下文
    """
    access_token = config.access_token

    def get_download_url(name):
        return utils.get_download_url(config.url_base, name, True, access_token)

    clash_proxy_config = None
    if artifact.proxy_group_modifier:
        filters = {
            **REGION_FILTERS,
            'netflix_filter': aggregation.netflix_filter,
            'youtube_premium_filter': aggregation.youtube_premium_filter,
            **aggregation.custom_filters,
        }
        clash_proxy_config = {
            'Proxy': formatters.get_clash_nodes(aggregation.node_list),
            'Proxy Group': normalize_clash_proxy_group_config(
                aggregation.node_list,
                filters,
                artifact.proxy_group_modifier,
            ),
        }

    return RenderContext(
        download_url=get_download_url(artifact.name),
        get_download_url=get_download_url,
        nodes=aggregation.node_list,
        node_list=aggregation.node_list,
        names=aggregation.node_name_list,
        provider=artifact.provider,
        provider_name=artifact.provider,
        artifact_name=artifact.name,
        netflix_filter=aggregation.netflix_filter,
        youtube_premium_filter=aggregation.youtube_premium_filter,
        custom_filters=aggregation.custom_filters,
        remote_snippets={snippet.name: snippet for snippet in remote_snippet_list},
        custom_params=artifact.custom_params or {},
        clash_proxy_config=clash_proxy_config,
    )
