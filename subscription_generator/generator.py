import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from . import filters
from .context import build_context
from .errors import ConfigurationError, ProviderExecutionError
from .flag import prepend_flag
from .provider import ProviderRegistry
from .remote_snippet import load_remote_snippet_list
from .template import TEMPLATE_EXTENSION, TemplateEngine

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    node_list: List[Any]
    node_name_list: List[Any]
    netflix_filter: Callable
    youtube_premium_filter: Callable
    custom_filters: Dict[str, Callable]


@dataclass
class GenerationEvent:
    """
    生成过程中的进度事件

    kind 取值: run_started, artifact_started, provider_started,
    artifact_succeeded, artifact_failed, run_succeeded
    """

    kind: str
    artifact_name: Optional[str] = None
    provider_name: Optional[str] = None
    error: Optional[BaseException] = None


class ArtifactGenerator:
    """根据配置生成所有 artifact"""

    def __init__(self, config, on_event=None, registry=None, template_engine=None):
        """
        Args:
            config (CommandConfig): 运行配置
            on_event (callable, optional): 接收 GenerationEvent 的回调
            registry (ProviderRegistry, optional): Provider 注册表，默认按 provider_dir 创建
            template_engine (TemplateEngine, optional): 模板渲染器，默认按 template_dir 创建
        """
        self.config = config
        self.on_event = on_event
        self.registry = registry or ProviderRegistry(config.provider_dir)
        self.template_engine = template_engine or TemplateEngine(config.template_dir)

    def _emit(self, kind, **kwargs):
        if self.on_event is not None:
            self.on_event(GenerationEvent(kind, **kwargs))

    async def aggregate_nodes(self, provider_names, artifact_name=None):
        """
        依次处理各个 Provider，合并节点

        过滤器只使用第一个 Provider 中的定义。

        Args:
            provider_names (list): 按顺序排列的 Provider 名称

        Returns:
            AggregationResult: 节点列表、名称列表和过滤器
        """
        config = self.config
        node_list = []
        node_name_list = []
        netflix_filter = None
        youtube_premium_filter = None
        custom_filters = None

        for provider_name in provider_names:
            self._emit('provider_started', artifact_name=artifact_name, provider_name=provider_name)
            logger.info(f"正在处理 Provider: {provider_name}")

            provider = self.registry.load(provider_name)

            try:
                nodes = await provider.get_node_list()
            except Exception as e:
                raise ProviderExecutionError(
                    provider.file_path,
                    f"获取 Provider 节点时出现错误，相关文件 {provider.file_path} ，错误原因: {e}",
                ) from e

            if netflix_filter is None:
                netflix_filter = provider.netflix_filter or filters.netflix_filter
            if youtube_premium_filter is None:
                youtube_premium_filter = provider.youtube_premium_filter or filters.youtube_premium_filter
            if custom_filters is None:
                custom_filters = provider.custom_filters or {}

            valid_count = 0
            for node in nodes:
                is_valid = provider.node_filter is None or bool(provider.node_filter(node))

                if config.bin_path.get(node.type):
                    node.bin_path = config.bin_path[node.type]
                    node.local_port = provider.next_port

                node.surge_config = config.surge_config

                if provider.add_flag:
                    node.node_name = prepend_flag(node.node_name)

                if is_valid:
                    node_list.append(node)
                    node_name_list.append(node.to_simple())
                    valid_count += 1

            logger.info(f"Provider {provider_name} 提供了 {valid_count}/{len(nodes)} 个有效节点")

        return AggregationResult(
            node_list=node_list,
            node_name_list=node_name_list,
            netflix_filter=netflix_filter or filters.netflix_filter,
            youtube_premium_filter=youtube_premium_filter or filters.youtube_premium_filter,
            custom_filters=custom_filters if custom_filters is not None else {},
        )

    async def generate(self, artifact, remote_snippet_list=()):
        """
        生成单个 artifact 的内容

        Args:
            artifact (ArtifactConfig): artifact 配置
            remote_snippet_list (tuple): 远程片段

        Returns:
            str: 渲染结果
        """
        validate_artifact(artifact)

        aggregation = await self.aggregate_nodes(artifact.provider_list, artifact.name)
        context = build_context(self.config, artifact, aggregation, remote_snippet_list)
        return self.template_engine.render(f"{artifact.template}{TEMPLATE_EXTENSION}", context.as_dict())

    async def run(self):
        """
        生成全部 artifact 并写入输出目录

        输出目录会先被清空。任一 artifact 失败时立即停止。
        """
        config = self.config
        self._emit('run_started')

        remote_snippet_list = await load_remote_snippet_list(config.remote_snippets)

        if os.path.exists(config.output_dir):
            shutil.rmtree(config.output_dir)
        os.makedirs(config.output_dir)

        for artifact in config.artifacts:
            self._emit('artifact_started', artifact_name=artifact.name)
            logger.info(f"正在生成规则 {artifact.name}")

            try:
                result = await self.generate(artifact, remote_snippet_list)
                dest_file_path = os.path.join(config.output_dir, artifact.name)
                with open(dest_file_path, 'w', encoding='utf-8') as f:
                    f.write(result)
            except Exception as e:
                logger.error(f"规则 {artifact.name} 生成失败: {e}")
                self._emit('artifact_failed', artifact_name=artifact.name, error=e)
                raise

            logger.info(f"规则 {artifact.name} 生成成功")
            self._emit('artifact_succeeded', artifact_name=artifact.name)

        self._emit('run_succeeded')


def validate_artifact(artifact):
    if not artifact.name:
        raise ConfigurationError("必须指定 artifact 的 name 属性")
    if not artifact.template:
        raise ConfigurationError(f"必须指定 artifact {artifact.name} 的 template 属性")
    if not artifact.provider:
        raise ConfigurationError(f"必须指定 artifact {artifact.name} 的 provider 属性")


def generate_all(config, on_event=None):
    """同步入口，生成配置中的全部 artifact"""
    asyncio.run(ArtifactGenerator(config, on_event=on_event).run())
