import asyncio
import logging
from dataclasses import dataclass

from .errors import ConfigurationError
from .utils import fetch_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteSnippet:
    """远程片段，运行开始时加载一次"""

    name: str
    url: str
    text: str

    @property
    def content(self):
        return self.text

    def main(self, policy):
        """
        为片段中的每条规则追加策略

        注释、空行和已经带有策略的规则保持不变；no-resolve 会被放到策略之后。

        Args:
            policy (str): 策略名称

        Returns:
            str: 处理后的规则
        """
        lines = []
        for line in self.text.splitlines():
            rule = line.strip()
            if not rule or rule.startswith(('#', '//', ';')):
                lines.append(line)
                continue

            parts = [part.strip() for part in rule.split(',')]
            no_resolve = parts[-1] == 'no-resolve'
            if no_resolve:
                parts = parts[:-1]

            if len(parts) == 2 or (len(parts) == 1 and parts[0] in ('MATCH', 'FINAL')):
                parts.append(policy)
            if no_resolve:
                parts.append('no-resolve')
            lines.append(','.join(parts))
        return '\n'.join(lines)


async def load_remote_snippet(config, timeout=60):
    name = config.get('name')
    url = config.get('url')
    if not name or not url:
        raise ConfigurationError(f"远程片段必须包含 name 和 url: {config}")

    text = await asyncio.to_thread(fetch_text, url, timeout)
    logger.info(f"已加载远程片段 {name}")
    return RemoteSnippet(name=name, url=url, text=text)


async def load_remote_snippet_list(remote_snippets_config, timeout=60):
    """
    并发加载全部远程片段，任一失败则整体失败

    Args:
        remote_snippets_config (list): [{'name': ..., 'url': ...}]

    Returns:
        tuple: RemoteSnippet 列表，顺序与配置一致
    """
    if not remote_snippets_config:
        return ()

    snippets = await asyncio.gather(
        *(load_remote_snippet(config, timeout) for config in remote_snippets_config)
    )
    return tuple(snippets)
