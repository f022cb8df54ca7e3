import json
import logging

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .utils import safe_dump_yaml, to_base64

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSION = '.tpl'


class TemplateEngine:
    """基于 Jinja2 的模板渲染器"""

    def __init__(self, template_dir):
        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.env.filters['yaml'] = safe_dump_yaml
        self.env.filters['json'] = lambda value: json.dumps(value, ensure_ascii=False)
        self.env.filters['base64'] = to_base64

    def render(self, template_file_name, context):
        """
        渲染模板

        Args:
            template_file_name (str): 模板文件名（相对于模板目录）
            context (dict): 模板上下文

        Returns:
            str: 渲染结果
        """
        logger.debug(f"渲染模板: {template_file_name}")
        return self.env.get_template(template_file_name).render(context)
