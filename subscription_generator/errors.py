from jinja2 import TemplateError as RenderError


class GeneratorError(Exception):
    """生成过程中所有错误的基类"""


class ConfigurationError(GeneratorError):
    """配置缺失或格式错误"""


class ProviderResolutionError(GeneratorError):
    """无法定位 Provider"""


class ProviderNotFoundError(ProviderResolutionError):
    """Provider 文件不存在"""

    def __init__(self, file_path):
        self.file_path = file_path
        super().__init__(f"文件 {file_path} 不存在")


class ProviderExecutionError(GeneratorError):
    """
    Provider 加载或获取节点时出错

    消息中包含相关文件路径和原始错误原因，原始异常保留在 __cause__ 中。
    """

    def __init__(self, file_path, message):
        self.file_path = file_path
        super().__init__(message)


__all__ = [
    'GeneratorError',
    'ConfigurationError',
    'ProviderResolutionError',
    'ProviderNotFoundError',
    'ProviderExecutionError',
    'RenderError',
]
