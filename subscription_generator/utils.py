import base64
import logging
from urllib.parse import parse_qsl, quote, urlencode

import requests
import yaml

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
}


# --- Representer for bool to output 'true'/'false' ---
def bool_representer(dumper, data):
    return dumper.represent_scalar('tag:yaml.org,2002:bool', 'true' if data else 'false')

yaml.add_representer(bool, bool_representer, Dumper=yaml.SafeDumper)
# ---


def load_yaml_file(file_path):
    """
    加载YAML文件，失败时直接抛出异常。
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def safe_dump_yaml(data):
    """
    将数据转换为YAML字符串，保留中文和字段顺序。
    """
    return yaml.safe_dump(data, allow_unicode=True, sort_keys=False, default_flow_style=False)


def to_base64(text: str) -> str:
    return base64.b64encode(text.encode('utf-8')).decode('ascii')


def to_url_safe_base64(text: str) -> str:
    """URL安全的Base64，去掉末尾的=号"""
    return base64.urlsafe_b64encode(text.encode('utf-8')).decode('ascii').rstrip('=')


def decode_base64(encoded_str: str) -> str:
    """
    解码Base64字符串，兼容URL安全字符和缺失的padding。
    """
    encoded_str = encoded_str.strip().replace('\n', '').replace('\r', '')
    padding = len(encoded_str) % 4
    if padding > 0:
        encoded_str += '=' * (4 - padding)
    return base64.urlsafe_b64decode(encoded_str.replace('+', '-').replace('/', '_')).decode('utf-8')


def encode_uri_component(text) -> str:
    return quote(str(text), safe="-_.!~*'()")


def get_download_url(url_base, artifact_name, inline=True, access_token=None):
    """
    生成 Artifact 的下载地址

    Args:
        url_base (str): 下载地址前缀
        artifact_name (str): Artifact 名称，可以带查询参数
        inline (bool): 为 False 时添加 dl=1
        access_token (str, optional): 网关访问令牌

    Returns:
        str: 下载地址
    """
    if '?' in artifact_name:
        name, query = artifact_name.split('?', 1)
        params = dict(parse_qsl(query, keep_blank_values=True))
    else:
        name = artifact_name
        params = {}

    if access_token:
        params['access_token'] = access_token
    if not inline:
        params['dl'] = '1'

    query = urlencode(params)
    return f"{url_base}{name}{'?' + query if query else ''}"


def fetch_text(url, timeout=60):
    """
    获取远程文本内容，请求失败时抛出异常，不做重试。
    """
    logger.info(f"正在请求: {url}")
    response = requests.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
    response.raise_for_status()
    logger.info(f"请求成功，内容长度: {len(response.text)} 字节")
    return response.text
