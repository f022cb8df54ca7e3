import logging
import re

logger = logging.getLogger(__name__)

# 无法识别地区时使用的旗帜
DEFAULT_FLAG = '🏁'

# 旗帜 -> 关键词，按顺序匹配
FLAG_KEYWORDS = [
    ('🇺🇸', ['美国', '美', 'United States', 'US', 'USA', 'Los Angeles', 'San Jose', 'Seattle']),
    ('🇭🇰', ['香港', '港', 'Hong Kong', 'HongKong', 'HK']),
    ('🇯🇵', ['日本', '东京', '大阪', 'Japan', 'Tokyo', 'Osaka', 'JP']),
    ('🇰🇷', ['韩国', '首尔', 'Korea', 'Seoul', 'KR']),
    ('🇸🇬', ['新加坡', '狮城', 'Singapore', 'SG']),
    ('🇹🇼', ['台湾', '台', 'Taiwan', 'TW']),
    ('🇬🇧', ['英国', 'United Kingdom', 'London', 'UK', 'GB']),
    ('🇩🇪', ['德国', 'Germany', 'Frankfurt', 'DE']),
    ('🇫🇷', ['法国', 'France', 'Paris', 'FR']),
    ('🇷🇺', ['俄罗斯', 'Russia', 'Moscow', 'RU']),
    ('🇨🇦', ['加拿大', 'Canada', 'CA']),
    ('🇦🇺', ['澳大利亚', '澳洲', 'Australia', 'Sydney', 'AU']),
    ('🇮🇳', ['印度', 'India', 'IN']),
    ('🇨🇳', ['中国', '回国', 'China', 'CN']),
]


def _compile(keywords):
    parts = []
    for keyword in keywords:
        if keyword.isascii():
            # 英文关键词需要完整单词匹配，避免 US 命中 RUSSIA
            parts.append(r'(?<![A-Za-z])' + re.escape(keyword) + r'(?![A-Za-z])')
        else:
            parts.append(re.escape(keyword))
    return re.compile('|'.join(parts), re.IGNORECASE)


_FLAG_PATTERNS = [(flag, _compile(keywords)) for flag, keywords in FLAG_KEYWORDS]
# 任意两个区域指示符组成的国旗
_LEADING_FLAG = re.compile(r"[\U0001F1E6-\U0001F1FF]{2}")


def get_flag(node_name):
    for flag, pattern in _FLAG_PATTERNS:
        if pattern.search(node_name):
            return flag
    return DEFAULT_FLAG


def prepend_flag(node_name):
    """
    在节点名称前添加旗帜

    已经以旗帜开头的名称保持不变；无法识别地区的名称使用 DEFAULT_FLAG。

    Args:
        node_name (str): 节点名称

    Returns:
        str: 添加旗帜后的名称
    """
    if node_name.startswith(DEFAULT_FLAG) or _LEADING_FLAG.match(node_name):
        return node_name

    flag = get_flag(node_name)
    if flag == DEFAULT_FLAG:
        logger.debug(f"无法识别节点地区，使用默认旗帜: {node_name}")
    return f"{flag} {node_name}"
