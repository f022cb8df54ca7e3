"""
节点过滤器

所有过滤器都是以节点为参数、返回 bool 的纯函数，只读取节点名称（加旗帜之后的名称）。
节点可以是完整的 NodeConfig，也可以是 SimpleNodeConfig。
"""


def use_keywords(keywords, is_strict=False):
    """
    生成一个"名称包含任一关键词"的过滤器

    Args:
        keywords (list): 关键词列表
        is_strict (bool): 为 True 时区分大小写

    Returns:
        callable: 过滤器
    """
    if not keywords:
        raise ValueError("keywords 不能为空")

    if is_strict:
        def node_filter(node):
            return any(keyword in node.node_name for keyword in keywords)
    else:
        lowered = [keyword.lower() for keyword in keywords]

        def node_filter(node):
            name = node.node_name.lower()
            return any(keyword in name for keyword in lowered)

    return node_filter


def discard_keywords(keywords, is_strict=False):
    """生成一个"名称不包含任何关键词"的过滤器"""
    matcher = use_keywords(keywords, is_strict)

    def node_filter(node):
        return not matcher(node)

    return node_filter


def merge_filters(filters, and_mode=False):
    """
    合并多个过滤器

    Args:
        filters (list): 过滤器列表
        and_mode (bool): True 表示全部满足，False 表示任一满足
    """
    if not filters:
        raise ValueError("filters 不能为空")

    def node_filter(node):
        if and_mode:
            return all(f(node) for f in filters)
        return any(f(node) for f in filters)

    return node_filter


us_filter = use_keywords(['🇺🇸', '美', 'US'], is_strict=True)
hk_filter = use_keywords(['🇭🇰', '港', 'HK'], is_strict=True)
japan_filter = use_keywords(['🇯🇵', '日', 'JP'], is_strict=True)
korea_filter = use_keywords(['🇰🇷', '韩', 'KR'], is_strict=True)
singapore_filter = use_keywords(['🇸🇬', '新加坡', '狮城', 'SG'], is_strict=True)
taiwan_filter = use_keywords(['🇹🇼', '台', 'TW'], is_strict=True)

netflix_filter = use_keywords(['netflix', 'nf', 'hkbn', 'hkt', 'hgc', 'nbu'])
youtube_premium_filter = use_keywords(['🇺🇸', '🇯🇵', '🇰🇷', '日', '美', '韩'], is_strict=True)

# 地区过滤器不允许被 Provider 覆盖
REGION_FILTERS = {
    'us_filter': us_filter,
    'hk_filter': hk_filter,
    'japan_filter': japan_filter,
    'korea_filter': korea_filter,
    'singapore_filter': singapore_filter,
    'taiwan_filter': taiwan_filter,
}
