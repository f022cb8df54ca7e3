#!/usr/bin/env python
# -*- coding: utf-8 -*-

import argparse
import logging
import os
import sys

from subscription_generator.config import load_config
from subscription_generator.errors import GeneratorError
from subscription_generator.generator import generate_all
from subscription_generator.provider import ProviderRegistry

# 设置日志格式
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("subscription_generator_cli")


def print_event(event):
    """
    在终端中输出生成进度
    """
    if event.kind == 'run_started':
        print("\n" + "="*50)
        print("⚙️  开始生成规则")
        print("="*50)
    elif event.kind == 'artifact_started':
        print(f"\n📄 正在生成规则 {event.artifact_name}")
    elif event.kind == 'provider_started':
        print(f"  🔗 正在处理 Provider: {event.provider_name}")
    elif event.kind == 'artifact_succeeded':
        print(f"  ✅ 规则 {event.artifact_name} 生成成功")
    elif event.kind == 'artifact_failed':
        print(f"  ❌ 规则 {event.artifact_name} 生成失败")
    elif event.kind == 'run_succeeded':
        print("\n" + "="*50)
        print("🎉 规则生成成功!")
        print("="*50 + "\n")


def parse_arguments():
    """
    解析命令行参数
    """
    parser = argparse.ArgumentParser(
        description='根据 Provider 和模板生成代理客户端订阅文件',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  %(prog)s -c config.yaml
  %(prog)s -c config.yaml -o ./dist
  %(prog)s -c config.yaml --list-providers
        """
    )

    parser.add_argument('-c', '--config', default='config.yaml',
                        help='配置文件路径 (默认: config.yaml)')
    parser.add_argument('-o', '--output',
                        help='输出目录，覆盖配置文件中的 output_dir')
    parser.add_argument('--list-providers', action='store_true',
                        help='列出 Provider 目录中的全部 Provider')
    parser.add_argument('-d', '--debug', action='store_true', help='启用调试日志')

    return parser.parse_args()


def main():
    """
    主函数
    """
    args = parse_arguments()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(args.config)
        if args.output:
            config.output_dir = os.path.abspath(args.output)

        if args.list_providers:
            providers = ProviderRegistry(config.provider_dir).discover()
            print(f"\n共找到 {len(providers)} 个 Provider:")
            for name, file_path in providers.items():
                print(f"  - {name} ({file_path})")
            return

        generate_all(config, on_event=print_event)
        print(f"✓ 输出目录: {config.output_dir}")

    except KeyboardInterrupt:
        print("\n\n❌ 用户取消操作")
        sys.exit(0)
    except GeneratorError as e:
        logger.error(str(e), exc_info=args.debug)
        sys.exit(1)
    except Exception as e:
        logger.error(f"发生未知错误: {e}", exc_info=args.debug)
        sys.exit(1)


if __name__ == "__main__":
    main()
