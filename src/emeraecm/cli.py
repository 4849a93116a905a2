# -*- coding: utf-8 -*-
"""
emeraecm 命令行接口
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .components.manifest import ComponentRecord, Forest
from .config import EcmConfig
from .exceptions import EcmError
from .manager import ComponentManager


def _print_tree(records: Forest, indent: int = 0) -> None:
    """递归打印组件及其依赖"""
    for record in records:
        marker = " [受保护]" if record.protected and indent == 0 else ""
        print(f"{'  ' * indent}{record.name}@{record.version}{marker}")
        _print_tree(record.requires, indent + 1)


def _print_record(action: str, record: ComponentRecord) -> None:
    print(f"{action}: {record.name}@{record.version} -> {record.file_path}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="emeraecm",
        description="emeraecm - 组件依赖管理器",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", help="YAML 配置文件路径")
    parser.add_argument("--env", help="配置环境，默认读取 APP_ENV")
    parser.add_argument("--root", help="内容存储根目录，覆盖配置文件")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="只输出错误")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init", help="创建组件目录和空清单")
    subparsers.add_parser("list", help="列出已安装组件")

    add_parser = subparsers.add_parser("add", help="从描述符地址新增组件")
    add_parser.add_argument("manifest_url", help="远程描述符地址")

    update_parser = subparsers.add_parser("update", help="更新组件")
    target = update_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("name", nargs="?", help="组件名称")
    target.add_argument("--all", action="store_true", help="更新所有有可用更新的组件")

    delete_parser = subparsers.add_parser("delete", help="删除组件")
    delete_parser.add_argument("name", help="组件名称")

    subparsers.add_parser("check", help="检查可用更新")
    subparsers.add_parser("index", help="重新生成导出索引")
    return parser


def _load_config(args: argparse.Namespace) -> EcmConfig:
    if args.config:
        config = EcmConfig.load_from_file(Path(args.config), env=args.env)
    else:
        config = EcmConfig()
    if args.root:
        config.root = args.root
    return config


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _notify(message: str) -> None:
    print(message, file=sys.stderr)


def run(args: argparse.Namespace) -> int:
    """执行子命令，返回进程退出码"""
    manager = ComponentManager(_load_config(args), notifier=_notify)
    try:
        manager.initialize()

        if args.command == "init":
            print(f"清单: {manager.config.manifest_path}")
        elif args.command == "list":
            if not manager.components:
                print("尚未安装任何组件")
            _print_tree(manager.components)
        elif args.command == "add":
            _print_record("已添加", manager.add_component(args.manifest_url))
        elif args.command == "update":
            if args.all:
                updated = manager.update_all()
                for record in updated:
                    _print_record("已更新", record)
                if not updated:
                    print("所有组件均为最新")
            else:
                _print_record("当前版本", manager.update_component(args.name))
        elif args.command == "delete":
            if not manager.delete_component(args.name):
                return 1
            print(f"已删除: {args.name}")
        elif args.command == "check":
            updates = manager.check_updates()
            for descriptor in updates:
                print(f"可更新: {descriptor.name}@{descriptor.version}")
            if not updates:
                print("所有组件均为最新")
        elif args.command == "index":
            manager.rebuild_index()
            print(f"索引已更新: {manager.config.index_path}")
        return 0
    finally:
        manager.close()


def main(argv: Optional[List[str]] = None) -> None:
    """命令行主入口"""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    try:
        sys.exit(run(args))
    except KeyboardInterrupt:
        print("\n用户中断", file=sys.stderr)
        sys.exit(1)
    except EcmError as e:
        print(f"运行失败: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
