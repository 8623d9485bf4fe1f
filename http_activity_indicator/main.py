"""
应用启动逻辑模块：
- 解析命令行参数。
- 加载配置。
- 初始化日志。
- 创建并运行 FastAPI 应用。
"""

import argparse
import logging.config
import sys
import uvicorn

from .app import create_app
from .core.config import load_settings
from .core.logging_config import get_logging_config

def run_server(args: argparse.Namespace):
    """启动 FastAPI 服务器"""
    # 1. 加载配置
    settings = load_settings(args.config)

    # 2. 初始化日志
    log_level = settings.get("log_level", "info")
    logging_config = get_logging_config(log_level)
    logging.config.dictConfig(logging_config)

    # 3. 创建 FastAPI 应用
    app = create_app(settings)

    # 4. 启动 uvicorn 服务器
    server_settings = settings["server"]
    uvicorn.run(
        app,
        host=args.host or server_settings["host"],
        port=args.port or server_settings["port"],
        log_config=logging_config,
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="HTTP activity indicator server. Use 'run' to start the server."
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'run' 子命令 (启动服务器)
    parser_run = subparsers.add_parser("run", help="Run the indicator server (default command)")
    parser_run.add_argument(
        "-c", "--config",
        type=str,
        help="Path to the configuration JSON file."
    )
    parser_run.add_argument("--host", type=str, help="Override server.host from the config.")
    parser_run.add_argument("--port", type=int, help="Override server.port from the config.")
    parser_run.set_defaults(func=run_server)
    return parser

def run(argv=None):
    """
    主运行函数，用于解析命令行参数并分发到相应的处理函数。
    """
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else list(argv)
    # 如果没有提供子命令，则默认为 'run'
    # 这使得 `python -m ...main -c config.json` 和 `... run -c config.json` 效果相同
    if not argv or argv[0] not in ("run", "-h", "--help"):
        argv = ['run'] + argv
    args = parser.parse_args(argv)

    args.func(args)

if __name__ == "__main__":
    run()
