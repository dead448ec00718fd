# utils/logger.py
import logging
import sys
from datetime import datetime
from pathlib import Path
from fundgrid.config.settings import Config

ROOT_LOGGER = "fundgrid"


def _configure(logger: logging.Logger):
    """控制台 INFO + 按日文件 DEBUG"""
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    log_dir = Path(Config.LOGGING.log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            log_dir / f"fundgrid_{datetime.now().strftime('%Y%m%d')}.log",
            encoding="utf-8"
        )
    except OSError as e:
        logger.warning(f"⚠️  File logging disabled ({log_dir}): {e}")
        return

    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)-8s | %(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)


def get_logger(name: str = ROOT_LOGGER):
    """获取日志器；handler 只挂在 fundgrid 根日志器上，子模块向上传递"""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, Config.LOGGING.level))

    # 避免重复添加 handler
    if not root.handlers:
        _configure(root)

    logger = logging.getLogger(name)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + ".") and not logger.handlers:
        logger.setLevel(getattr(logging, Config.LOGGING.level))
        _configure(logger)
    return logger


def setup_logging() -> logging.Logger:
    """按当前 Config 重新挂载 handler；Config.from_env() 之后调用，使日志目录 / 级别生效"""
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(getattr(logging, Config.LOGGING.level))
    _configure(root)
    return root


# 全局 logger 实例（供其他模块直接使用）
logger = get_logger()
