#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Настраивает корневой логгер: один обработчик stdout с временем и именем модуля."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # Шумные сторонние библиотеки
    for name in ("httpx", "httpcore", "urllib3", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)
