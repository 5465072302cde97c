"""日志配置。"""

from __future__ import annotations

import logging


def setup_logging(level: int = logging.INFO) -> None:
    """初始化项目日志配置。"""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Pillow 在 DEBUG 级别会输出大量解码细节
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))
