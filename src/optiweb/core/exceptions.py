"""项目内使用的自定义异常定义。"""


class OptiwebError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(OptiwebError):
    """配置不合法时抛出，任务在处理任何文件之前终止。"""


class ScanError(OptiwebError):
    """扫描输入目录失败时抛出。"""


class PerFileError(OptiwebError):
    """单个文件处理失败，仅影响当前文件。"""


class StatisticsNotReadyError(RuntimeError):
    """在全部文件处理完成前读取统计结果（调用方违反约定）。"""


class OutputRootError(OptiwebError):
    """无法创建或使用输出目录时抛出，任务在处理任何文件之前终止。"""
