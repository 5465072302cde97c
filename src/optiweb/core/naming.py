"""输出文件命名规则：slug、尺寸后缀与扩展名替换。"""

from __future__ import annotations

import re
from pathlib import Path

from optiweb.core.config import WIDTH_TOKEN, MultiSize, RunOptions
from optiweb.core.models import IMAGE_EXTENSIONS, WEBP_EXTENSION

_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9_\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")


def split_extension(filename: str) -> tuple[str, str]:
    """在最后一个 ``.`` 处拆分文件名，没有 ``.`` 时扩展名为空。"""

    index = filename.rfind(".")
    if index == -1:
        return filename, ""
    return filename[:index], filename[index:]


def slugify_stem(stem: str) -> str:
    slug = _INVALID_CHARS_RE.sub("", stem.lower())
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _HYPHENS_RE.sub("-", slug)
    return slug.strip("-")


def slugify(filename: str) -> str:
    """将文件名转换为 slug 形式，扩展名保持原样。

    >>> slugify("My Photo.PNG")
    'my-photo.PNG'
    """

    stem, ext = split_extension(filename)
    return slugify_stem(stem) + ext


def apply_suffix(base_name: str, pattern: str, size: int) -> str:
    return base_name + pattern.replace(WIDTH_TOKEN, str(size), 1)


def output_extension(original_ext: str, convert_webp: bool) -> str:
    return WEBP_EXTENSION if convert_webp else original_ext


def destination_paths(relative_path: Path, options: RunOptions) -> list[Path]:
    """计算输入文件对应的全部输出相对路径（顺序与生成顺序一致）。"""

    parent = relative_path.parent
    name = relative_path.name
    stem, ext = split_extension(name)

    if ext.lower() not in IMAGE_EXTENSIONS:
        return [parent / (slugify(name) if options.slug else name)]

    if options.slug:
        stem = slugify_stem(stem)
    out_ext = output_extension(ext, options.convert_webp)

    if isinstance(options.resize, MultiSize):
        return [
            parent / (apply_suffix(stem, options.resize.suffix_pattern, size) + out_ext)
            for size in options.resize.sizes
        ]
    return [parent / (stem + out_ext)]
