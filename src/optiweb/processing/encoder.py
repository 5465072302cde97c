"""按输出格式编码图片。"""

from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image

from optiweb.core.models import QualityOptions
from optiweb.processing.resize import ImageProcessingError

LOGGER = logging.getLogger(__name__)

_PALETTE_LIMIT = 256


def _has_alpha(image: Image.Image) -> bool:
    return "A" in image.getbands() or (image.mode == "P" and "transparency" in image.info)


def _convert_to_rgb(img: Image.Image) -> Image.Image:
    """将任意模式图像转换为 RGB。"""

    if img.mode in {"RGBA", "LA"} or _has_alpha(img):
        # 保留 Alpha 信息，通过白色背景混合生成 RGB。
        rgba = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background

    return img.convert("RGB")


def _prepare_for_jpeg(image: Image.Image) -> Image.Image:
    if image.mode in {"RGB", "L", "CMYK"}:
        return image
    return _convert_to_rgb(image)


def _prepare_for_webp(image: Image.Image) -> Image.Image:
    if image.mode in {"RGB", "RGBA"}:
        return image
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def _prepare_for_png(image: Image.Image) -> Image.Image:
    if image.mode == "CMYK":
        return image.convert("RGB")
    return image


def _reduce_palette(image: Image.Image) -> Image.Image:
    """颜色数不超过 256 时无损转换为调色板模式。"""

    if image.mode != "RGB":
        return image
    colors = image.getcolors(_PALETTE_LIMIT)
    if colors is None:
        return image
    try:
        reduced = image.quantize(colors=_PALETTE_LIMIT, method=Image.Quantize.MEDIANCUT, dither=Image.Dither.NONE)
    except (OSError, ValueError) as exc:
        LOGGER.debug("调色板转换失败，保持原图: %s", exc)
        return image
    if reduced.convert("RGB").tobytes() != image.tobytes():
        # 量化结果有损时保持原图
        return image
    return reduced


def encode_image(image: Image.Image, image_format: str, quality: Optional[QualityOptions]) -> bytes:
    """将图像编码为字节串。

    ``quality`` 为 None 时使用编码器默认参数（仅缩放、不做压缩调优），
    否则按格式使用对应的优化参数：

    * JPEG：质量、优化霍夫曼表、渐进式扫描
    * PNG：压缩级别 9，可无损时转换为调色板
    * WEBP：质量、method 6、lossless / near-lossless
    """

    params: dict = {}
    if image_format == "JPEG":
        prepared = _prepare_for_jpeg(image)
        if quality is not None:
            params.update(quality=quality.quality, optimize=True, progressive=True)
    elif image_format == "PNG":
        prepared = _prepare_for_png(image)
        if quality is not None:
            prepared = _reduce_palette(prepared)
            params.update(optimize=True, compress_level=9)
    elif image_format == "WEBP":
        prepared = _prepare_for_webp(image)
        if quality is not None:
            params.update(quality=quality.quality, method=6)
            if quality.lossless:
                params.update(lossless=True)
            elif quality.near_lossless:
                # Pillow 未暴露 near_lossless 参数，使用 lossless 并允许改写透明像素
                params.update(lossless=True, exact=False)
    else:
        raise ImageProcessingError(f"不支持的输出格式: {image_format}")

    buffer = io.BytesIO()
    try:
        prepared.save(buffer, format=image_format, **params)
    except (OSError, ValueError, KeyError) as exc:
        LOGGER.debug("编码失败 (%s): %s", image_format, exc)
        raise ImageProcessingError(f"编码 {image_format} 失败: {exc}") from exc
    finally:
        if prepared is not image:
            prepared.close()
    return buffer.getvalue()
