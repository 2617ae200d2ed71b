# User value: This file converts images between web formats locally, keeping animations where the target allows it.
import logging
from io import BytesIO

from PIL import Image, ImageSequence, UnidentifiedImageError

from schemas.conversion_contract import IMAGE_FORMATS, PILLOW_FORMAT_NAMES, normalize_format
from services.conversion_orchestrator import ConversionResult
from utils.filenames import output_filename

logger = logging.getLogger("api.image")

DEFAULT_FRAME_DURATION_MS = 100


class ImageConversionError(Exception):
    pass


def _prepare_frame(frame: Image.Image, target: str) -> Image.Image:
    if target == "jpeg":
        return frame if frame.mode == "RGB" else frame.convert("RGB")
    if target in ("webp", "avif") and frame.mode not in ("RGB", "RGBA"):
        return frame.convert("RGBA")
    if target == "png" and frame.mode not in ("1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"):
        return frame.convert("RGBA")
    return frame


def _frame_count(img: Image.Image) -> int:
    return int(getattr(img, "n_frames", 1) or 1)


def _save_animated(img: Image.Image, target: str, out: BytesIO) -> int:
    frames = [_prepare_frame(frame.copy(), target) for frame in ImageSequence.Iterator(img)]
    durations = []
    for index in range(len(frames)):
        img.seek(index)
        durations.append(int(img.info.get("duration") or DEFAULT_FRAME_DURATION_MS))
    img.seek(0)

    frames[0].save(
        out,
        format=PILLOW_FORMAT_NAMES[target],
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=int(img.info.get("loop", 0) or 0),
    )
    return len(frames)


def convert_image_bytes(payload: bytes, target_format: str) -> tuple[bytes, int]:
    """Convert raw image bytes and return ``(encoded_bytes, frames_written)``."""
    target = normalize_format(target_format)
    if target == "jpg":
        target = "jpeg"
    descriptor = IMAGE_FORMATS.get(target)
    if descriptor is None:
        raise ImageConversionError(f"Unsupported image format: {target_format}")

    try:
        img = Image.open(BytesIO(payload))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageConversionError(
            f"Could not read image. The file might not be a supported image or is corrupted: {exc}"
        ) from exc

    out = BytesIO()
    with img:
        frames = _frame_count(img)
        try:
            if frames > 1 and descriptor.animated:
                logger.info("image_convert_animated source=%s target=%s frames=%s", img.format, target, frames)
                written = _save_animated(img, target, out)
            else:
                if frames > 1:
                    logger.info("image_convert_first_frame source=%s target=%s frames=%s", img.format, target, frames)
                img.seek(0)
                frame = _prepare_frame(img.copy(), target)
                frame.save(out, format=PILLOW_FORMAT_NAMES[target])
                written = 1
        except (OSError, ValueError, KeyError) as exc:
            raise ImageConversionError(f"Could not encode image as {target}: {exc}") from exc

    return out.getvalue(), written


def convert_image(payload: bytes, filename: str, target_format: str) -> ConversionResult:
    target = normalize_format(target_format)
    if target == "jpg":
        target = "jpeg"
    content, frames = convert_image_bytes(payload, target)
    if not content:
        raise ImageConversionError("Image encoder produced no output")
    logger.info(
        "image_convert_completed filename=%s target=%s frames=%s output_size_bytes=%s",
        filename,
        target,
        frames,
        len(content),
    )
    return ConversionResult(content=content, file_name=output_filename(filename, target, default_stem="image"))
