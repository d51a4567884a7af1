from __future__ import annotations
import io
import os
import time

from PIL import Image


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def safe_prefix(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in name)


def save_png(data: bytes, out_dir: str, name_prefix: str) -> str:
    """
    Decode screenshot bytes from a driver and store them as a timestamped PNG.
    Raises PIL.UnidentifiedImageError if the bytes are not an image.
    """
    ensure_dir(out_dir)
    path = os.path.join(out_dir, f"{safe_prefix(name_prefix)}_{_ts()}.png")
    with Image.open(io.BytesIO(data)) as img:
        img.save(path, format="PNG")
    return path
