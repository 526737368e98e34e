from io import BytesIO

import numpy as np
from PIL import Image, ImageEnhance, ImageFile, ImageFilter, ImageOps

# Screenshots shared from other apps are sometimes cut short.
ImageFile.LOAD_TRUNCATED_IMAGES = True


def load_pil(image_bytes: bytes) -> Image.Image:
    im = Image.open(BytesIO(image_bytes))
    im.load()
    return im


def pil_to_np_rgb(im: Image.Image) -> np.ndarray:
    if im.mode == "RGBA" or im.mode == "LA" or (im.mode == "P" and "transparency" in im.info):
        # Composite translucent pixels onto white, the way a reader page is rendered.
        rgba = im.convert("RGBA")
        bg = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        im = Image.alpha_composite(bg, rgba)
    return np.asarray(im.convert("RGB"), dtype=np.uint8)


def upscale(rgb: np.ndarray, factor: float) -> np.ndarray:
    """Resize by `factor` with LANCZOS resampling; small glyphs recognize better enlarged."""
    if factor == 1.0:
        return rgb
    h, w = rgb.shape[:2]
    size = (max(1, int(round(w * factor))), max(1, int(round(h * factor))))
    im = Image.fromarray(rgb).resize(size, Image.LANCZOS)
    return np.asarray(im, dtype=np.uint8)


def enhance_for_ocr(rgb: np.ndarray) -> np.ndarray:
    """Grayscale + moderate contrast + unsharp mask. Returns uint8 (H,W)."""
    g = ImageOps.grayscale(Image.fromarray(rgb))
    g = ImageEnhance.Contrast(g).enhance(1.5)
    g = g.filter(ImageFilter.UnsharpMask(radius=1.0, percent=120, threshold=3))
    return np.asarray(g, dtype=np.uint8)

