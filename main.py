from __future__ import annotations

import argparse
import hashlib
import io
import logging
import mimetypes
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Tuple
from urllib.parse import urlparse, unquote

import numpy as np
import requests
from PIL import Image

# Import registry & generators (registration happens at import time)
from registry import REGISTRY
from brushstroke import VanGoghGenerator

# Optional live preview when no --output is given
try:
    import cv2
except Exception:
    cv2 = None

# =============== Logging ===============
log = logging.getLogger("vangogh")


def setup_logging(verbosity: int = 0) -> None:
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )


# =============== Core: Fetcher & Loader ===============
class FileFetcher:
    """Fetch bytes from http(s) / file:// / local path with a tiny, safe cache."""

    def __init__(self, cache_dir: Optional[Path] = None, timeout: float = 20.0) -> None:
        self.timeout = timeout
        self.cache_dir = cache_dir or Path(tempfile.gettempdir()) / "vangogh_cache"
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": "vangogh-lic/1.0 (+https://local)"})

    def fetch(self, src: str) -> Tuple[bytes, Optional[str]]:
        parsed = urlparse(src)
        scheme = (parsed.scheme or "").lower()
        if scheme in ("http", "https"):
            return self._fetch_http_cached(src)
        if scheme == "file":
            local_path = unquote(parsed.path)
            if os.name == "nt" and local_path.startswith("/"):
                local_path = local_path[1:]
            return self._fetch_local(local_path)
        if scheme == "" or (os.name == "nt" and len(scheme) == 1):
            return self._fetch_local(src)
        raise ValueError(f"Unsupported URL scheme: {scheme}")

    def _cache_key(self, url: str) -> Path:
        h = hashlib.sha256(url.encode("utf-8")).hexdigest()[:32]
        return self.cache_dir / f"{h}.bin"

    def _fetch_http_cached(self, url: str) -> Tuple[bytes, Optional[str]]:
        key = self._cache_key(url)
        if key.exists():
            log.info("Cache hit: %s", key.name)
            return key.read_bytes(), mimetypes.guess_type(url)[0]
        log.info("Fetching: %s", url)
        r = self._session.get(url, timeout=self.timeout)
        r.raise_for_status()
        raw = r.content
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            key.write_bytes(raw)
        except OSError as e:
            log.warning("Could not cache %s: %s", url, e)
        return raw, r.headers.get("Content-Type")

    def _fetch_local(self, path_str: str) -> Tuple[bytes, Optional[str]]:
        p = Path(path_str)
        if not p.exists() or not p.is_file():
            raise FileNotFoundError(f"Input file not found: {p}")
        raw = p.read_bytes()
        return raw, mimetypes.guess_type(p.name)[0]


class ImageLoader:
    """Decode bytes → RGBA Pillow image. Optional max-size for speed/RAM."""

    def load(self, raw: bytes, content_type: Optional[str] = None, *, max_size: Optional[int] = None) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(raw))
            img.load()
        except Exception as e:
            raise ValueError(f"Failed to decode image ({content_type or 'unknown type'}): {e}") from e

        img = img.convert("RGBA")
        if max_size:
            img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
        return img


def _infer_format_from_path(p: Path) -> str:
    ext = p.suffix.lower()
    if ext in (".jpg", ".jpeg"):
        return "JPEG"
    if ext == ".png":
        return "PNG"
    if ext == ".webp":
        return "WEBP"
    return "PNG"


def save_image(img: Image.Image, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fmt = _infer_format_from_path(path)
    if fmt == "JPEG":
        img = img.convert("RGB")
    img.save(path, format=fmt, optimize=True)


def show_preview(img: Image.Image, title: str = "LIC") -> int:
    if cv2 is None:
        log.error("No --output given and OpenCV is unavailable for preview. Install with 'pip install opencv-python'")
        return 1
    bgra = cv2.cvtColor(np.asarray(img.convert("RGBA")), cv2.COLOR_RGBA2BGRA)
    cv2.namedWindow(title)
    cv2.imshow(title, bgra)
    cv2.waitKey(0)
    cv2.destroyAllWindows()
    return 0


# =============== CLI ===============
class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1, like every other failure."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _add_generator_params(p: argparse.ArgumentParser) -> None:
    for param in VanGoghGenerator.get_params():
        flag = "--" + param["name"].replace("_", "-")
        kw: Dict[str, Any] = {"default": None, "help": f"{param['help']} (default: {param['default']})"}
        if "choices" in param:
            kw["choices"] = param["choices"]
            kw["type"] = str.lower if param["type"] is str else str.upper
            kw["metavar"] = "{" + "|".join(param["choices"]) + "}"
        else:
            kw["type"] = param["type"]
        p.add_argument(flag, **kw)


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(prog="vangogh-lic", description="Line Integral Convolution brush-stroke effect")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv).")
    p.add_argument("--input", required=True, help="Image to paint: local path, file:// URL or HTTP(S) URL.")
    p.add_argument("--effect", required=True, help="Style image whose channel defines the stroke flow.")
    p.add_argument("--output", type=Path, default=None, help="Output image file (png/jpg/webp). Omit to preview.")
    p.add_argument("--seed", type=int, default=None, help="RNG seed for noise vectors and dither (optional).")
    p.add_argument("--workers", type=int, default=None, help="Worker threads (default: up to 8).")
    p.add_argument("--max-size", type=int, default=None, help="Downscale input longest side before processing.")
    _add_generator_params(p)
    return p


# =============== Commands ===============
def run(args: argparse.Namespace) -> int:
    try:
        fetcher = FileFetcher()
        loader = ImageLoader()

        src_img = loader.load(*fetcher.fetch(args.input), max_size=args.max_size)
        effect_img = loader.load(*fetcher.fetch(args.effect))
        log.info("Input %dx%d, effect %dx%d", *src_img.size, *effect_img.size)

        gen = REGISTRY.create("van_gogh", seed=args.seed, workers=args.workers)
        extras = {param["name"]: getattr(args, param["name"]) for param in VanGoghGenerator.get_params()}
        out_img = gen.generate(src_img, effect_image=effect_img, **extras)

        if args.output is None:
            return show_preview(out_img)
        save_image(out_img, args.output)
        log.info("Saved %s (%dx%d)", args.output, *out_img.size)
        return 0

    except (FileNotFoundError, ValueError, requests.RequestException) as e:
        log.error("%s", e)
        return 1
    except MemoryError:
        log.error("MemoryError: try --max-size or fewer --integration-steps.")
        return 1
    except Exception as e:
        log.exception("Failed: %s", e)
        return 1


# =============== Entry ===============
def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return run(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
