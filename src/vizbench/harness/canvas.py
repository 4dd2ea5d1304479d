"""Pixel and SVG inspection helpers for visualization pages."""

from __future__ import annotations

from playwright.sync_api import Page

_REGION_SCRIPT = """([id, x, y, w, h]) => {
    const canvas = document.getElementById(id);
    const ctx = canvas.getContext('2d');
    return Array.from(ctx.getImageData(x, y, w, h).data);
}"""


def _region(page: Page, canvas_id: str, x: int, y: int, w: int, h: int) -> list[int]:
    return page.evaluate(_REGION_SCRIPT, [canvas_id, x, y, w, h])


def canvas_size(page: Page, canvas_id: str) -> tuple[int, int]:
    size = page.evaluate(
        "(id) => { const c = document.getElementById(id); return [c.width, c.height]; }",
        canvas_id,
    )
    return size[0], size[1]


def has_pixels_in_region(page: Page, canvas_id: str, x: int, y: int, w: int, h: int) -> bool:
    """Check if any opaque pixels exist in a canvas rectangle."""
    return page.evaluate(
        """([id, x, y, w, h]) => {
        const data = document.getElementById(id).getContext('2d').getImageData(x, y, w, h).data;
        for (let i = 3; i < data.length; i += 4) {
            if (data[i] > 0) return true;
        }
        return false;
    }""",
        [canvas_id, x, y, w, h],
    )


def count_opaque_pixels(page: Page, canvas_id: str, x: int, y: int, w: int, h: int) -> int:
    """Count opaque pixels in a canvas rectangle."""
    return page.evaluate(
        """([id, x, y, w, h]) => {
        const data = document.getElementById(id).getContext('2d').getImageData(x, y, w, h).data;
        let count = 0;
        for (let i = 3; i < data.length; i += 4) {
            if (data[i] > 0) count++;
        }
        return count;
    }""",
        [canvas_id, x, y, w, h],
    )


def sample_pixel(page: Page, canvas_id: str, x: int, y: int) -> dict:
    """Sample a single pixel at (x, y) on a canvas. Returns {r, g, b, a}."""
    r, g, b, a = _region(page, canvas_id, x, y, 1, 1)
    return {"r": r, "g": g, "b": b, "a": a}


def canvas_is_blank(page: Page, canvas_id: str) -> bool:
    """True when no pixel of the whole canvas is opaque."""
    width, height = canvas_size(page, canvas_id)
    return not has_pixels_in_region(page, canvas_id, 0, 0, width, height)


def count_colored_pixels(
    page: Page,
    canvas_id: str,
    color: tuple[int, int, int],
    tolerance: int = 10,
    region: tuple[int, int, int, int] | None = None,
) -> int:
    """Count opaque pixels within ``tolerance`` of an RGB color on every channel."""
    x, y, w, h = region or (0, 0, *canvas_size(page, canvas_id))
    return page.evaluate(
        """([id, x, y, w, h, rgb, tol]) => {
        const data = document.getElementById(id).getContext('2d').getImageData(x, y, w, h).data;
        let count = 0;
        for (let i = 0; i < data.length; i += 4) {
            if (data[i + 3] > 0
                && Math.abs(data[i] - rgb[0]) <= tol
                && Math.abs(data[i + 1] - rgb[1]) <= tol
                && Math.abs(data[i + 2] - rgb[2]) <= tol) count++;
        }
        return count;
    }""",
        [canvas_id, x, y, w, h, list(color), tolerance],
    )


def count_svg_elements(page: Page, selector: str) -> int:
    """Count SVG elements matching a CSS selector, e.g. ``svg circle.point``."""
    return page.locator(selector).count()


def svg_attribute_values(page: Page, selector: str, name: str) -> list[str | None]:
    """Collect one attribute from every element matching ``selector``."""
    return page.eval_on_selector_all(
        selector, "(els, name) => els.map((el) => el.getAttribute(name))", name
    )
