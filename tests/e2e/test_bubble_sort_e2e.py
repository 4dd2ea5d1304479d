"""End-to-end Playwright tests for the canvas bubble sort demo."""

import pytest
from playwright.sync_api import Page

from vizbench.harness import (
    DemoPage,
    canvas_is_blank,
    count_colored_pixels,
    count_opaque_pixels,
    has_pixels_in_region,
    sample_pixel,
)

CANVAS = "bars"
NORMAL = (70, 130, 180)
COMPARE = (231, 76, 60)
SORTED = (46, 204, 113)


class BubbleSortPage(DemoPage):
    """Page object for the bubble sort demo."""

    def step(self) -> None:
        self.click("#step-btn")

    def sort(self) -> None:
        self.click("#sort-btn")

    def reset(self) -> None:
        self.click("#reset-btn")

    def array(self) -> str:
        return self.text("#array-display")

    def status(self) -> str:
        return self.text("#status")

    def pixels(self, color) -> int:
        return count_colored_pixels(self.page, CANVAS, color)


@pytest.fixture
def sorter(page: Page, demo_url) -> BubbleSortPage:
    return BubbleSortPage(page, demo_url("bubble-sort.html")).open()


class TestBubbleSortRendering:
    """Bars drawn for the initial array."""

    @pytest.mark.e2e
    def test_initial_bars(self, sorter: BubbleSortPage):
        assert sorter.array() == "5, 3, 8, 1, 6"
        assert sorter.status() == "Comparisons: 0"
        assert not canvas_is_blank(sorter.page, CANVAS)
        assert sorter.pixels(NORMAL) > 0
        assert sorter.pixels(COMPARE) == 0
        sorter.assert_no_runtime_errors()

    @pytest.mark.e2e
    def test_bar_heights_follow_values(self, sorter: BubbleSortPage):
        # The bar for 8 reaches near the top, the bar for 1 does not.
        assert has_pixels_in_region(sorter.page, CANVAS, 180, 30, 40, 10)
        assert not has_pixels_in_region(sorter.page, CANVAS, 255, 30, 40, 10)
        tall = count_opaque_pixels(sorter.page, CANVAS, 170, 0, 60, 200)
        short = count_opaque_pixels(sorter.page, CANVAS, 245, 0, 60, 200)
        assert tall > short * 5

    @pytest.mark.e2e
    def test_bar_color(self, sorter: BubbleSortPage):
        assert sample_pixel(sorter.page, CANVAS, 50, 190) == {"r": 70, "g": 130, "b": 180, "a": 255}

    @pytest.mark.e2e
    def test_gap_between_bars_is_empty(self, sorter: BubbleSortPage):
        assert sample_pixel(sorter.page, CANVAS, 87, 195)["a"] == 0


class TestBubbleSortStepping:
    """Single steps, full sort and reset."""

    @pytest.mark.e2e
    def test_first_step_swaps_and_highlights(self, sorter: BubbleSortPage):
        sorter.step()

        assert sorter.array() == "3, 5, 8, 1, 6"
        assert sorter.status() == "Comparisons: 1"
        assert sample_pixel(sorter.page, CANVAS, 50, 190)["r"] == 231
        assert sample_pixel(sorter.page, CANVAS, 125, 190)["r"] == 231
        assert sorter.pixels(NORMAL) > 0
        sorter.assert_no_runtime_errors()

    @pytest.mark.e2e
    def test_first_pass_fixes_largest(self, sorter: BubbleSortPage):
        for _ in range(4):
            sorter.step()

        assert sorter.array() == "3, 5, 1, 6, 8"
        assert sample_pixel(sorter.page, CANVAS, 350, 190)["g"] == 204

    @pytest.mark.e2e
    def test_sort_to_completion(self, sorter: BubbleSortPage):
        sorter.sort()

        assert sorter.array() == "1, 3, 5, 6, 8"
        assert sorter.status() == "Sorted after 10 comparisons"
        assert sorter.pixels(NORMAL) == 0
        assert sorter.pixels(COMPARE) == 0
        assert sorter.pixels(SORTED) > 0
        assert sorter.is_disabled("#step-btn")
        sorter.assert_no_runtime_errors()

    @pytest.mark.e2e
    def test_reset(self, sorter: BubbleSortPage):
        sorter.sort()
        sorter.reset()

        assert sorter.array() == "5, 3, 8, 1, 6"
        assert sorter.pixels(SORTED) == 0
        assert not sorter.is_disabled("#step-btn")
        sorter.assert_no_runtime_errors()
