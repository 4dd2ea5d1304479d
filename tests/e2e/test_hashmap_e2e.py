"""End-to-end Playwright tests for the separate-chaining hash map demo."""

import pytest
from playwright.sync_api import Page, expect

from vizbench.harness import DemoPage


class HashMapPage(DemoPage):
    """Page object for the hash map demo."""

    def put(self, key: str, value: str) -> None:
        self.fill("#key-input", key)
        self.fill("#value-input", value)
        self.click("#put-btn")

    def get(self, key: str) -> None:
        self.fill("#key-input", key)
        self.click("#get-btn")

    def remove(self, key: str) -> None:
        self.fill("#key-input", key)
        self.click("#remove-btn")

    def bucket_entries(self, index: int) -> list[str]:
        return self.page.locator(f'.bucket[data-index="{index}"] .entry').all_inner_texts()

    def result(self) -> str:
        return self.text("#result")


@pytest.fixture
def hashmap(page: Page, demo_url) -> HashMapPage:
    return HashMapPage(page, demo_url("hashmap.html")).open()


class TestHashMapStructure:
    """Initial bucket layout."""

    @pytest.mark.e2e
    def test_empty_buckets(self, hashmap: HashMapPage):
        assert hashmap.count(".bucket") == 7
        assert hashmap.count(".entry") == 0
        assert hashmap.text("#size") == "Size: 0"
        assert hashmap.text("#load-factor") == "Load factor: 0.00"
        hashmap.assert_no_runtime_errors()


class TestHashMapOperations:
    """Put, get and remove with collisions."""

    @pytest.mark.e2e
    def test_put_places_entry_in_hashed_bucket(self, hashmap: HashMapPage):
        hashmap.put("c", "3")

        assert hashmap.bucket_entries(1) == ["c: 3"]
        assert hashmap.result() == "Inserted c into bucket 1"
        assert hashmap.text("#size") == "Size: 1"
        hashmap.assert_no_runtime_errors()

    @pytest.mark.e2e
    def test_collisions_chain_in_one_bucket(self, hashmap: HashMapPage):
        hashmap.put("ab", "1")
        hashmap.put("ba", "2")

        assert hashmap.bucket_entries(6) == ["ab: 1", "ba: 2"]
        assert hashmap.text("#load-factor") == "Load factor: 0.29"
        hashmap.assert_no_runtime_errors()

    @pytest.mark.e2e
    def test_put_existing_key_updates(self, hashmap: HashMapPage):
        hashmap.put("ab", "1")
        hashmap.put("ab", "9")

        assert hashmap.bucket_entries(6) == ["ab: 9"]
        assert hashmap.result() == "Updated ab"
        assert hashmap.text("#size") == "Size: 1"

    @pytest.mark.e2e
    def test_get_highlights_entry(self, hashmap: HashMapPage):
        hashmap.put("ab", "1")
        hashmap.put("ba", "2")
        hashmap.get("ba")

        assert hashmap.result() == "ba = 2"
        found = hashmap.page.locator(".entry.found")
        expect(found).to_have_count(1)
        expect(found).to_have_text("ba: 2")
        assert hashmap.computed_style(".entry.found", "background-color") == "rgb(241, 196, 15)"

    @pytest.mark.e2e
    def test_get_missing(self, hashmap: HashMapPage):
        hashmap.get("zz")
        assert hashmap.result() == "Key not found"
        assert hashmap.count(".entry.found") == 0

    @pytest.mark.e2e
    def test_remove_from_chain(self, hashmap: HashMapPage):
        hashmap.put("ab", "1")
        hashmap.put("ba", "2")
        hashmap.remove("ab")

        assert hashmap.bucket_entries(6) == ["ba: 2"]
        assert hashmap.result() == "Removed ab"
        hashmap.remove("ab")
        assert hashmap.result() == "Key not found"
        hashmap.assert_no_runtime_errors()

    @pytest.mark.e2e
    @pytest.mark.parametrize("button", ["#put-btn", "#get-btn", "#remove-btn"])
    def test_key_required(self, hashmap: HashMapPage, button):
        hashmap.click(button)
        assert hashmap.last_dialog == "Key is required"
        assert hashmap.count(".entry") == 0
        hashmap.assert_no_runtime_errors()
