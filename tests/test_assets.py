"""
Tests for whitelist loading, public URLs and email image selection.
"""
from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

from jove.assets import (
    best_email_image_url,
    combination_key_from_url,
    email_safe_url,
    load_whitelist,
    public_url,
    whitelist_from_df,
)
from jove.models import ProductType
from jove.providers.storage import HttpAssetProbe, StaticAssetProbe

BASE = "https://cdn.example.com/storage/v1/object/public/customization-item"


class TestWhitelist:
    def test_bundled_whitelist(self):
        whitelist = load_whitelist()
        assert (ProductType.BRACELET, "gold-cord", "ruby", "yellowgold") in whitelist
        assert (ProductType.BRACELET, "gold-cord", "ruby", "whitegold") not in whitelist
        assert (ProductType.RING, None, "ruby", "white gold") in whitelist

    def test_from_dataframe(self):
        df = pd.DataFrame(
            [
                {"product_type": "rings", "chain": "", "stone": "ruby", "metal": "white gold"},
                {"product_type": "necklace", "chain": "black-leather", "stone": "ruby", "metal": "whitegold"},
            ]
        )
        assert whitelist_from_df(df) == frozenset(
            {
                (ProductType.RING, None, "ruby", "white gold"),
                (ProductType.NECKLACE, "black-leather", "ruby", "whitegold"),
            }
        )

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="Missing required columns: chain"):
            whitelist_from_df(pd.DataFrame([{"product_type": "ring", "stone": "ruby", "metal": "x"}]))

    def test_custom_path(self, tmp_path):
        path = tmp_path / "whitelist.csv"
        path.write_text("product_type,chain,stone,metal\nbracelet,gold-cord,emerald,whitegold\n")
        assert load_whitelist(path) == frozenset({(ProductType.BRACELET, "gold-cord", "emerald", "whitegold")})


class TestPublicUrl:
    def test_quotes_spaces(self):
        assert public_url("rings/Ring blue sapphire white gold.webp", BASE + "/") == (
            f"{BASE}/rings/Ring%20blue%20sapphire%20white%20gold.webp"
        )

    def test_relative_base(self):
        assert public_url("/bracelets/bracelet-preview.webp", "/customization-item") == (
            "/customization-item/bracelets/bracelet-preview.webp"
        )

    def test_combination_key_from_url(self):
        url = f"{BASE}/bracelets/bracelet-black-leather-ruby-yellowgold.webp"
        assert combination_key_from_url(url) == "bracelet-black-leather-ruby-yellowgold"
        assert combination_key_from_url("https://example.com/other.png") is None

    def test_combination_key_from_quoted_ring_url(self):
        url = public_url("rings/Ring ruby yellow gold.webp", BASE)
        assert combination_key_from_url(url) == "Ring ruby yellow gold"


class TestEmailImages:
    def test_webp_becomes_png(self):
        assert email_safe_url(f"{BASE}/rings/a.webp") == f"{BASE}/rings/a.png"
        assert email_safe_url(f"{BASE}/rings/a.jpg") == f"{BASE}/rings/a.jpg"
        assert email_safe_url(None) is None

    def test_prefers_png(self):
        probe = StaticAssetProbe({f"{BASE}/a.png", f"{BASE}/a.jpg", f"{BASE}/a.webp"})
        assert best_email_image_url(f"{BASE}/a.webp", probe) == f"{BASE}/a.png"

    def test_then_jpg_then_webp(self):
        assert best_email_image_url(f"{BASE}/a.webp", StaticAssetProbe({f"{BASE}/a.jpg"})) == f"{BASE}/a.jpg"
        assert best_email_image_url(f"{BASE}/a.webp", StaticAssetProbe({f"{BASE}/a.webp"})) == f"{BASE}/a.webp"

    def test_nothing_exists(self):
        assert best_email_image_url(f"{BASE}/a.webp", StaticAssetProbe(set())) is None
        assert best_email_image_url(f"{BASE}/a.png", StaticAssetProbe(set())) is None

    def test_empty_url(self):
        assert best_email_image_url("", StaticAssetProbe(set())) is None


class TestHttpAssetProbe:
    def test_head_request(self):
        session = MagicMock()
        session.head.return_value = MagicMock(ok=True)
        probe = HttpAssetProbe(timeout_seconds=2, session=session)

        assert probe.exists(f"{BASE}/a.png")
        session.head.assert_called_once_with(f"{BASE}/a.png", timeout=2, allow_redirects=True)

    def test_missing_asset(self):
        session = MagicMock()
        session.head.return_value = MagicMock(ok=False)
        assert not HttpAssetProbe(timeout_seconds=2, session=session).exists(f"{BASE}/a.png")

    def test_network_error_means_missing(self):
        session = MagicMock()
        session.head.side_effect = requests.ConnectionError("down")
        assert not HttpAssetProbe(timeout_seconds=2, session=session).exists(f"{BASE}/a.png")

    def test_timeout_from_settings(self, monkeypatch):
        monkeypatch.setenv("JOVE_ASSET_PROBE_TIMEOUT", "1.5")
        probe = HttpAssetProbe()
        assert probe.timeout_seconds == 1.5
        assert isinstance(probe.session, requests.Session)

    def test_retrying_adapter_mounted(self):
        probe = HttpAssetProbe(timeout_seconds=1)
        adapter = probe.session.get_adapter("https://cdn.example.com")
        assert adapter.max_retries.total == 2
