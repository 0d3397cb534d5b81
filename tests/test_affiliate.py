from booster.config import Config
from booster.core.affiliate import AffiliateLinker

BASE = "https://shop.example.com/go"


class TestAffiliateLinker:

    def test_first_occurrence_only(self):
        linker = AffiliateLinker(base_url=BASE, keywords=["laptop"])
        result = linker.process_content("A Laptop review. Every laptop matters.")
        assert result.count("<a href=") == 1
        assert f'<a href="{BASE}?keyword=laptop" rel="nofollow sponsored" target="_blank">Laptop</a>' in result
        assert result.endswith("Every laptop matters.")

    def test_whole_words_only(self):
        linker = AffiliateLinker(base_url=BASE, keywords=["cam"])
        assert linker.process_content("The camera is great") == "The camera is great"

    def test_keyword_is_url_quoted(self):
        linker = AffiliateLinker(base_url=BASE, keywords=["smart watch"])
        result = linker.process_content("My smart watch broke")
        assert "?keyword=smart%20watch" in result

    def test_disabled_without_base_url(self):
        linker = AffiliateLinker(base_url="", keywords=["laptop"])
        assert not linker.enabled
        assert linker.process_content("laptop") == "laptop"

    def test_keywords_from_comma_separated_config(self):
        config = Config(use_env=False, overrides={
            "affiliate": {"base_url": BASE, "keywords": "phone, tablet"}
        })
        linker = AffiliateLinker(config)
        assert linker.keywords == ["phone", "tablet"]
        result = linker.process_content("phone and tablet")
        assert result.count("<a href=") == 2
