import pytest

from booster.core.errors import ConfigError
from booster.core.models import ContentType, ProviderConfig, coerce_bool


class TestProviderConfig:

    def test_short_keys(self):
        provider = ProviderConfig.from_dict({
            "api": "newsapi", "endpoint": "top-headlines", "type": "news",
            "rewrite": "no", "args": {"country": "us"},
        })
        assert provider.key == "newsapi/top-headlines"
        assert provider.content_type is ContentType.NEWS
        assert provider.rewrite_enabled is False
        assert provider.args == {"country": "us"}

    def test_long_keys_and_defaults(self):
        provider = ProviderConfig.from_dict({"api_id": "coins", "endpoint_id": "list", "content_type": "CRYPTO"})
        assert provider.content_type is ContentType.CRYPTO
        assert provider.rewrite_enabled is True
        assert provider.args == {}

    def test_unknown_type_is_other(self):
        provider = ProviderConfig.from_dict({"api": "a", "endpoint": "b", "type": "weather"})
        assert provider.content_type is ContentType.OTHER

    @pytest.mark.parametrize("entry", [
        "newsapi/top",
        {"api": "newsapi"},
        {"endpoint": "top"},
        {"api": " ", "endpoint": "top"},
        {"api": "a", "endpoint": "b", "args": ["x"]},
    ])
    def test_invalid_entries(self, entry):
        with pytest.raises(ConfigError):
            ProviderConfig.from_dict(entry)


class TestCoerceBool:

    @pytest.mark.parametrize("value,expected", [
        (True, True), (False, False), ("yes", True), ("Off", False),
        ("0", False), (1, True), (0, False), ("maybe", True), (None, True),
    ])
    def test_values(self, value, expected):
        assert coerce_bool(value) is expected
