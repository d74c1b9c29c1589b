"""Unit tests for api/models.py."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from fuzzysearch.api.models import (
    ClientConfig,
    E621File,
    File,
    FileHashLookup,
    FurAffinityFile,
    HashLookup,
    ImageLookup,
    Matches,
    MatchType,
    Rating,
    parse_hash,
)
from tests.factories import make_file, make_file_payload


class TestParseHash:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, 0),
            (-1, -1),
            (43981, 43981),
            ("0xABCD", 43981),
            ("abcd", 43981),
            ("ffffffffffffffff", -1),
            ((1 << 64) - 1, -1),
            (1 << 63, -(1 << 63)),
            ((1 << 63) - 1, (1 << 63) - 1),
        ],
    )
    def test_normalizes_to_signed(self, value, expected):
        assert parse_hash(value) == expected

    @pytest.mark.parametrize("value", [1 << 64, -(1 << 63) - 1, "0x", "xyz", "1" * 17, True])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_hash(value)


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig(api_key="key")
        assert config.base_url == "https://api.fuzzysearch.net"
        assert config.timeout is None

    def test_is_frozen(self):
        config = ClientConfig(api_key="key")
        with pytest.raises(ValidationError):
            config.base_url = "https://elsewhere"

    def test_api_key_hidden_in_repr(self):
        assert "secret-key" not in repr(ClientConfig(api_key="secret-key"))

    def test_empty_api_key_rejected(self):
        with pytest.raises(ValidationError):
            ClientConfig(api_key="  ")

    def test_trailing_slash_stripped(self):
        assert ClientConfig(api_key="k", base_url="https://api.test/").base_url == "https://api.test"

    def test_http_base_url_allowed(self):
        assert ClientConfig(api_key="k", base_url="http://localhost:8080").base_url == "http://localhost:8080"

    @pytest.mark.parametrize(
        "base_url", ["", "not a url", "api.fuzzysearch.net", "ftp://api.test", "https://"]
    )
    def test_malformed_base_url_rejected(self, base_url):
        with pytest.raises(ValidationError):
            ClientConfig(api_key="k", base_url=base_url)


class TestFile:
    def test_furaffinity_site_info(self):
        f = make_file(site_id=42, site_info={"file_id": 1599}, rating="mature")
        assert f.site_info == FurAffinityFile(file_id=1599)
        assert f.rating == Rating.MATURE
        assert f.site_name == "FurAffinity"
        assert f.source_url == "https://www.furaffinity.net/view/42/"

    def test_e621_site_info(self):
        f = make_file(site_id=7, site="e621", site_info={"sources": ["https://a.test/1"]})
        assert f.site_info == E621File(sources=["https://a.test/1"])
        assert f.source_url == "https://e621.net/posts/7"

    def test_twitter_url_uses_first_artist(self):
        f = make_file(site_id=99, site="Twitter", site_info=None, artists=["someone", "other"])
        assert f.source_url == "https://twitter.com/someone/status/99"

    def test_twitter_without_artist_has_no_url(self):
        f = make_file(site_id=99, site="Twitter", site_info=None, artists=None)
        assert f.source_url is None

    def test_weasyl(self):
        f = make_file(site_id=5, site="Weasyl", site_info=None)
        assert f.site_name == "Weasyl"
        assert f.source_url == "https://www.weasyl.com/view/5/"

    def test_unknown_site_kept(self):
        f = make_file(site="NewSite", site_info={"whatever": 1})
        assert f.site == "NewSite"
        assert f.site_name == "NewSite"
        assert f.site_info == {"whatever": 1}
        assert f.source_url is None

    @pytest.mark.parametrize(
        "site_info",
        [{"file_id": 3, "extra": "x"}, {"sources": ["https://a.test/1"]}, {}],
    )
    def test_unknown_site_info_not_coerced(self, site_info):
        f = make_file(site="NewSite", site_info=site_info)
        assert isinstance(f.site_info, dict)
        assert f.site_info == site_info
        assert f.model_dump()["site_info"] == site_info

    def test_site_info_follows_site_tag(self):
        # e621 details that happen to carry a file_id are still e621 details
        f = make_file(site="e621", site_info={"file_id": 3, "sources": None})
        assert f.site_info == E621File(sources=None)

    def test_missing_site_keeps_raw_site_info(self):
        payload = make_file_payload(site_info={"file_id": 3})
        del payload["site"]
        assert File.model_validate(payload).site_info == {"file_id": 3}

    def test_optional_fields_default_none(self):
        f = File.model_validate({"site_id": 1, "url": "https://x.test/a.png", "filename": "a.png"})
        assert f.artists is None
        assert f.hash is None
        assert f.distance is None
        assert f.site_name is None

    def test_posted_at_parsed(self):
        f = make_file(posted_at="2020-01-02T03:04:05Z")
        assert f.posted_at == datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_unknown_fields_preserved(self):
        f = make_file(deleted=False)
        assert f.model_dump()["deleted"] is False

    @pytest.mark.parametrize("missing", ["site_id", "url", "filename"])
    def test_missing_required_field(self, missing):
        payload = make_file_payload()
        del payload[missing]
        with pytest.raises(ValidationError):
            File.model_validate(payload)

    def test_bad_furaffinity_site_info(self):
        with pytest.raises(ValidationError):
            File.model_validate(make_file_payload(site_info={"file_id": "not-a-number"}))

    def test_invalid_rating(self):
        with pytest.raises(ValidationError):
            File.model_validate(make_file_payload(rating="spicy"))

    def test_is_frozen(self):
        f = make_file()
        with pytest.raises(ValidationError):
            f.distance = 3


class TestMatches:
    def test_decodes_matches(self):
        m = Matches.model_validate({"hash": 123, "matches": [make_file_payload(site_id=1)]})
        assert m.hash == 123
        assert [f.site_id for f in m.matches] == [1]

    def test_hash_required(self):
        with pytest.raises(ValidationError):
            Matches.model_validate({"matches": []})


class TestLookupRequests:
    def test_hash_lookup_normalizes(self):
        req = HashLookup(hashes=["0x10", 5, (1 << 64) - 1], distance=3)
        assert req.hashes == [16, 5, -1]

    def test_hash_lookup_single_value(self):
        assert HashLookup(hashes=7).hashes == [7]

    @pytest.mark.parametrize("hashes", [None, 1.5, {"a": 1}])
    def test_hash_lookup_rejects_non_sequence(self, hashes):
        with pytest.raises(ValidationError):
            HashLookup(hashes=hashes)

    def test_negative_distance_rejected(self):
        with pytest.raises(ValidationError):
            HashLookup(hashes=[1], distance=-1)

    def test_bad_hash_rejected(self):
        with pytest.raises(ValidationError):
            HashLookup(hashes=["nothex"])

    def test_image_lookup_defaults(self):
        req = ImageLookup(data=b"\x89PNG")
        assert req.match_type == MatchType.CLOSE
        assert req.filename == "image"

    def test_image_lookup_requires_data(self):
        with pytest.raises(ValidationError):
            ImageLookup(data=b"")

    def test_file_hash_lookup_lowercases(self):
        digest = "AB" * 32
        assert FileHashLookup(sha256=digest).sha256 == "ab" * 32

    @pytest.mark.parametrize("digest", ["", "abc", "zz" * 32, "ab" * 33])
    def test_file_hash_lookup_rejects_invalid(self, digest):
        with pytest.raises(ValidationError):
            FileHashLookup(sha256=digest)
