"""Tests for resource URI templates."""

import pytest

from capserve.core.mcp.uri_template import UriTemplate, has_placeholders


class TestParsing:
    """Test template compilation."""

    @pytest.mark.unit
    def test_scheme_and_segments(self):
        """Test the scheme is split off and segments are compiled."""
        template = UriTemplate("user://{user_id}/profile")

        assert template.scheme == "user"
        assert [s.text for s in template.segments] == ["{user_id}", "profile"]
        assert template.placeholders == ("user_id",)
        assert template.is_template

    @pytest.mark.unit
    def test_literal_count_includes_scheme(self):
        """Test literal segments are counted with the scheme as one."""
        assert UriTemplate("user://{user_id}/profile").literal_count == 2
        assert UriTemplate("user://admin/profile").literal_count == 3
        assert UriTemplate("user://{a}/{b}").literal_count == 1

    @pytest.mark.unit
    def test_static_uri_is_not_a_template(self):
        """Test a URI without placeholders."""
        template = UriTemplate("config://app")

        assert not template.is_template
        assert template.placeholders == ()
        assert not has_placeholders("config://app")

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "uri",
        ["user://{user_id/profile", "user://user_id}/profile", "user://{}/x"],
    )
    def test_malformed_braces_rejected(self, uri):
        """Test unbalanced or empty braces are rejected."""
        with pytest.raises(ValueError, match="Malformed placeholder"):
            UriTemplate(uri)

    @pytest.mark.unit
    def test_placeholder_in_scheme_rejected(self):
        """Test the scheme must be literal."""
        with pytest.raises(ValueError, match="scheme"):
            UriTemplate("{kind}://thing")

    @pytest.mark.unit
    def test_duplicate_placeholders_rejected(self):
        """Test a placeholder name may appear only once."""
        with pytest.raises(ValueError, match="Duplicate placeholders"):
            UriTemplate("repo://{name}/{name}")


class TestMatching:
    """Test matching concrete URIs."""

    @pytest.mark.unit
    def test_captures_placeholder(self):
        """Test a matching URI yields the captured values."""
        template = UriTemplate("user://{user_id}/profile")

        assert template.match("user://ada/profile") == {"user_id": "ada"}

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "uri",
        [
            "user://ada/settings",
            "user://ada/profile/extra",
            "user:///profile",
            "admin://ada/profile",
            "user://ada",
        ],
    )
    def test_non_matching_uris(self, uri):
        """Test literal mismatches, wrong depth and empty captures."""
        assert UriTemplate("user://{user_id}/profile").match(uri) is None

    @pytest.mark.unit
    def test_placeholder_does_not_cross_segments(self):
        """Test a placeholder captures exactly one path segment."""
        template = UriTemplate("files://{path}")

        assert template.match("files://a/b") is None
        assert template.match("files://a") == {"path": "a"}

    @pytest.mark.unit
    def test_mixed_segment(self):
        """Test several placeholders inside one segment."""
        template = UriTemplate("logs://{day}-{level}.log")

        assert template.match("logs://monday-error.log") == {
            "day": "monday",
            "level": "error",
        }
        assert template.match("logs://monday.log") is None

    @pytest.mark.unit
    def test_static_uri_matches_itself_only(self):
        """Test a literal pattern matches only the identical URI."""
        template = UriTemplate("config://app")

        assert template.match("config://app") == {}
        assert template.match("config://other") is None


class TestExpand:
    """Test substituting values into templates."""

    @pytest.mark.unit
    def test_expand(self):
        """Test values are substituted by name."""
        template = UriTemplate("user://{user_id}/profile")

        assert template.expand({"user_id": "grace"}) == "user://grace/profile"

    @pytest.mark.unit
    def test_expand_missing_value(self):
        """Test a missing value is reported."""
        with pytest.raises(ValueError, match="user_id"):
            UriTemplate("user://{user_id}/profile").expand({})
