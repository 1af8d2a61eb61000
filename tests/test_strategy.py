"""Tests for the default route matching strategy."""

from aerossr.routing.strategy import DefaultRouteStrategy


class TestMatches:
    def test_literal_path(self) -> None:
        assert DefaultRouteStrategy().matches("/about", "/about")

    def test_parameter_segment(self) -> None:
        assert DefaultRouteStrategy().matches("/users/42", "/users/:id")

    def test_literal_segment_mismatch(self) -> None:
        assert not DefaultRouteStrategy().matches("/users/42", "/posts/:id")

    def test_segment_count_must_be_equal(self) -> None:
        strategy = DefaultRouteStrategy()
        assert not strategy.matches("/users/42/posts", "/users/:id")
        assert not strategy.matches("/users", "/users/:id")

    def test_empty_segments_are_ignored(self) -> None:
        strategy = DefaultRouteStrategy()
        assert strategy.matches("/users/", "/users")
        assert strategy.matches("//users//42", "/users/:id")

    def test_root(self) -> None:
        assert DefaultRouteStrategy().matches("/", "/")

    def test_optional_marker_still_requires_segment(self) -> None:
        strategy = DefaultRouteStrategy()
        assert strategy.matches("/files/a.txt", "/files/:name?")
        assert not strategy.matches("/files", "/files/:name?")


class TestExtractParams:
    def test_single_parameter(self) -> None:
        assert DefaultRouteStrategy().extract_params("/users/42", "/users/:id") == {"id": "42"}

    def test_several_parameters(self) -> None:
        params = DefaultRouteStrategy().extract_params(
            "/users/7/posts/9", "/users/:uid/posts/:pid"
        )
        assert params == {"uid": "7", "pid": "9"}

    def test_optional_marker_removed_from_name(self) -> None:
        params = DefaultRouteStrategy().extract_params("/files/a.txt", "/files/:name?")
        assert params == {"name": "a.txt"}

    def test_only_trailing_marker_removed(self) -> None:
        params = DefaultRouteStrategy().extract_params("/files/a.txt", "/files/:name?v??")
        assert params == {"name?v?": "a.txt"}

    def test_no_parameters(self) -> None:
        assert DefaultRouteStrategy().extract_params("/about", "/about") == {}


class TestExtractQuery:
    def test_pairs(self) -> None:
        query = DefaultRouteStrategy().extract_query("/search?q=js&page=2")
        assert query == {"q": "js", "page": "2"}

    def test_last_value_wins(self) -> None:
        assert DefaultRouteStrategy().extract_query("/x?a=1&a=2") == {"a": "2"}

    def test_no_query(self) -> None:
        assert DefaultRouteStrategy().extract_query("/x") == {}

    def test_fragment_is_dropped(self) -> None:
        assert DefaultRouteStrategy().extract_query("/x?a=1#top") == {"a": "1"}

    def test_values_are_decoded(self) -> None:
        query = DefaultRouteStrategy().extract_query("/x?name=hello%20world&b=c+d")
        assert query == {"name": "hello world", "b": "c d"}
