from routedoc.synth.patterns import extract_infos, is_ignored, matches_ignore


def test_extract_infos_basic():
    info = extract_infos("/users/:id")
    assert info.pattern == "users/{id}"
    assert info.tags == ("USERS",)
    (p,) = info.parameters
    assert (p.name, p.location, p.required) == ("id", "path", True)
    assert p.schema == {"type": "string"}


def test_extract_infos_root_is_never_empty():
    info = extract_infos("/")
    assert info.pattern == "/"
    assert info.tags == ()
    assert info.parameters == ()


def test_extract_infos_optional_param():
    info = extract_infos("/users/:id/posts/:postId?")
    assert info.pattern == "users/{id}/posts/{postId}"
    assert [(p.name, p.required) for p in info.parameters] == [("id", True), ("postId", False)]


def test_extract_infos_param_segment_is_not_a_tag():
    assert extract_infos("/:slug").tags == ()


def test_extract_infos_tag_index():
    assert extract_infos("/api/users", tag_index=2).tags == ("USERS",)
    assert extract_infos("/api", tag_index=2).tags == ()


def test_extract_infos_collapses_empty_segments():
    assert extract_infos("//users//").pattern == "users"


def test_ignore_substring_prefix_suffix():
    assert matches_ignore("/admin/users", "admin")
    assert matches_ignore("/internal/metrics", "/internal*")
    assert matches_ignore("/status/health", "*health")
    assert not matches_ignore("/users", "*admin")
    assert not matches_ignore("/users/internal", "/internal*")


def test_is_ignored_skips_empty_rules():
    assert not is_ignored("/users", ["", "/admin"])
    assert is_ignored("/admin", ["/admin"])
