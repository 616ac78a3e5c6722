"""Tests for app.services.normalizer (parse_descriptor, normalize, is_valid_url)."""

import httpx
import pytest

from app.models.link import Anchor, CustomURL, InternalReference, LinkDescriptor
from app.services.errors import (
    EmptyLabel,
    InvalidAnchor,
    InvalidURL,
    MalformedDescriptor,
    UnresolvableReference,
)
from app.services.normalizer import is_valid_url, normalize, parse_descriptor

_ROUTES = {("pages", "42"): "/blog/post-42", ("posts", "7"): "/posts/hello"}


def _resolver(collection: str, document_id: str):
    return _ROUTES.get((collection, document_id))


def _no_calls(collection: str, document_id: str):
    raise AssertionError("resolver must not be called")


def _reference(doc_id="42", collection="pages", **extra) -> dict:
    return {
        "type": "reference",
        "label": "Post",
        "reference": {"relationTo": collection, "value": doc_id},
        **extra,
    }


class TestParseDescriptor:
    def test_custom_url(self):
        descriptor = parse_descriptor({"type": "custom", "label": "About", "url": "/about"})
        assert descriptor.target == CustomURL(url="/about")
        assert descriptor.appearance == "link"

    def test_reference_with_bare_id(self):
        descriptor = parse_descriptor(_reference())
        assert isinstance(descriptor.target, InternalReference)
        assert descriptor.target.collection_slug == "pages"
        assert descriptor.target.document_id == "42"
        assert descriptor.target.slug is None

    def test_reference_with_populated_document(self):
        raw = _reference(doc_id={"id": 42, "slug": "about", "title": "About"})
        target = parse_descriptor(raw).target
        assert target.document_id == "42"
        assert target.slug == "about"

    def test_anchor_key_on_reference_is_its_anchor(self):
        target = parse_descriptor(_reference(anchor="team")).target
        assert isinstance(target, InternalReference)
        assert target.anchor == "team"

    def test_anchor_variant(self):
        descriptor = parse_descriptor({"label": "Team", "anchor": "team"})
        assert descriptor.target == Anchor(fragment_id="team")

    def test_blank_leftover_field_is_ignored(self):
        descriptor = parse_descriptor({**_reference(), "url": ""})
        assert isinstance(descriptor.target, InternalReference)

    def test_no_variant_is_malformed(self):
        with pytest.raises(MalformedDescriptor):
            parse_descriptor({"label": "Nothing"})

    def test_two_variants_is_malformed(self):
        with pytest.raises(MalformedDescriptor):
            parse_descriptor({"label": "Both", "url": "/a", "anchor": "b"})

    def test_type_mismatch_is_malformed(self):
        with pytest.raises(MalformedDescriptor):
            parse_descriptor({"type": "reference", "label": "X", "url": "/x"})

    @pytest.mark.parametrize("hint", ["default", "outline", "banner"])
    def test_unknown_appearance_falls_back_to_link(self, hint):
        descriptor = parse_descriptor({"label": "X", "url": "/x", "appearance": hint})
        assert descriptor.appearance == "link"
        assert descriptor.target == CustomURL(url="/x")

    def test_reference_without_id_is_malformed(self):
        with pytest.raises(MalformedDescriptor):
            parse_descriptor({"label": "X", "reference": {"relationTo": "pages"}})

    def test_non_mapping_is_malformed(self):
        with pytest.raises(MalformedDescriptor):
            parse_descriptor(["not", "a", "link"])

    def test_parsed_descriptor_passes_through(self):
        descriptor = LinkDescriptor(label="A", target=Anchor(fragment_id="a"))
        assert parse_descriptor(descriptor) is descriptor


class TestNormalizeInternalReference:
    def test_resolves_to_path(self):
        link = normalize(_reference(), _resolver)
        assert link.href == "/blog/post-42"
        assert link.label == "Post"
        assert link.opens_in_new_tab is False
        assert link.rel == frozenset()

    def test_appends_anchor(self):
        link = normalize(_reference(anchor="comments"), _resolver)
        assert link.href == "/blog/post-42#comments"

    def test_leading_hash_on_anchor_not_doubled(self):
        link = normalize(_reference(anchor="#comments"), _resolver)
        assert link.href == "/blog/post-42#comments"

    def test_not_found_is_unresolvable(self):
        with pytest.raises(UnresolvableReference):
            normalize(_reference(doc_id="999"), _resolver)

    def test_lookup_error_is_unresolvable(self):
        def failing(collection, document_id):
            raise KeyError(document_id)

        with pytest.raises(UnresolvableReference):
            normalize(_reference(), failing)

    def test_empty_path_is_unresolvable(self):
        with pytest.raises(UnresolvableReference):
            normalize(_reference(), lambda c, d: "")

    @pytest.mark.parametrize(
        "error", [RuntimeError("backend down"), ConnectionError("refused"), httpx.ConnectError("refused")]
    )
    def test_resolver_failure_is_unresolvable(self, error):
        def failing(collection, document_id):
            raise error

        with pytest.raises(UnresolvableReference):
            normalize(_reference(), failing)

    def test_non_string_path_is_unresolvable(self):
        with pytest.raises(UnresolvableReference):
            normalize(_reference(), lambda c, d: 42)

    @pytest.mark.parametrize("anchor", ["", "   "])
    def test_blank_anchor_is_ignored(self, anchor):
        link = normalize(_reference(anchor=anchor), _resolver)
        assert link.href == "/blog/post-42"


class TestNormalizeCustomURL:
    @pytest.mark.parametrize(
        "url",
        ["/about", "https://example.com/docs?page=2#intro", "mailto:hi@example.com", "contact"],
    )
    def test_href_is_url_verbatim(self, url):
        link = normalize({"label": "L", "url": url}, _no_calls)
        assert link.href == url

    def test_empty_url_is_invalid(self):
        with pytest.raises(InvalidURL):
            normalize({"type": "custom", "url": ""}, _no_calls)

    def test_whitespace_in_url_is_invalid(self):
        with pytest.raises(InvalidURL):
            normalize({"label": "L", "url": "/about us"}, _no_calls)

    def test_new_tab_adds_rel(self):
        link = normalize({"label": "Docs", "url": "https://docs.example.com", "newTab": True}, _no_calls)
        assert link.opens_in_new_tab is True
        assert {"noopener", "noreferrer"} <= link.rel

    def test_null_new_tab_is_false(self):
        link = normalize({"label": "Docs", "url": "/docs", "newTab": None}, _no_calls)
        assert link.opens_in_new_tab is False

    def test_keeps_appearance_hint(self):
        link = normalize({"label": "Buy", "url": "/buy", "appearance": "button"}, _no_calls)
        assert link.appearance == "button"


class TestNormalizeAnchorAndLabel:
    def test_anchor_href(self):
        link = normalize({"label": "Team", "anchor": "team"}, _no_calls)
        assert link.href == "#team"

    def test_empty_anchor_is_invalid(self):
        with pytest.raises(InvalidAnchor):
            normalize({"label": "Team", "anchor": ""}, _no_calls)

    def test_label_is_trimmed(self):
        link = normalize({"label": "  About  ", "url": "/about"}, _no_calls)
        assert link.label == "About"

    def test_blank_label_is_empty(self):
        with pytest.raises(EmptyLabel):
            normalize({"label": "   ", "url": "/about"}, _no_calls)

    def test_missing_label_is_empty(self):
        with pytest.raises(EmptyLabel):
            normalize({"url": "/about"}, _no_calls)

    def test_is_deterministic(self):
        raw = _reference(anchor="x")
        assert normalize(raw, _resolver) == normalize(raw, _resolver)


class TestIsValidUrl:
    @pytest.mark.parametrize(
        "url",
        ["/", "/a/b?c=d", "https://example.com", "http://example.com:8080/x", "tel:+123", "#top", "../up"],
    )
    def test_valid(self, url):
        assert is_valid_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            "",
            " ",
            "javascript:alert(1)",
            "JavaScript:alert(1)",
            "data:text/html,hi",
            "https://",
            "http://example.com:99999/",
            "http://example.com:port/",
            "/a<b>",
            "/line\nbreak",
        ],
    )
    def test_invalid(self, url):
        assert not is_valid_url(url)
