"""Tests for remote mutation parsing and application."""

import pytest

from overlaykit.dom import SoupDocument
from overlaykit.remote import apply_mutation
from overlaykit.schema.mutation import HtmlPatch, RemoteMutation

SLOT_HTML = """
<html><body>
  <div id="slot"><span class="old">old</span></div>
  <ul id="list"><li>one</li></ul>
</body></html>
"""


@pytest.fixture
def slot_document():
    return SoupDocument(SLOT_HTML)


class TestRemoteMutationSchema:
    def test_documented_keys(self):
        mutation = RemoteMutation.model_validate(
            {
                "replace": [{"selector": ".a", "html": "<b></b>"}],
                "append": [{"selector": ".b", "html": "<i></i>"}],
                "setContent": [{"selector": ".c", "html": "text"}],
                "injectScript": "<script>init()</script>",
                "redirectUrl": "https://example.com/next",
            }
        )

        assert mutation.replace == [HtmlPatch(selector=".a", html="<b></b>")]
        assert mutation.append == [HtmlPatch(selector=".b", html="<i></i>")]
        assert mutation.set_content == [HtmlPatch(selector=".c", html="text")]
        assert mutation.inject_script == "<script>init()</script>"
        assert mutation.reload is False
        assert mutation.redirect_url == "https://example.com/next"

    def test_legacy_keys(self):
        """Test the payload shape of the jQuery plugin is still understood."""
        mutation = RemoteMutation.model_validate(
            {
                "replaces": [{"what": ".a", "data": "<b></b>"}],
                "content": [{"what": ".c", "data": "text"}],
                "js": "<script></script>",
                "refresh": True,
                "redirect": "/login",
            }
        )

        assert mutation.replace == [HtmlPatch(selector=".a", html="<b></b>")]
        assert mutation.set_content == [HtmlPatch(selector=".c", html="text")]
        assert mutation.inject_script == "<script></script>"
        assert mutation.reload is True
        assert mutation.redirect_url == "/login"

    def test_all_fields_optional(self):
        mutation = RemoteMutation.model_validate({"replace": None, "reload": None})

        assert mutation == RemoteMutation()

    def test_serializes_documented_keys(self):
        data = RemoteMutation(set_content=[HtmlPatch(selector=".c", html="x")]).model_dump(
            by_alias=True, exclude_defaults=True
        )

        assert data == {"setContent": [{"selector": ".c", "html": "x"}]}


class TestApplyMutation:
    """Test mutation steps and their order."""

    def test_steps_apply_in_order(self, slot_document):
        """Test append targets a node created by replace and set_content one created by append."""
        mutation = RemoteMutation(
            replace=[HtmlPatch(selector=".old", html='<p class="fresh"></p>')],
            append=[HtmlPatch(selector=".fresh", html='<b class="added">appended</b>')],
            set_content=[HtmlPatch(selector=".added", html="final")],
        )

        terminal = apply_mutation(slot_document, mutation)

        assert terminal is False
        slot = slot_document.find_by_selector(None, "#slot")[0]
        assert slot.select_one(".old") is None
        assert slot.select_one(".fresh .added").get_text() == "final"

    def test_overlapping_append_and_set_content(self, slot_document):
        """Test set_content on the same selector wins over append."""
        mutation = RemoteMutation(
            append=[HtmlPatch(selector="#list", html="<li>two</li>")],
            set_content=[HtmlPatch(selector="#list", html="<li>only</li>")],
        )

        apply_mutation(slot_document, mutation)

        items = slot_document.find_by_selector(None, "#list li")
        assert [item.get_text() for item in items] == ["only"]

    def test_patch_applies_to_every_match(self, slot_document):
        slot_document.append_html(slot_document.body, '<span class="old">second</span>')

        apply_mutation(slot_document, RemoteMutation(set_content=[HtmlPatch(selector=".old", html="new")]))

        assert [el.get_text() for el in slot_document.find_by_selector(None, ".old")] == ["new", "new"]

    def test_inject_script_appends_to_body(self, slot_document):
        apply_mutation(slot_document, RemoteMutation(inject_script='<script id="injected">go()</script>'))

        script = slot_document.find_by_selector(None, "script#injected")[0]
        assert script.parent is slot_document.body

    def test_reload_is_terminal(self, slot_document):
        """Test reload stops the sequence before any redirect."""
        terminal = apply_mutation(slot_document, RemoteMutation(reload=True, redirect_url="/elsewhere"))

        assert terminal is True
        assert slot_document.reload_count == 1
        assert slot_document.location is None

    def test_redirect_is_terminal(self, slot_document):
        terminal = apply_mutation(slot_document, RemoteMutation(redirect_url="/elsewhere"))

        assert terminal is True
        assert slot_document.location == "/elsewhere"
