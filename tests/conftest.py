"""Shared test fixtures and configuration."""

import pytest

from overlaykit.dom import SoupDocument
from overlaykit.registry import PopupRegistry
from overlaykit.remote import RemoteContentLoader

PAGE_HTML = """
<html>
  <body>
    <a id="open-login" data-popup-target="login">Log in</a>
    <a id="open-cart" data-popup-target="cart">Cart</a>
    <a id="open-news" data-popup-target="news" data-popup-remote="https://example.com/news">News</a>
    <div class="popup" data-popup-id="login">
      <div class="popup__body">
        <p class="message">Hello</p>
        <button class="popup__close">x</button>
      </div>
    </div>
    <div class="popup" data-popup-id="cart">
      <div class="popup__body">
        <ul class="items"></ul>
        <button class="popup__close">x</button>
      </div>
    </div>
    <div class="popup" data-popup-id="news">
      <div class="popup__body"></div>
    </div>
  </body>
</html>
"""


class FakeTransport:
    """Transport returning a canned payload or raising a canned error."""

    def __init__(self, payload=None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[tuple[str, str, dict | None]] = []

    async def request(self, method, url, *, query=None):
        self.calls.append((method, url, query))
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def document():
    """Scrollable headless page with three popups."""
    return SoupDocument(PAGE_HTML)


@pytest.fixture
def logger(mocker):
    """Mock structlog logger so warnings can be asserted."""
    return mocker.Mock()


@pytest.fixture
def transport():
    return FakeTransport(payload={})


@pytest.fixture
def registry(document, logger, transport):
    """Registry wired to the fake transport."""
    return PopupRegistry(document, loader=RemoteContentLoader(transport, logger=logger), logger=logger)


@pytest.fixture
def find(document):
    """Return the first element matching a selector."""

    def _find(selector: str):
        return document.find_by_selector(None, selector)[0]

    return _find


@pytest.fixture
def login_trigger(find):
    return find("#open-login")


@pytest.fixture
def cart_trigger(find):
    return find("#open-cart")


@pytest.fixture
def news_trigger(find):
    return find("#open-news")
