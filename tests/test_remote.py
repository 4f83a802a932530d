"""Tests for remote content loading and popups opened with remote content."""

import asyncio
from unittest.mock import Mock

import httpx
import pytest

from overlaykit.exceptions import RemoteRequestError
from overlaykit.popup import Popup
from overlaykit.registry import PopupRegistry
from overlaykit.remote import HttpxTransport, RemoteContentLoader
from overlaykit.schema.config import RemoteConfig
from overlaykit.schema.mutation import RemoteMutation

NEWS_PAYLOAD = {
    "setContent": [
        {
            "selector": '[data-popup-id="news"] .popup__body',
            "html": '<p class="headline">Breaking</p><button class="popup__close">x</button>',
        }
    ]
}


class TestRemoteContentLoader:
    """Test the callback sequencing of RemoteContentLoader.load."""

    @pytest.fixture
    def loader(self, transport, logger):
        return RemoteContentLoader(transport, logger=logger)

    @pytest.mark.asyncio
    async def test_success_calls_on_success_then_on_complete(self, loader, transport):
        transport.payload = {"append": [{"selector": "#x", "html": "<i></i>"}]}
        calls = []
        remote = RemoteConfig(url="https://example.com/x", on_complete=lambda: calls.append("complete"))

        loaded = await loader.load(remote, on_success=lambda m: calls.append(m))

        assert loaded is True
        assert calls[0] == RemoteMutation.model_validate(transport.payload)
        assert calls[1] == "complete"

    @pytest.mark.asyncio
    async def test_failure_calls_on_error_then_on_complete(self, loader, transport):
        error = RemoteRequestError(500, "Request failed with status code: 500")
        transport.error = error
        calls = []
        remote = RemoteConfig(
            url="https://example.com/x",
            on_error=lambda e: calls.append(("error", e)),
            on_complete=lambda: calls.append(("complete",)),
        )
        on_success = Mock()

        loaded = await loader.load(remote, on_success=on_success)

        assert loaded is False
        on_success.assert_not_called()
        assert calls == [("error", error), ("complete",)]

    @pytest.mark.asyncio
    async def test_invalid_payload_is_routed_to_on_error(self, loader, transport):
        transport.payload = {"replace": "not a list"}
        on_error = Mock()

        loaded = await loader.load(RemoteConfig(url="https://example.com/x", on_error=on_error), on_success=Mock())

        assert loaded is False
        on_error.assert_called_once()

    @pytest.mark.asyncio
    async def test_before_send_can_cancel(self, loader, transport):
        """Test returning False from on_before_send skips the request and every later callback."""
        on_complete = Mock()
        remote = RemoteConfig(url="https://example.com/x", on_before_send=lambda q: False, on_complete=on_complete)

        loaded = await loader.load(remote, on_success=Mock())

        assert loaded is False
        assert transport.calls == []
        on_complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_before_send_can_annotate_query(self, loader, transport):
        def annotate(query):
            query["token"] = "abc"

        remote = RemoteConfig(url="https://example.com/x", data={"page": 1}, cache=True, on_before_send=annotate)

        await loader.load(remote, on_success=Mock())

        assert transport.calls == [("get", "https://example.com/x", {"page": 1, "token": "abc"})]

    def test_cache_busting_parameter(self, loader):
        """Test uncached requests get a `_` timestamp parameter."""
        assert "_" in loader.build_query(RemoteConfig(url="https://example.com/x"))
        assert "_" not in loader.build_query(RemoteConfig(url="https://example.com/x", cache=True))


class TestHttpxTransport:
    """Test the httpx transport against a mocked HTTP layer."""

    @pytest.mark.asyncio
    async def test_get_sends_query_and_decodes_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            seen["accept"] = request.headers["accept"]
            return httpx.Response(200, json=NEWS_PAYLOAD)

        transport = HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        payload = await transport.request("get", "https://example.com/news", query={"page": "2"})

        assert payload == NEWS_PAYLOAD
        assert seen == {"method": "GET", "params": {"page": "2"}, "accept": "application/json"}
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self):
        transport = HttpxTransport(
            httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
        )

        with pytest.raises(RemoteRequestError) as exc_info:
            await transport.request("get", "https://example.com/missing")

        assert exc_info.value.status == 404
        await transport.aclose()

    def test_sync_host_loads_on_every_activation(self, document, news_trigger, logger):
        """Test repeated activations without a running loop each fetch on a fresh event loop."""
        loops = []

        def handler(request: httpx.Request) -> httpx.Response:
            loops.append(asyncio.get_running_loop())
            return httpx.Response(200, json=NEWS_PAYLOAD)

        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        registry = PopupRegistry(document, loader=RemoteContentLoader(transport, logger=logger), logger=logger)
        popup = Popup(news_trigger, registry)

        popup.request_open()
        assert popup.is_open
        popup.close()

        popup.request_open()

        assert popup.is_open
        assert len(loops) == 2
        assert loops[0] is not loops[1]
        assert transport._client is None


class TestRemotePopup:
    """Test popups whose content is fetched before they open."""

    @pytest.mark.asyncio
    async def test_activation_loads_then_opens(self, document, news_trigger, registry, transport, find):
        """Test a trigger click fetches the mutation, applies it and opens with a working close button."""
        transport.payload = NEWS_PAYLOAD
        before_open = Mock()
        popup = Popup(news_trigger, registry, before_open=before_open)

        task = popup.request_open()
        assert not popup.is_open
        await task

        assert popup.is_open
        before_open.assert_called_once_with(popup)
        assert find('[data-popup-id="news"] .headline').get_text() == "Breaking"
        assert transport.calls[0][1] == "https://example.com/news"

        document.dispatch(find('[data-popup-id="news"] .popup__close'), "click")
        assert not popup.is_open

    @pytest.mark.asyncio
    async def test_click_schedules_load(self, document, news_trigger, registry, transport):
        transport.payload = NEWS_PAYLOAD
        popup = Popup(news_trigger, registry)

        document.dispatch(news_trigger, "click")
        assert popup._pending is not None
        await popup._pending

        assert popup.is_open

    @pytest.mark.asyncio
    async def test_hook_failure_in_scheduled_load_is_logged(self, news_trigger, registry, transport, logger):
        """Test an exception raised by a hook inside a scheduled load is reported with the popup's state."""
        transport.payload = NEWS_PAYLOAD

        def failing_hook(popup):
            raise RuntimeError("hook failed")

        popup = Popup(news_trigger, registry, before_open=failing_hook)

        task = popup.request_open()
        await asyncio.wait([task])
        await asyncio.sleep(0)

        assert not popup.is_open
        logger.error.assert_called_once_with(
            "popup-load",
            target_id="news",
            status="failed",
            state="closed",
            error="hook failed",
            exception_type="RuntimeError",
        )

    @pytest.mark.asyncio
    async def test_failure_keeps_popup_closed(self, news_trigger, registry, transport):
        """Test no lifecycle hook runs and the popup stays closed when the fetch fails."""
        transport.error = RemoteRequestError(503, "unavailable")
        before_open, after_open, on_error = Mock(), Mock(), Mock()
        popup = Popup(
            news_trigger,
            registry,
            before_open=before_open,
            after_open=after_open,
            remote={"on_error": on_error},
        )

        opened = await popup.load_and_open()

        assert opened is False
        assert not popup.is_open
        before_open.assert_not_called()
        after_open.assert_not_called()
        on_error.assert_called_once_with(transport.error)

    @pytest.mark.asyncio
    async def test_failure_after_displacing_releases_page(
        self, document, login_trigger, news_trigger, registry, transport
    ):
        """Test a failed load after displacing an open popup unpins the page at the original offset."""
        transport.error = RemoteRequestError(500, "boom")
        login = Popup(login_trigger, registry)
        news = Popup(news_trigger, registry)
        document.set_scroll_offset(600)
        login.open()
        document.set_scroll_offset(0)

        await news.request_open()

        assert not login.is_open
        assert not news.is_open
        assert registry.get_open_popup() is None
        assert not document.has_class(document.body, "popup-opened")
        assert document.get_style(document.body, "top") is None
        assert document.get_scroll_offset() == 600

    @pytest.mark.asyncio
    async def test_success_after_displacing_inherits_offset(
        self, document, login_trigger, news_trigger, registry, transport
    ):
        transport.payload = NEWS_PAYLOAD
        login = Popup(login_trigger, registry)
        news = Popup(news_trigger, registry)
        document.set_scroll_offset(350)
        login.open()
        document.set_scroll_offset(0)

        await news.request_open()

        assert news.is_open
        assert news.saved_scroll_offset == 350

    @pytest.mark.asyncio
    async def test_reload_ends_open_sequence(self, document, news_trigger, registry, transport):
        transport.payload = {"reload": True}
        after_open = Mock()
        popup = Popup(news_trigger, registry, after_open=after_open)

        await popup.load_and_open()

        assert document.reload_count == 1
        assert not popup.is_open
        after_open.assert_not_called()

    def test_request_open_without_running_loop(self, news_trigger, registry, transport):
        """Test the load runs to completion when no event loop is running."""
        transport.payload = NEWS_PAYLOAD
        popup = Popup(news_trigger, registry)

        assert popup.request_open() is None
        assert popup.is_open

    def test_open_accepts_raw_payload(self, news_trigger, registry, find):
        popup = Popup(news_trigger, registry)

        popup.open(NEWS_PAYLOAD)

        assert popup.is_open
        assert find('[data-popup-id="news"] .headline').get_text() == "Breaking"
