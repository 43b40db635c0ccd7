import asyncio
import importlib
import threading

import pytest

from feedline.core.auth import TOKEN_HEADER
from feedline.core.client import APIClient, client, create_client
from feedline.core.exceptions import ConfigurationError, ConnectionError, DecodeError, HTTPError
from feedline.core.request import HTTPMethod
from feedline.core.storage import JSONFileStore, MemoryStore, TOKEN_KEY, TokenStore
from feedline.core.transport import MockTransport
from feedline.models import Post, User

# `feedline.core.client` the function shadows the submodule on the package
client_module = importlib.import_module("feedline.core.client")

SIGN_UP_RESPONSE = {"data": {"id": 1, "email": "a@x.com"}, "meta": "tok-1"}


def _collect():
    """Completion that records every (result, error) pair it receives"""
    calls = []

    def completion(result, error):
        calls.append((result, error))

    return calls, completion


class TestSignUp:
    def test_scenario_sign_up_stores_token(self, mock_config, transport, token_store):
        """signUp returns the user and keeps the issued token"""
        transport.add_route(HTTPMethod.POST, "/users.json", SIGN_UP_RESPONSE)
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                user = await api.sign_up("a@x.com", "pw123", completion)
                return user, api.token

        user, token = asyncio.run(scenario())
        assert user == User(id=1, email="a@x.com")
        assert token == "tok-1"
        assert calls == [(User(id=1, email="a@x.com"), None)]
        assert token_store.get() == "tok-1"

    def test_builds_one_unauthorized_post(self, mock_config, transport):
        transport.add_route(HTTPMethod.POST, "/users.json", SIGN_UP_RESPONSE)
        store = TokenStore(MemoryStore({TOKEN_KEY: "old-token"}))

        async def scenario():
            async with APIClient(mock_config, transport, store) as api:
                await api.sign_up("b@y.org", "s3cret")

        asyncio.run(scenario())
        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method is HTTPMethod.POST
        assert request.path == "/users.json"
        assert request.json() == {"user": {"email": "b@y.org", "password": "s3cret"}}
        assert request.headers["Content-Type"] == "application/json"
        assert TOKEN_HEADER not in request.headers

    def test_token_visible_to_fresh_client(self, mock_config, transport, tmp_path):
        transport.add_route(HTTPMethod.POST, "/users.json", SIGN_UP_RESPONSE)
        path = tmp_path / "defaults.json"

        async def scenario():
            async with APIClient(mock_config, transport, TokenStore(JSONFileStore(path))) as api:
                await api.sign_up("a@x.com", "pw123")

        asyncio.run(scenario())
        fresh = APIClient(mock_config, MockTransport(), TokenStore(JSONFileStore(path)))
        assert fresh.token == "tok-1"
        assert fresh.token_store.get() == "tok-1"

    def test_missing_meta_keeps_token(self, mock_config, transport):
        transport.add_route(HTTPMethod.POST, "/users.json", {"data": {"id": 1}})
        store = TokenStore(MemoryStore({TOKEN_KEY: "old-token"}))

        async def scenario():
            async with APIClient(mock_config, transport, store) as api:
                user = await api.sign_up("a@x.com", "pw123")
                return user, api.token

        user, token = asyncio.run(scenario())
        assert user.id == 1
        assert token == "old-token"
        assert store.get() == "old-token"

    def test_failure_keeps_token(self, mock_config, transport):
        transport.add_route(HTTPMethod.POST, "/users.json", {"errors": ["taken"]}, status=422)
        store = TokenStore(MemoryStore({TOKEN_KEY: "old-token"}))
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, store) as api:
                with pytest.raises(HTTPError):
                    await api.sign_up("a@x.com", "pw123", completion)
                return api.token

        assert asyncio.run(scenario()) == "old-token"
        assert store.get() == "old-token"
        assert len(calls) == 1
        assert calls[0][0] is None
        assert calls[0][1].status_code == 422

    def test_malformed_body_delivers_no_partial_result(self, mock_config, transport, token_store):
        transport.add_route(HTTPMethod.POST, "/users.json", {"meta": "tok-1"})
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                api.sign_up("a@x.com", "pw123", completion)

        asyncio.run(scenario())
        assert len(calls) == 1
        result, error = calls[0]
        assert result is None
        assert isinstance(error, DecodeError)
        assert token_store.get() is None


class TestFeed:
    def test_scenario_feed_page(self, mock_config, transport, token_store):
        transport.add_route(HTTPMethod.GET, "/posts", {"data": [{"id": 1}, {"id": 2}]})
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                return await api.get_feed_posts(0, completion)

        posts = asyncio.run(scenario())
        assert posts == [Post(id=1), Post(id=2)]
        assert calls == [([Post(id=1), Post(id=2)], None)]
        request = transport.requests[0]
        assert request.method is HTTPMethod.GET
        assert request.body is None
        assert request.url == "mock://api.example.com/posts?start=0"

    def test_same_index_is_idempotent(self, mock_config, transport, token_store):
        transport.add_route(HTTPMethod.GET, "/posts", {"data": [{"id": 1, "title": "a"}, {"id": 2}]})

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                first = await api.get_feed_posts(5)
                second = await api.get_feed_posts(5)
                return first, second

        first, second = asyncio.run(scenario())
        assert first == second
        assert transport.requests[0].url == transport.requests[1].url

    def test_requests_are_serialized_in_issue_order(self, mock_config, token_store):
        transport = MockTransport(latency=0.01)
        transport.add_route(HTTPMethod.GET, "/posts", {"data": []})
        order = []

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                first = api.get_feed_posts(0, lambda r, e: order.append(0))
                second = api.get_feed_posts(10, lambda r, e: order.append(10))
                await asyncio.gather(first, second)

        asyncio.run(scenario())
        assert [r.url.rsplit("=", 1)[1] for r in transport.requests] == ["0", "10"]
        assert transport.max_in_flight == 1
        assert order == [0, 10]

    def test_negative_index(self, mock_config, transport, token_store):
        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                api.get_feed_posts(-1)

        with pytest.raises(ValueError):
            asyncio.run(scenario())

    def test_transport_failure(self, mock_config, transport, token_store):
        transport.add_error(HTTPMethod.GET, "/posts", ConnectionError("refused"))
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                api.get_feed_posts(0, completion)

        asyncio.run(scenario())
        assert len(calls) == 1
        assert calls[0][0] is None
        assert isinstance(calls[0][1], ConnectionError)


class TestPostsOf:
    def test_scenario_not_found(self, mock_config, transport, token_store):
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                api.get_posts_of(User(id=42), completion)

        asyncio.run(scenario())
        assert transport.requests[0].path == "/users/42/posts"
        assert len(calls) == 1
        result, error = calls[0]
        assert result is None
        assert isinstance(error, HTTPError)
        assert error.status_code == 404

    def test_user_posts(self, mock_config, transport, token_store):
        transport.add_route(HTTPMethod.GET, "/users/7/posts", {"data": [{"id": 70, "title": "hi"}]})

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                return await api.get_posts_of(User(id=7))

        posts = asyncio.run(scenario())
        assert [p.id for p in posts] == [70]
        assert posts[0].model_dump()["title"] == "hi"


class TestClientLifecycle:
    def test_operations_require_open(self, mock_config, transport, token_store):
        api = APIClient(mock_config, transport, token_store)
        with pytest.raises(RuntimeError):
            api.get_feed_posts(0)

    def test_returns_before_completion(self, mock_config, transport, token_store):
        transport.add_route(HTTPMethod.GET, "/posts", {"data": []})
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                future = api.get_feed_posts(0, completion)
                assert not future.done()
                assert calls == []
                await future

        asyncio.run(scenario())
        assert calls == [([], None)]

    def test_completion_on_callback_loop_thread(self, mock_config, transport, token_store):
        transport.add_route(HTTPMethod.GET, "/posts", {"data": []})
        threads = []

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                await api.get_feed_posts(0, lambda r, e: threads.append(threading.current_thread()))

        asyncio.run(scenario())
        assert threads == [threading.main_thread()]

    def test_close_finishes_queued_calls(self, mock_config, token_store):
        transport = MockTransport(latency=0.01)
        transport.add_route(HTTPMethod.GET, "/posts", {"data": [{"id": 1}]})

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                future = api.get_feed_posts(0)
            assert not api.is_connected
            return await future

        assert asyncio.run(scenario()) == [Post(id=1)]

    def test_reopen_under_new_event_loop(self, mock_config, transport, token_store):
        """A client closed on one loop can be reopened on another"""
        transport.add_route(HTTPMethod.GET, "/posts", {"data": [{"id": 1}]})
        api = APIClient(mock_config, transport, token_store)
        calls, completion = _collect()

        async def scenario():
            async with api:
                return await api.get_feed_posts(0, completion)

        assert asyncio.run(scenario()) == [Post(id=1)]
        assert asyncio.run(scenario()) == [Post(id=1)]
        assert calls == [([Post(id=1)], None), ([Post(id=1)], None)]

    def test_configuration_error_raised_at_call_site(self, mock_config, transport, token_store, monkeypatch):
        monkeypatch.setattr(client_module, "FEED_ENDPOINT", "/bad path")
        calls, completion = _collect()

        async def scenario():
            async with APIClient(mock_config, transport, token_store) as api:
                with pytest.raises(ConfigurationError):
                    api.get_feed_posts(0, completion)

        asyncio.run(scenario())
        assert calls == []
        assert transport.requests == []

    def test_api_info_masks_token(self, mock_config, transport):
        api = APIClient(mock_config, transport, TokenStore(MemoryStore({TOKEN_KEY: "abcdefghijklmnop"})))
        info = api.api_info
        assert info["run_mode"] == "mock"
        assert info["base_url"] == "mock://api.example.com"
        assert info["token"] == "abcd...mnop"

    def test_default_transport_follows_run_mode(self, mock_config, token_store):
        assert isinstance(APIClient(mock_config, token_store=token_store).transport, MockTransport)

    def test_factories(self, mock_config, transport, token_store):
        assert isinstance(create_client(mock_config, transport, token_store), APIClient)

        async def scenario():
            async with client(mock_config, transport, token_store) as api:
                return api.is_connected

        assert asyncio.run(scenario()) is True
        assert not transport.is_connected
