import httpx
import pytest

from pkceflow.services.http import HttpxClient


def make_client(handler) -> HttpxClient:
    client = HttpxClient(timeout=5.0)
    client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


class TestHttpxClient:
    async def test_send_returns_body_and_forwards_request(self):
        # Arrange
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["content_type"] = request.headers["Content-Type"]
            seen["body"] = request.content
            return httpx.Response(200, content=b'{"ok":true}')

        client = make_client(handler)

        # Act
        body = await client.send(
            "POST",
            "https://auth.example.com/oauth/token",
            {"Content-Type": "application/x-www-form-urlencoded"},
            b"grant_type=authorization_code",
        )
        await client.close()

        # Assert
        assert body == b'{"ok":true}'
        assert seen == {
            "method": "POST",
            "url": "https://auth.example.com/oauth/token",
            "content_type": "application/x-www-form-urlencoded",
            "body": b"grant_type=authorization_code",
        }

    async def test_error_status_body_is_returned(self, caplog):
        client = make_client(
            lambda request: httpx.Response(400, content=b'{"error":"invalid_grant"}')
        )

        body = await client.send("POST", "https://auth.example.com/token", {}, b"")

        assert body == b'{"error":"invalid_grant"}'
        assert "HTTP 400" in caplog.text

    async def test_transport_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(httpx.ConnectError):
            await client.send("POST", "https://auth.example.com/token", {}, b"")
