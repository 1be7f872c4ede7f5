import json

import httpx


class RecordingHandler:
    """httpx.MockTransport handler that records requests and fails chosen hosts."""

    def __init__(self, fail_hosts=(), error_hosts=()):
        self.requests: list[httpx.Request] = []
        self.fail_hosts = set(fail_hosts)
        self.error_hosts = set(error_hosts)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.error_hosts:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.host in self.fail_hosts:
            return httpx.Response(500, json={"error": "boom"})
        return httpx.Response(204)

    def bodies_by_host(self) -> dict:
        return {request.url.host: json.loads(request.content) for request in self.requests}
