"""
In-process fake of the Vault HTTP API.

Implements just enough of the Transit, KV v2, sys and token endpoints for
the client, provider and setup operations. Transit keys are real Ed25519
keys so signatures can be verified.
"""

import asyncio
import base64
import secrets
import time
from typing import Any, Dict, Optional, Set

from aiohttp import web
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

ROOT_TOKEN = "root-token"
UNSEAL_KEY = "unseal-key"

UNAUTHENTICATED = {"/v1/sys/health", "/v1/sys/seal-status", "/v1/sys/init", "/v1/sys/unseal"}


def _errors(status: int, *messages: str) -> web.Response:
    return web.json_response({"errors": list(messages)}, status=status)


class FakeVault:
    """Fake Vault server state and routes."""

    def __init__(self, transit: str = "transit", kv: str = "vibekit"):
        self.transit = transit
        self.kv = kv
        self.tokens: Dict[str, Dict[str, Any]] = {
            ROOT_TOKEN: {"policies": ["root"], "display_name": "root", "ttl": 0},
        }
        self.keys: Dict[str, Ed25519PrivateKey] = {}
        self.metadata: Dict[str, Dict[str, Any]] = {}
        self.mounts: Set[str] = {transit, kv}
        self.policies: Dict[str, str] = {}

        self.initialized = True
        self.sealed = False
        self.delay = 0.0
        # Status to answer metadata deletes with, to simulate partial failures
        self.metadata_delete_status: Optional[int] = None
        self.requests = []

        self.url = ""
        self.app = self._build_app()

    def _build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._middleware])
        t, kv = self.transit, self.kv
        app.router.add_get(f"/v1/{t}/keys", self._list_keys)
        app.router.add_post(f"/v1/{t}/keys/{{name}}", self._create_key)
        app.router.add_get(f"/v1/{t}/keys/{{name}}", self._read_key)
        app.router.add_post(f"/v1/{t}/keys/{{name}}/config", self._config_key)
        app.router.add_delete(f"/v1/{t}/keys/{{name}}", self._delete_key)
        app.router.add_post(f"/v1/{t}/sign/{{name}}", self._sign)

        app.router.add_post(f"/v1/{kv}/data/wallets/{{name}}", self._write_metadata)
        app.router.add_get(f"/v1/{kv}/data/wallets/{{name}}", self._read_metadata)
        app.router.add_get(f"/v1/{kv}/metadata/wallets", self._list_metadata)
        app.router.add_delete(f"/v1/{kv}/metadata/wallets/{{name}}", self._delete_metadata)

        app.router.add_get("/v1/sys/health", self._health)
        app.router.add_get("/v1/sys/seal-status", self._seal_status)
        app.router.add_post("/v1/sys/init", self._init)
        app.router.add_post("/v1/sys/unseal", self._unseal)
        app.router.add_post("/v1/sys/mounts/{path}", self._mount)
        app.router.add_put("/v1/sys/policies/acl/{name}", self._write_policy)
        app.router.add_post("/v1/auth/token/create", self._create_token)
        app.router.add_post("/v1/auth/token/revoke", self._revoke_token)
        app.router.add_get("/v1/auth/token/lookup-self", self._lookup_self)
        return app

    def add_token(self, policies=("mcp-signer",)) -> str:
        token = f"s.{secrets.token_hex(8)}"
        self.tokens[token] = {"policies": list(policies), "display_name": "token", "ttl": 3600}
        return token

    def public_key_b64(self, name: str) -> str:
        raw = self.keys[name].public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        return base64.b64encode(raw).decode("ascii")

    @web.middleware
    async def _middleware(self, request: web.Request, handler):
        self.requests.append((request.method, request.path, request.query.get("list")))
        if self.delay:
            await asyncio.sleep(self.delay)
        if request.path in UNAUTHENTICATED:
            return await handler(request)
        if self.sealed:
            return _errors(503, "Vault is sealed")
        if request.headers.get("X-Vault-Token") not in self.tokens:
            return _errors(403, "permission denied")
        return await handler(request)

    # Transit

    async def _list_keys(self, request: web.Request) -> web.Response:
        if request.query.get("list") != "true" or not self.keys:
            return _errors(404)
        return web.json_response({"data": {"keys": sorted(self.keys)}})

    async def _create_key(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        body = await request.json()
        if body.get("type") != "ed25519":
            return _errors(400, "unsupported key type")
        self.keys.setdefault(name, Ed25519PrivateKey.generate())
        return web.Response(status=204)

    async def _read_key(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if name not in self.keys:
            return _errors(404)
        return web.json_response({"data": {
            "name": name,
            "type": "ed25519",
            "latest_version": 1,
            "keys": {"1": {"public_key": self.public_key_b64(name)}},
        }})

    async def _config_key(self, request: web.Request) -> web.Response:
        if request.match_info["name"] not in self.keys:
            return _errors(404)
        return web.Response(status=204)

    async def _delete_key(self, request: web.Request) -> web.Response:
        self.keys.pop(request.match_info["name"], None)
        return web.Response(status=204)

    async def _sign(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if name not in self.keys:
            return _errors(400, "encryption key not found")
        body = await request.json()
        signature = self.keys[name].sign(base64.b64decode(body["input"]))
        return web.json_response({"data": {
            "signature": "vault:v1:" + base64.b64encode(signature).decode("ascii"),
        }})

    # KV v2

    async def _write_metadata(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.metadata[request.match_info["name"]] = body["data"]
        return web.json_response({"data": {"version": 1}})

    async def _read_metadata(self, request: web.Request) -> web.Response:
        data = self.metadata.get(request.match_info["name"])
        if data is None:
            return _errors(404)
        return web.json_response({"data": {"data": data, "metadata": {"version": 1}}})

    async def _list_metadata(self, request: web.Request) -> web.Response:
        if request.query.get("list") != "true" or not self.metadata:
            return _errors(404)
        return web.json_response({"data": {"keys": sorted(self.metadata)}})

    async def _delete_metadata(self, request: web.Request) -> web.Response:
        if self.metadata_delete_status:
            return _errors(self.metadata_delete_status, "internal error")
        self.metadata.pop(request.match_info["name"], None)
        return web.Response(status=204)

    # System

    async def _health(self, request: web.Request) -> web.Response:
        status = 200 if self.initialized and not self.sealed else 503
        return web.json_response({"initialized": self.initialized, "sealed": self.sealed},
                                 status=status)

    async def _seal_status(self, request: web.Request) -> web.Response:
        return web.json_response({"initialized": self.initialized, "sealed": self.sealed,
                                  "t": 1, "n": 1})

    async def _init(self, request: web.Request) -> web.Response:
        if self.initialized:
            return _errors(400, "Vault is already initialized")
        self.initialized = True
        self.sealed = True
        return web.json_response({
            "keys": [UNSEAL_KEY],
            "keys_base64": [base64.b64encode(UNSEAL_KEY.encode()).decode("ascii")],
            "root_token": ROOT_TOKEN,
        })

    async def _unseal(self, request: web.Request) -> web.Response:
        body = await request.json()
        if body.get("key") == UNSEAL_KEY:
            self.sealed = False
        return web.json_response({"sealed": self.sealed, "t": 1, "n": 1})

    async def _mount(self, request: web.Request) -> web.Response:
        path = request.match_info["path"]
        if path in self.mounts:
            return _errors(400, f"path is already in use at {path}/")
        self.mounts.add(path)
        return web.Response(status=204)

    async def _write_policy(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.policies[request.match_info["name"]] = body["policy"]
        return web.Response(status=204)

    async def _create_token(self, request: web.Request) -> web.Response:
        body = await request.json()
        token = self.add_token(body.get("policies") or [])
        self.tokens[token]["display_name"] = f"token-{body.get('display_name', '')}"
        return web.json_response({"auth": {"client_token": token, "policies": body.get("policies")}})

    async def _revoke_token(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.tokens.pop(body["token"], None)
        return web.Response(status=204)

    async def _lookup_self(self, request: web.Request) -> web.Response:
        info = self.tokens[request.headers["X-Vault-Token"]]
        return web.json_response({"data": {
            "accessor": "accessor-1",
            "display_name": info["display_name"],
            "policies": info["policies"],
            "creation_time": int(time.time()),
            "expire_time": None,
            "ttl": info["ttl"],
        }})
