"""
Hubble HTTP client for DecentraNet
- Talks to a Farcaster Hubble node's /v1 HTTP API via requests
- Provides: info(), submit_cast(...), submit_reaction(...), submit_link(...)
- The caller owns the session: use as a context manager or call close()

Every failure (transport error, non-2xx, missing hash) is raised as a
PublishError naming the endpoint. No mock data is ever returned.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ..errors import HubbleUnavailable, PublishError

log = logging.getLogger(__name__)

REACTION_TYPES = {1: "REACTION_TYPE_LIKE", -1: "REACTION_TYPE_DISLIKE"}
# numeric reaction codes accepted by older Hubble builds
REACTION_CODES = {1: 1, -1: 4}


def _addr_to_http(addr: Optional[str]) -> str:
    """
    Normalize a Hubble address to an HTTP base URL.

    Examples:
        "http://localhost:2281/" -> "http://localhost:2281"
        "localhost:2281"         -> "http://localhost:2281"
        None                     -> "http://localhost:2281"
    """
    if not addr:
        return "http://localhost:2281"
    addr = addr.strip()
    if addr.startswith("http://") or addr.startswith("https://"):
        return addr.rstrip("/")
    return "http://" + addr.rstrip("/")


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


class HubbleClient:
    """Thin wrapper around a Hubble node's HTTP API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = _addr_to_http(base_url)
        self.timeout = float(timeout)
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "HubbleClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = self.base_url + path
        try:
            resp = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishError(f"{path}: {e}", endpoint=path) from e
        if not resp.ok:
            detail = (resp.text or "").strip()[:200]
            raise PublishError(
                f"{path} returned {resp.status_code} {resp.reason}" + (f": {detail}" if detail else ""),
                endpoint=path,
                status=resp.status_code,
            )
        return resp

    @staticmethod
    def _json(resp: requests.Response, path: str) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise PublishError(f"{path} returned invalid JSON", endpoint=path) from e
        if not isinstance(data, dict):
            raise PublishError(f"{path} returned {type(data).__name__}, expected an object", endpoint=path)
        return data

    def _submit(self, path: str, body: Dict[str, Any], what: str) -> str:
        data = self._json(self._request("POST", path, body), path)
        hash_value = data.get("hash")
        if not hash_value:
            raise PublishError(f"no hash returned for {what}", endpoint=path)
        return str(hash_value)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def info(self) -> Dict[str, Any]:
        try:
            return self._json(self._request("GET", "/v1/info"), "/v1/info")
        except PublishError as e:
            raise HubbleUnavailable(
                f"Hubble node not available at {self.base_url}: {e.message}",
                endpoint="/v1/info",
                status=e.status,
            ) from e

    def submit_cast(
        self,
        fid: int,
        text: str,
        mentions: Sequence[int] = (),
        embeds: Sequence[str] = (),
        parent: Optional[Dict[str, Any]] = None,
        label: str = "cast",
    ) -> str:
        """
        Publish a cast and return its hash.

        `parent` is {"fid": int, "hash": str} for replies. Newer hubs take
        /v1/submitMessage; on a non-2xx answer we retry once against the
        legacy /v1/submitCast endpoint.
        """
        cast_body: Dict[str, Any] = {
            "text": text,
            "mentions": list(mentions),
            "mentionsPositions": [],
            "embeds": list(embeds),
        }
        if parent:
            cast_body["parentCastId"] = {"fid": int(parent["fid"]), "hash": _strip_0x(str(parent["hash"]))}

        try:
            return self._submit(
                "/v1/submitMessage",
                {"type": "MESSAGE_TYPE_CAST_ADD", "fid": int(fid), "castAddBody": cast_body},
                label,
            )
        except PublishError as first:
            if first.status is None:
                raise
            log.debug("submitMessage rejected %s (%s), trying /v1/submitCast", label, first.status)
            try:
                return self._submit("/v1/submitCast", {"fid": int(fid), **cast_body}, f"{label} (alt method)")
            except PublishError as second:
                raise PublishError(
                    f"Failed to sync {label}: {first.status} / alt {second.status or second.message}",
                    endpoint="/v1/submitCast",
                    status=second.status,
                ) from second

    def submit_reaction(self, fid: int, value: int, target: Dict[str, Any], label: str = "vote") -> str:
        """
        Publish a like (+1) or dislike (-1) on `target` ({"fid", "hash"}).
        Hubs answer reactions without a hash, so an empty string is a success.
        """
        if value not in REACTION_TYPES:
            raise PublishError(f"unsupported reaction value {value!r} for {label}", endpoint="/v1/submitReaction")
        target_cast = {"fid": int(target["fid"]), "hash": _strip_0x(str(target["hash"]))}
        path = "/v1/submitReaction"
        try:
            resp = self._request("POST", path, {"type": REACTION_TYPES[value], "fid": int(fid), "targetCastId": target_cast})
        except PublishError as first:
            if first.status is None:
                raise
            try:
                resp = self._request(
                    "POST", path, {"reactionType": REACTION_CODES[value], "fid": int(fid), "targetCastId": target_cast}
                )
            except PublishError as second:
                raise PublishError(
                    f"Failed to sync {label} from user {fid}: {second.status}",
                    endpoint=path,
                    status=second.status,
                ) from second
        try:
            data = resp.json()
        except ValueError:
            return ""
        return str(data.get("hash") or "") if isinstance(data, dict) else ""

    def submit_link(self, fid: int, target_fid: int, label: str = "follow") -> str:
        return self._submit(
            "/v1/submitMessage",
            {
                "type": "MESSAGE_TYPE_LINK_ADD",
                "fid": int(fid),
                "linkBody": {"type": "follow", "targetFid": int(target_fid)},
            },
            label,
        )
