"""
app.py

Flask HTTP surface:

    POST /search         {q}        → filtered YouTube results
    POST /suggest-song   {videoId}  → append to the bar's playlist
    GET  /health                    → configuration + readiness snapshot

Handlers only translate between JSON and the service outcomes; all state
lives in the AppServices passed to create_app().
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from flask import Flask, Response, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import BadRequest, HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from moyofy import config
from moyofy.logger import get_logger
from moyofy.search.service import SearchOutcome, SearchStatus
from moyofy.services import AppServices
from moyofy.songs import SuggestOutcome, SuggestStatus

logger = get_logger(__name__)

SEARCH_HTTP_STATUS = {
    SearchStatus.OK: 200,
    SearchStatus.INVALID_INPUT: 400,
    SearchStatus.RATE_LIMITED: 429,
    SearchStatus.QUOTA_BLOCKED: 429,
    SearchStatus.UPSTREAM_FAILURE: 500,
}

SUGGEST_HTTP_STATUS = {
    SuggestStatus.OK: 200,
    SuggestStatus.NOT_CONFIGURED: 500,
    SuggestStatus.INVALID_INPUT: 400,
    SuggestStatus.OWNER_NOT_AUTHORIZED: 401,
    SuggestStatus.QUOTA_BLOCKED: 429,
    SuggestStatus.NOT_FOUND: 404,
    SuggestStatus.NOT_EMBEDDABLE: 403,
    SuggestStatus.TOO_LONG: 403,
    SuggestStatus.OWNER_TOKENS_INVALID: 401,
    SuggestStatus.OWNER_UNAUTHORIZED: 401,
    SuggestStatus.ACCESS_DENIED: 403,
    SuggestStatus.FAILED: 500,
}


class MalformedJSON(BadRequest):
    description = "Request body must be a JSON object"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _retry_seconds(retry_after: float) -> int:
    return max(1, math.ceil(retry_after))


def _json_body() -> Dict[str, Any]:
    if not request.get_data(cache=True):
        return {}
    try:
        data = request.get_json(force=True)
    except BadRequest as e:
        raise MalformedJSON() from e
    if not isinstance(data, dict):
        raise MalformedJSON()
    return data


def _client_id() -> str:
    # ProxyFix has already replaced remote_addr when proxies are trusted
    return request.remote_addr or "unknown"


def _search_response(raw_query: Any, outcome: SearchOutcome) -> Tuple[Response, int]:
    status = SEARCH_HTTP_STATUS[outcome.status]

    if outcome.ok and outcome.result is not None:
        return (
            jsonify(
                ok=True,
                items=outcome.result.items,
                filterStats=outcome.result.stats,
                cache={"hit": outcome.cache_hit, "shared": outcome.shared},
                originalQuery=raw_query,
                normalizedQuery=outcome.query,
                timestamp=_now_iso(),
            ),
            status,
        )

    body: Dict[str, Any] = {"ok": False, "error": outcome.error}
    if outcome.status == SearchStatus.QUOTA_BLOCKED:
        body["quotaBlocked"] = True
        body["retryAfterSeconds"] = _retry_seconds(outcome.retry_after)

    resp = jsonify(body)
    if status == 429:
        resp.headers["Retry-After"] = str(_retry_seconds(outcome.retry_after))
    return resp, status


def _suggest_response(outcome: SuggestOutcome) -> Tuple[Response, int]:
    status = SUGGEST_HTTP_STATUS[outcome.status]
    body: Dict[str, Any] = {
        "ok": outcome.ok,
        "code": outcome.status.name,
        "videoId": outcome.video_id,
        "requiresOwnerAuth": outcome.requires_owner_auth,
    }

    if outcome.ok:
        body["message"] = outcome.message
        body["playlistItemId"] = outcome.playlist_item_id
    else:
        body["error"] = outcome.message

    if outcome.video is not None:
        body["video"] = {
            "title": outcome.video.title,
            "channelTitle": outcome.video.channel_title,
            "durationSeconds": outcome.video.duration_seconds,
        }

    blocked = outcome.status == SuggestStatus.QUOTA_BLOCKED
    if blocked:
        body["quotaBlocked"] = True
        body["retryAfterSeconds"] = _retry_seconds(outcome.retry_after)

    resp = jsonify(body)
    if blocked:
        resp.headers["Retry-After"] = str(body["retryAfterSeconds"])
    return resp, status


def create_app(services: AppServices) -> Flask:
    env = services.env
    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions["moyofy"] = services

    if env.trust_proxy:
        # Only the hops our own proxies appended are believed; anything to
        # their left came from the client
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=env.proxy_hops, x_proto=1)

    origins = "*" if "*" in env.cors_origins else env.cors_origins
    CORS(app, resources={r"/*": {"origins": origins}})

    # --------------------------------------------------------
    # Request logging
    # --------------------------------------------------------

    @app.before_request
    def _before_request() -> None:
        g.started_at = time.perf_counter()
        g.client_id = _client_id()

    @app.after_request
    def _after_request(response: Response) -> Response:
        duration_ms = int((time.perf_counter() - g.get("started_at", time.perf_counter())) * 1000)
        logger.info(
            f"http {request.method} {request.path} {response.status_code} "
            f"{duration_ms}ms client={g.get('client_id', '-')}"
        )
        return response

    # --------------------------------------------------------
    # Errors
    # --------------------------------------------------------

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        message = "Not found" if e.code == 404 else e.description
        return jsonify(ok=False, error=message), e.code

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify(ok=False, error="Internal server error"), 500

    # --------------------------------------------------------
    # Routes
    # --------------------------------------------------------

    @app.route("/search", methods=["POST"])
    def search():
        body = _json_body()
        raw_query = body.get("q")
        query = raw_query if isinstance(raw_query, str) else None
        outcome = services.search.search(query, g.client_id)
        return _search_response(raw_query, outcome)

    @app.route("/suggest-song", methods=["POST"])
    def suggest_song():
        body = _json_body()
        video_id = body.get("videoId")
        outcome = services.songs.suggest(video_id if isinstance(video_id, str) else None)
        return _suggest_response(outcome)

    @app.route("/health", methods=["GET"])
    def health():
        search = services.search
        return jsonify(
            ok=True,
            service=config.SERVICE_NAME,
            timestamp=_now_iso(),
            environment=env.environment,
            config={
                "youtubeApiKeys": len(env.youtube_api_keys),
                "playlistConfigured": bool(env.playlist_id),
                "oauthClientConfigured": bool(
                    env.oauth_client_id and env.oauth_client_secret
                ),
                "tokenStore": env.token_store,
            },
            owner={"authorized": services.owner.is_ready()},
            search={
                "cacheEntries": len(search.cache),
                "inFlight": len(search.flights),
                "trackedClients": search.limiter.tracked_clients(),
                "quotaBlocked": services.breaker.is_blocked(),
                "quotaRetryAfterSeconds": math.ceil(services.breaker.remaining()),
                "stats": search.stats.snapshot(),
            },
        )

    return app
