"""Flask entry point that lets an operator drive the tennis import."""
from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple

import httpx
from flask import Blueprint, Flask, current_app, jsonify, request, session
from loguru import logger

from .config import Settings
from .errors import QuotaExceededError, classify_exception, troubleshooting
from .importer import TennisImporter
from .models import DateWindow
from .quota import build_quota


bp = Blueprint("tennis_import", __name__)

EXTENSION_KEY = "tennis_importer"

Reply = Tuple[Dict[str, Any], int]

AVAILABLE_ACTIONS = {
    "test_connection": "Test the tennis API connection",
    "import_atp_matches": "Import recent official ATP matches",
    "import_atp_july_2025": "Import official ATP matches from July 2025",
    "get_quota_status": "Show the remaining request quota",
    "debug_api_response": "Dump the raw provider structure",
}


def create_app(
    settings: Optional[Settings] = None,
    quota=None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    if quota is None:
        quota = build_quota(
            settings.quota_backend,
            settings.db_path,
            settings.quota_max,
            settings.provider_daily_limit,
        )

    def importer_factory() -> TennisImporter:
        return TennisImporter.from_settings(settings, quota=quota, transport=transport)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.extensions[EXTENSION_KEY] = {"settings": settings, "factory": importer_factory}
    app.register_blueprint(bp)
    return app


def _run(coro):
    return asyncio.run(coro)


def _settings() -> Settings:
    return current_app.extensions[EXTENSION_KEY]["settings"]


def _factory() -> Callable[[], TennisImporter]:
    return current_app.extensions[EXTENSION_KEY]["factory"]


def _authenticated() -> bool:
    if session.get("user_id"):
        return True
    token = _settings().operator_token
    header = request.headers.get("Authorization", "")
    return bool(token) and header == f"Bearer {token}"


def _quota_hint(percentage: int, remaining: int) -> str:
    if percentage > 80:
        return f"Quota almost spent ({remaining} requests left)"
    if percentage > 50:
        return f"Quota half used ({remaining} requests left)"
    return f"Quota available ({remaining} requests left)"


async def _test_connection(factory) -> Reply:
    async with factory() as importer:
        report = await importer.test_connection()
        quota = await importer.quota_status()
    settings = importer.settings
    details = dict(report.sample_data)
    details.update({"quota": quota.to_dict(), "host": settings.api_host})
    if report.success:
        recommendations = [
            "Tennis API connected",
            f"Quota: {quota.remaining}/{quota.daily_limit} requests left",
            "Ready for ATP import",
        ]
    else:
        recommendations = [
            "Check RAPIDAPI_KEY",
            "Make sure the account is subscribed to Tennis Devs on RapidAPI",
            f"Free plan: {quota.global_limit} requests per day",
        ]
    return {
        "success": report.success,
        "action": "test_connection",
        "message": report.message,
        "details": details,
        "recommendations": recommendations,
    }, 200


async def _import(factory, action: str, window: DateWindow, limit: int, min_requests: int) -> Reply:
    async with factory() as importer:
        before = await importer.quota_status()
        if before.remaining < min_requests:
            return {
                "success": False,
                "error": "Insufficient quota",
                "message": (
                    f"Only {before.remaining} requests left, "
                    f"import needs at least {min_requests}."
                ),
                "quota": before.to_dict(),
            }, 429
        result = await importer.import_matches(window, limit)

    if result.imported:
        message = f"Tennis import succeeded, {result.imported} ATP matches imported"
    else:
        message = "Import finished but no ATP match was imported"
    return {
        "success": result.imported > 0,
        "action": action,
        "message": message,
        "result": result.to_dict(),
        "summary": {
            "totalMatches": result.imported,
            "sport": "Tennis ATP",
            "period": window.describe(),
            "examples": result.examples,
            "quota": {
                "used": result.requests_used,
                "remaining": result.quota_remaining,
            },
            "breakdown": {
                "imported": result.imported,
                "skipped": result.skipped,
                "errors": result.errors,
            },
        },
    }, 200


async def _quota(factory) -> Reply:
    async with factory() as importer:
        quota = await importer.quota_status()
    return {
        "success": True,
        "action": "get_quota_status",
        "message": "Tennis API quota status",
        "quota": quota.to_dict(),
        "recommendation": _quota_hint(quota.percentage, quota.remaining),
    }, 200


async def _debug(factory) -> Reply:
    async with factory() as importer:
        debug = await importer.debug_api_response()
    return {
        "success": True,
        "action": "debug_api_response",
        "message": "Raw provider structure",
        "debug": debug,
    }, 200


def _parse_window(body: Dict[str, Any]) -> DateWindow:
    start, end = body.get("start"), body.get("end")
    if not start and not end:
        return DateWindow.last_days()
    if not start or not end:
        raise ValueError("start and end must be given together")
    window = DateWindow(date.fromisoformat(start), date.fromisoformat(end))
    if window.end <= window.start:
        raise ValueError("end must be after start")
    return window


def _bad_request(message: str) -> Reply:
    return {"success": False, "error": message}, 400


def _unknown_action(action: Any) -> Reply:
    return {
        "error": f"Unsupported action: {action}",
        "availableActions": [f"{k} - {v}" for k, v in AVAILABLE_ACTIONS.items()],
        "examples": {k: {"action": k} for k in AVAILABLE_ACTIONS},
    }, 400


def _quota_exceeded(action: Any, exc: QuotaExceededError) -> Reply:
    return {
        "success": False,
        "action": action,
        "error": "Insufficient quota",
        "kind": exc.kind.value,
        "message": str(exc),
        "quota": exc.status.to_dict(),
    }, 429


def _error_reply(action: Any, exc: Exception) -> Reply:
    kind = classify_exception(exc)
    headline, hints = troubleshooting(kind)
    return {
        "success": False,
        "action": action,
        "error": headline,
        "kind": kind.value,
        "originalError": str(exc),
        "troubleshooting": hints,
    }, 500


def dispatch(action: Any, body: Dict[str, Any]) -> Reply:
    factory = _factory()
    if action == "test_connection":
        return _run(_test_connection(factory))
    if action == "import_atp_matches":
        try:
            window = _parse_window(body)
            limit = int(body.get("limit", 50))
        except (TypeError, ValueError) as e:
            return _bad_request(str(e))
        if not 1 <= limit <= 150:
            return _bad_request("limit must be between 1 and 150")
        return _run(_import(factory, action, window, limit, min_requests=5))
    if action == "import_atp_july_2025":
        return _run(_import(factory, action, DateWindow.july_2025(), 50, min_requests=3))
    if action == "get_quota_status":
        return _run(_quota(factory))
    if action == "debug_api_response":
        return _run(_debug(factory))
    return _unknown_action(action)


@bp.route("/api/tennis-import", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
def tennis_import():
    if not _authenticated():
        return jsonify({"error": "Authentication required"}), 401
    if request.method != "POST":
        return jsonify({"error": "Method not allowed"}), 405

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    action = body.get("action")
    logger.info("Tennis import action: {}", action)
    try:
        payload, status = dispatch(action, body)
    except QuotaExceededError as e:
        logger.warning("Tennis import action {} stopped by quota: {}", action, e)
        payload, status = _quota_exceeded(action, e)
    except Exception as e:
        logger.exception("Tennis import action {} failed", action)
        payload, status = _error_reply(action, e)
    return jsonify(payload), status


@bp.get("/healthz")
def healthz():
    return jsonify({"status": "ok"})
