import logging
import os
from datetime import date

from flask import Flask, jsonify, redirect, render_template, request, session, url_for

from kas_calendar import config
from kas_calendar.engine import SlotSelectionError
from kas_calendar.store import StoreDirectory, StoreLedger, create_store_from_env
from kas_calendar.utils import parse_iso_date
from kas_calendar.weekly_calendar import WeeklyCalendar

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("kas_calendar_web")

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
calendar_store = create_store_from_env(config.DATABASE_URL)

STATE_CLASSES = {
    "paid": "slot-paid",
    "due-this-week": "slot-due",
    "overdue": "slot-overdue",
    "out-of-schedule": "slot-neutral",
}


class InvalidRequest(ValueError):
    pass


def _current_token():
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return session.get("auth_token")


def _parse_count(value) -> int:
    if value in (None, ""):
        return config.CALENDAR_WEEKS
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Invalid count: {value}")
    if count <= 0:
        raise InvalidRequest("Slot count must be positive")
    return count


def _parse_today(value) -> date:
    if not value:
        return date.today()
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise InvalidRequest(str(exc))


def _build_calendar(args) -> WeeklyCalendar:
    count = _parse_count(args.get("count"))
    today = _parse_today(args.get("today"))
    token = _current_token()
    calendar = WeeklyCalendar(
        StoreDirectory(calendar_store),
        StoreLedger(calendar_store, lambda: token),
        weeks=count,
        page_size=config.CALENDAR_PAGE_SIZE,
        locale=args.get("locale") or config.LOCALE,
        clock=lambda: today,
    )
    calendar.refresh()
    return calendar


def _apply_page(calendar: WeeklyCalendar, args) -> None:
    """Move to the requested 0-based page; without one the current week's page stays."""
    value = args.get("page")
    if value in (None, ""):
        return
    try:
        calendar.go_page(int(value))
    except (TypeError, ValueError):
        raise InvalidRequest(f"Invalid page: {value}")


def _calendar_payload(calendar: WeeklyCalendar) -> dict:
    selected = calendar.selected_slot
    return {
        "slots": [s.to_dict() for s in calendar.current_page_slots],
        "page": calendar.page,
        "total_pages": calendar.total_pages,
        "total_slots": len(calendar.slots),
        "selected": {"label": selected.label, "due_date": selected.pay_date.isoformat()} if selected else None,
    }


@app.errorhandler(InvalidRequest)
def _bad_request(exc):
    return jsonify({"error": str(exc)}), 400


@app.route("/", methods=["GET"])
def index():
    calendar = _build_calendar(request.args)
    _apply_page(calendar, request.args)
    return render_template(
        "calendar.html",
        slots=calendar.current_page_slots,
        selected=calendar.selected_slot,
        page=calendar.page,
        total_pages=calendar.total_pages,
        state_classes=STATE_CLASSES,
        signed_in=bool(_current_token()),
    )


@app.get("/api/slots")
def list_slots():
    calendar = _build_calendar(request.args)
    _apply_page(calendar, request.args)
    return jsonify(_calendar_payload(calendar))


@app.post("/api/slots/select")
def select_slot():
    body = request.get_json(silent=True) or {}
    if not body.get("pay_date"):
        raise InvalidRequest("pay_date is required")
    try:
        pay_date = parse_iso_date(body["pay_date"])
    except ValueError as exc:
        raise InvalidRequest(str(exc))
    calendar = _build_calendar(body)
    try:
        label, due_date = calendar.select(pay_date)
    except SlotSelectionError as exc:
        logger.info("Rejected selection of %s: %s", pay_date, exc)
        return jsonify({"error": str(exc)}), 409
    return jsonify({"label": label, "due_date": due_date.isoformat()})


@app.post("/session/token")
def set_token():
    token = (request.form.get("token") or "").strip()
    if token:
        session["auth_token"] = token
    else:
        session.pop("auth_token", None)
    return redirect(url_for("index"))


if __name__ == "__main__":
    print("Starting weekly dues calendar web app...")
    app.run(debug=True)
