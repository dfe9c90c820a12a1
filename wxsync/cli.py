"""CLI entry point for the forecast sync pipeline."""

import argparse
import logging

from wxsync import dates
from wxsync.config.loader import get_config_value, load_config, save_config, set_config_value
from wxsync.errors import StoreError, StoreErrorKind
from wxsync.models.forecast import ForecastDay
from wxsync.preferences import Preferences
from wxsync.storage.forecast_store import ForecastStore
from wxsync.sync.notifications import describe_condition
from wxsync.sync.orchestrator import SyncOrchestrator

DEFAULT_CONFIG = "configs/default.yaml"
DEFAULT_DB = "data/wxsync.db"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wxsync",
        description="Periodic weather forecast sync",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Config YAML path")
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite DB path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("sync", help="Fetch and store the forecast now")
    sub.add_parser("forecast", help="Show stored forecast from today onward")

    day_p = sub.add_parser("day", help="Show the stored forecast for one day")
    day_p.add_argument("date", help="YYYY-MM-DD or epoch ms")

    sub.add_parser("clear", help="Delete all stored forecast rows")

    # location show / set / coords
    loc_p = sub.add_parser("location", help="Location preference")
    loc_sub = loc_p.add_subparsers(dest="location_command")
    loc_sub.add_parser("show", help="Show the preferred location")
    set_loc = loc_sub.add_parser("set", help="Set location by name")
    set_loc.add_argument("query", help="Place name, e.g. 'Berlin,DE'")
    coords_p = loc_sub.add_parser("coords", help="Set location by coordinates")
    coords_p.add_argument("latitude", type=float)
    coords_p.add_argument("longitude", type=float)

    notif_p = sub.add_parser("notifications", help="Toggle new-weather notifications")
    notif_p.add_argument("state", choices=["on", "off"])

    # config show / config set
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    set_p = config_sub.add_parser("set", help="Set a config value")
    set_p.add_argument("keyvalue", help="key=value to set")

    daemon_p = sub.add_parser("daemon", help="Run periodic sync in the foreground")
    daemon_p.add_argument("--stop", action="store_true", help="Stop a running daemon")
    daemon_p.add_argument("--status", action="store_true", help="Show daemon status")

    serve_p = sub.add_parser("serve", help="Serve the read-only forecast API")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    if args.command == "sync":
        return _cmd_sync(config, args)
    elif args.command == "forecast":
        return _cmd_forecast(args)
    elif args.command == "day":
        return _cmd_day(args)
    elif args.command == "clear":
        return _cmd_clear(args)
    elif args.command == "location":
        return _cmd_location(config, args)
    elif args.command == "notifications":
        return _cmd_notifications(config, args)
    elif args.command == "config":
        return _cmd_config(config, args)
    elif args.command == "daemon":
        return _cmd_daemon(config, args)
    elif args.command == "serve":
        return _cmd_serve(config, args)
    else:
        parser.print_help()
        return 1


def _format_day(day: ForecastDay) -> str:
    return (
        f"{dates.to_date_string(day.date)}  {describe_condition(day.condition_id):<8} "
        f"{day.max_temp:5.1f}/{day.min_temp:5.1f}°  "
        f"hum {day.humidity:3.0f}%  {day.pressure:6.1f} hPa  "
        f"wind {day.wind_speed:4.1f} @ {day.wind_direction:3.0f}°"
    )


def _cmd_sync(config, args) -> int:
    orchestrator = SyncOrchestrator.from_config(config, args.db)
    try:
        outcome = orchestrator.sync_now()
    finally:
        orchestrator.shutdown()
    if outcome.ok:
        print(f"Synced {outcome.rows_inserted} days" + (" (notified)" if outcome.notified else ""))
        return 0
    print(f"Sync failed: {outcome.error}")
    return 1


def _cmd_forecast(args) -> int:
    store = ForecastStore(args.db)
    days = store.query_today_onward().all()
    if not days:
        print("No forecast stored. Run: wxsync sync")
        return 1
    for day in days:
        print(_format_day(day))
    return 0


def _cmd_day(args) -> int:
    try:
        date = dates.from_date_string(args.date)
    except ValueError:
        print(f"Error: invalid date {args.date!r}")
        return 1
    store = ForecastStore(args.db)
    try:
        day = store.query_by_date(date)
    except StoreError as e:
        if e.kind == StoreErrorKind.NOT_FOUND:
            print(f"No forecast for {dates.to_date_string(date)}")
            return 1
        raise
    print(_format_day(day))
    return 0


def _cmd_clear(args) -> int:
    deleted = ForecastStore(args.db).delete_all()
    print(f"Deleted {deleted} rows")
    return 0


def _cmd_location(config, args) -> int:
    prefs = Preferences(args.db, default_location=config.location)
    if args.location_command == "set":
        prefs.set_location_query(args.query)
    elif args.location_command == "coords":
        prefs.set_coordinates(args.latitude, args.longitude)
    elif args.location_command != "show":
        print("Use: location show | location set NAME | location coords LAT LON")
        return 1
    location = prefs.get_location()
    print(f"Location: {location.query or '-'}")
    if location.has_coordinates:
        print(f"Coordinates: {location.latitude:.4f}, {location.longitude:.4f}")
    return 0


def _cmd_notifications(config, args) -> int:
    prefs = Preferences(args.db, notifications_default=config.notifications.enabled)
    prefs.set_notifications_enabled(args.state == "on")
    print(f"Notifications: {args.state}")
    return 0


def _cmd_config(config, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "set":
        kv = args.keyvalue
        if "=" not in kv:
            print("Error: use key=value format")
            return 1
        key, value = kv.split("=", 1)
        try:
            new_config = set_config_value(config, key.strip(), value.strip())
        except (KeyError, ValueError) as e:
            print(f"Error: {e}")
            return 1
        save_config(new_config, args.config)
        print(f"Set {key} = {get_config_value(new_config, key.strip())}")
        return 0
    else:
        print("Use: config show | config set key=value")
        return 1


def _cmd_daemon(config, args) -> int:
    from wxsync.daemon import SyncDaemon, daemon_status, stop_daemon

    if args.stop:
        return stop_daemon()
    if args.status:
        return daemon_status()
    SyncDaemon(config, args.db).start()
    return 0


def _cmd_serve(config, args) -> int:
    import uvicorn

    from wxsync.dashboard import create_app

    uvicorn.run(create_app(config, args.db), host=args.host, port=args.port)
    return 0
