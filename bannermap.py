#!/usr/bin/env python3
# Banner Map – marker server + reconciling client
#
# Lifecycle:
# - click on map -> draft (client only, uuid id, never sent)
# - confirm with a location name -> POST /api/markers -> confirmed (server id), draft dropped
# - flag / comment / rename -> PUT /api/markers/{id}
# - delete -> DELETE /api/markers/{id}: copied into trash, then removed (never destructive)
# - every poll_interval_s the client re-fetches GET /api/markers and swaps its confirmed set
#
# Files:
# - config.json   (tracked)      data_dir, log_dir, host, port, api_url, poll_interval_s
# - secrets.json  (NOT tracked)  {"admin_token": "..."}
# - data/markers.json            live markers
# - data/trash.json              archive of deleted markers (append-only)

import argparse
import sys

import bm
from bm.core.config import load_config
from bm.core.errors import MarkerError
from bm.utils.log import log_line, setup_log_paths


def cmd_serve(cfg, args) -> int:
    import uvicorn
    from bm.server.app import build_service, create_app

    service = build_service(cfg["data_dir"])
    app = create_app(service, admin_token=cfg.get("admin_token"))
    log_line(f"SERVER START v{bm.__version__} | data_dir={cfg['data_dir']} | markers={len(service.markers)} trash={len(service.trash)}")
    uvicorn.run(app, host=args.host or cfg["host"], port=int(args.port or cfg["port"]), log_level="info")
    return 0


def _client_store(cfg):
    from bm.adapters.markers_api import HttpMarkerApi
    from bm.domain.store import MarkerStore
    return MarkerStore(HttpMarkerApi.from_config(cfg))


def cmd_watch(cfg, args) -> int:
    from bm.core.main_loop import PollLoop, log_counts

    store = _client_store(cfg)
    interval = args.interval if args.interval is not None else cfg["poll_interval_s"]
    PollLoop(store, interval, on_cycle=log_counts).run(one_shot=args.once)
    return 0


def cmd_status(cfg, args) -> int:
    store = _client_store(cfg)
    info = store.api.status()
    store.refresh()
    print(f"{info.get('status')} ({info.get('time')}) | markers={store.confirmed_count}")
    return 0


def cmd_search(cfg, args) -> int:
    store = _client_store(cfg)
    store.refresh()
    found = store.search(args.keyword)
    if found is None:
        print(f'No marker location contains "{args.keyword}"')
        return 1
    lat, lng = found.position
    print(f"{found.id}\t{found.location}\t({lat:.3f}, {lng:.3f})\tproblem={found.problem}")
    return 0


def cmd_reset(cfg, args) -> int:
    if not args.yes:
        print("Refusing to archive+delete all markers without --yes")
        return 2
    store = _client_store(cfg)
    store.api.delete_all_markers()
    store.refresh()
    log_line(f"RESET | live markers now {store.confirmed_count}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Banner Map server and client")
    parser.add_argument("--root", default=".", help="directory holding config.json / secrets.json")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("serve", help="run the REST server")
    p.add_argument("--host")
    p.add_argument("--port", type=int)
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("watch", help="poll the server and log marker counts")
    p.add_argument("--interval", type=float)
    p.add_argument("--once", action="store_true")
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("status", help="server liveness and live marker count")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("search", help="find the first marker whose location contains KEYWORD")
    p.add_argument("keyword")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("reset", help="archive and delete every live marker")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=cmd_reset)

    args = parser.parse_args(argv)
    cfg = load_config(args.root)
    setup_log_paths(cfg["log_dir"])

    try:
        return args.func(cfg, args)
    except MarkerError as e:
        log_line(f"ERROR | {args.cmd} | {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
