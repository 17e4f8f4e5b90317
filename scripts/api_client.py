"""Lightweight REST client for the Ludo Star player API."""

from __future__ import annotations

import argparse
import json

import httpx


def build_old_names(raw: str) -> list[str] | None:
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid old names JSON: {exc}") from exc
    if not isinstance(value, list):
        raise SystemExit("Old names must be a JSON array")
    return value


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the Ludo Star player API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:3015")
    parser.add_argument("--list", action="store_true", help="List players and exit")
    parser.add_argument("--page", type=int, default=1, help="Page to request with --list")
    parser.add_argument("--limit", type=int, default=10, help="Page size to request with --list")
    parser.add_argument("--get", metavar="PLAYER_ID", help="Fetch a single player")
    parser.add_argument("--delete", metavar="PLAYER_ID", help="Delete a player")
    parser.add_argument("--create", metavar="PLAYER_ID", help="Create a player (requires --name and --uid)")
    parser.add_argument("--update", metavar="PLAYER_ID", help="Update the fields given by --name/--uid/--old-names")
    parser.add_argument("--name", default=None, help="Player display name")
    parser.add_argument("--uid", default=None, help="Player uid")
    parser.add_argument("--old-names", default="", help="JSON array of previous names")
    args = parser.parse_args()

    old_names = build_old_names(args.old_names)

    with httpx.Client(base_url=args.base_url) as client:
        if args.list:
            resp = client.get("/api/players", params={"page": args.page, "limit": args.limit})
        elif args.get:
            resp = client.get(f"/api/player/{args.get}")
        elif args.delete:
            resp = client.delete(f"/api/player/{args.delete}")
        elif args.create:
            body = {"player_id": args.create, "name": args.name, "uid": args.uid}
            if old_names is not None:
                body["old_names"] = old_names
            resp = client.post("/api/player", json=body)
        elif args.update:
            body = {}
            if args.name is not None:
                body["name"] = args.name
            if args.uid is not None:
                body["uid"] = args.uid
            if old_names is not None:
                body["old_names"] = old_names
            resp = client.put(f"/api/player/{args.update}", json=body)
        else:
            resp = client.get("/")

    payload = resp.json()
    print(json.dumps(payload, indent=2))
    if not payload.get("success", resp.is_success):
        raise SystemExit(f"request failed with HTTP {resp.status_code}: {payload.get('message')}")


if __name__ == "__main__":
    main()
