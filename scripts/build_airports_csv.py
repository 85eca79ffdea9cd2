#!/usr/bin/env python3
from __future__ import annotations

import argparse
import csv
import io
import re
from pathlib import Path

import httpx

OURAIRPORTS_AIRPORTS_CSV = "https://davidmegginson.github.io/ourairports-data/airports.csv"

OUT_PATH = Path("aerowx/data/airports.csv")

ICAO_RE = re.compile(r"^[A-Z]{4}$")
KEEP_TYPES = {"large_airport", "medium_airport", "small_airport"}


def pick_icao(row: dict) -> str:
    """
    OurAirports rows have:
      - ident: always present (can be '00AK', 'KATL', etc.)
      - gps_code: usually the ICAO code when ident is a local code
    Prefer ident when it already looks like ICAO, else gps_code.
    """
    ident = (row.get("ident") or "").strip().upper()
    gps = (row.get("gps_code") or "").strip().upper()
    if ICAO_RE.match(ident):
        return ident
    if ICAO_RE.match(gps):
        return gps
    return ""


def main() -> int:
    parser = argparse.ArgumentParser(description="Build the aerodrome dataset from OurAirports.")
    parser.add_argument("--country", action="append", help="ISO country code to keep (repeatable)")
    parser.add_argument("--out", type=Path, default=OUT_PATH)
    args = parser.parse_args()
    countries = {c.upper() for c in args.country or []}

    print(f"[download] {OURAIRPORTS_AIRPORTS_CSV}")
    r = httpx.get(OURAIRPORTS_AIRPORTS_CSV, timeout=30.0)
    r.raise_for_status()

    reader = csv.DictReader(io.StringIO(r.text))
    fieldnames = reader.fieldnames or []
    rows = []
    seen = set()

    for row in reader:
        if (row.get("type") or "").strip() not in KEEP_TYPES:
            continue
        if countries and (row.get("iso_country") or "").strip().upper() not in countries:
            continue

        icao = pick_icao(row)
        if not icao or icao in seen:
            continue
        seen.add(icao)

        # keep the upstream column layout; the directory reads by position
        row["ident"] = icao
        rows.append(row)

    args.out.parent.mkdir(parents=True, exist_ok=True)
    with args.out.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)

    print(f"[ok] wrote {len(rows):,} aerodromes -> {args.out.as_posix()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
