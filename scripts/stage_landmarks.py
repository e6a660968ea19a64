#!/usr/bin/env python3
"""Stage a tooth from CEJ, bone and apex coordinates marked on a radiograph."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from dental_cdss.api.services.staging import (
    DEFAULT_PIXELS_PER_MM,
    LandmarkPoint,
    StagingInputError,
    bone_loss_finding_from_staging,
    stage,
)


def _point(raw: str) -> LandmarkPoint:
    try:
        x_text, y_text = raw.split(",")
        return LandmarkPoint(x=float(x_text), y=float(y_text))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected X,Y but got {raw!r}") from exc


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--cej", type=_point, required=True, help="CEJ point as X,Y in pixels")
    parser.add_argument("--bone", type=_point, required=True, help="Crestal bone point as X,Y in pixels")
    parser.add_argument("--apex", type=_point, required=True, help="Root apex point as X,Y in pixels")
    parser.add_argument("--pixels-per-mm", type=float, default=DEFAULT_PIXELS_PER_MM)
    parser.add_argument("--region", action="append", default=[], help="Anatomical region label (repeatable)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        result = stage(args.cej, args.bone, args.apex, args.pixels_per_mm)
    except StagingInputError as exc:
        print(json.dumps(exc.detail), file=sys.stderr)
        return 2
    finding = bone_loss_finding_from_staging(result, regions=args.region)
    payload = result.to_wire()
    payload["boneLoss"] = finding.to_wire() if finding is not None else None
    print(json.dumps(payload, indent=2))
    return 1 if result.indeterminate else 0


if __name__ == "__main__":
    sys.exit(main())
