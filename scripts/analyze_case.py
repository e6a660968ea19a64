#!/usr/bin/env python3
"""Run a case JSON file through the enhanced-analysis pipeline and print the result."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dental_cdss.api.services.diagnostic_input import DiagnosticInputError
from dental_cdss.api.services.llm_runner import GenerativeRunner, GenerativeServiceError
from dental_cdss.api.services.orchestrator import AnalysisOrchestrator, OrchestratorSettings
from dental_cdss.api.services.rate_limiter import RateLimiter, RetryBudgetExhaustedError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("case", type=Path, help="Path to a DiagnosticInput JSON document")
    parser.add_argument("--offline", action="store_true", help="Never call the generative service")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    payload = json.loads(args.case.read_text(encoding="utf-8"))
    env_settings = OrchestratorSettings.from_env()
    settings = OrchestratorSettings(
        offline=args.offline or env_settings.offline,
        model_version=env_settings.model_version,
    )
    runner = GenerativeRunner.from_env()
    orchestrator = AnalysisOrchestrator(RateLimiter.from_env(), runner, settings=settings)
    try:
        outcome = await orchestrator.analyze(payload)
    except (DiagnosticInputError, GenerativeServiceError, RetryBudgetExhaustedError) as exc:
        print(json.dumps(getattr(exc, "detail", {"msg": str(exc)})), file=sys.stderr)
        return 2
    finally:
        await runner.aclose()
    print(json.dumps({"source": outcome.kind, "analysis": outcome.to_payload()}, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
