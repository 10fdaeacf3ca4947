"""Ask one question about the indexed codebase from the command line."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from application.use_cases.answer_question import answer_question
from domain.errors import PipelineError
from infrastructure.config import ContainerConfig, build_default_container
from ui.logging_utils import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("query", help="Question to answer")
    parser.add_argument("--json", action="store_true", help="Print the full result envelope as JSON")
    return parser.parse_args()


async def run(query: str, config: ContainerConfig) -> dict:
    container = build_default_container(config)
    result = await answer_question(
        query,
        router=container.router,
        query_rewriter=container.query_rewriter,
        retriever=container.retriever,
        compressor=container.compressor,
        generator=container.generator,
        evaluator=container.evaluator,
        retry_settings=container.retry_settings,
    )
    return result.to_dict()


def main() -> int:
    args = parse_args()
    config = ContainerConfig.from_env()
    setup_logging(config)
    try:
        payload = asyncio.run(run(args.query, config))
    except PipelineError as exc:
        print(f"error: {exc} (stage={exc.stage}, strategy={exc.strategy}, retryable={exc.retryable})", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(payload["finalAnswer"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
