"""
Latency benchmark for the inference model operations.
Usage: python scripts/benchmark.py [--rounds=3]

Each round calls llm, embeddings, sentiment and classification once. Cached
operations (embeddings, sentiment, classification) are only timed against
the network on the first round.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from statistics import mean, median
from typing import Dict, List

# Add parent directory to path to import marketai modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from marketai.core.config import load_env_file
from marketai.core.logging import configure_logging
from marketai.services.ai.diagnostics import BenchmarkEntry, run_inference_benchmark


async def run_benchmark(rounds: int) -> bool:
    print(f"Benchmarking inference operations ({rounds} round(s))\n")

    entries: List[BenchmarkEntry] = []
    for _ in range(rounds):
        entries.extend(await run_inference_benchmark())

    by_operation: Dict[str, List[BenchmarkEntry]] = {}
    for entry in entries:
        by_operation.setdefault(entry.operation, []).append(entry)

    print("=" * 60)
    print("Benchmark Results")
    print("=" * 60)
    all_ok = True
    for operation, results in by_operation.items():
        successful = [r.latency_ms for r in results if r.success]
        failed = len(results) - len(successful)
        all_ok = all_ok and failed == 0
        if successful:
            print(
                f"{operation:<16} ok={len(successful)} failed={failed} "
                f"mean={mean(successful):.0f}ms median={median(successful):.0f}ms "
                f"max={max(successful)}ms"
            )
        else:
            print(f"{operation:<16} ok=0 failed={failed}")
        last = results[-1]
        if last.details:
            print(f"   last: {last.details}")
    return all_ok


def main():
    parser = argparse.ArgumentParser(description="Benchmark inference model operations")
    parser.add_argument("-r", "--rounds", type=int, default=1, help="Number of rounds (default: 1)")
    args = parser.parse_args()

    load_env_file()
    configure_logging(log_level="WARNING", json_output=False)
    success = asyncio.run(run_benchmark(max(1, args.rounds)))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
