"""
Backfill product embeddings in Supabase.
Usage: python scripts/generate_product_embeddings.py [--batch-size=20] [--max-products=N] [--all]
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import marketai modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from marketai.core.config import load_env_file
from marketai.core.database import get_supabase_client
from marketai.core.logging import configure_logging
from marketai.services.ai.product_embeddings import backfill_product_embeddings


async def main(batch_size: int, max_products: int, only_missing: bool) -> bool:
    client = get_supabase_client()
    if client is None:
        print("[X] Supabase client unavailable. Check SUPABASE_URL and SUPABASE_SERVICE_KEY.")
        return False

    result = await backfill_product_embeddings(
        client,
        batch_size=batch_size,
        max_products=max_products,
        only_missing=only_missing,
    )

    print("=" * 60)
    print("Product Embedding Backfill")
    print("=" * 60)
    print(f"Processed: {result.processed}")
    print(f"Succeeded: {result.succeeded}")
    print(f"Failed:    {result.failed}")
    for failure in result.failures:
        print(f"   - {failure.product_id}: {failure.reason}")
    return result.failed == 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate embeddings for products")
    parser.add_argument("--batch-size", type=int, default=20, help="Products per page (1-200)")
    parser.add_argument("--max-products", type=int, default=None, help="Stop after this many products")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Re-embed every product, not only those without an embedding",
    )
    args = parser.parse_args()

    load_env_file()
    configure_logging(log_level="INFO", json_output=False)
    success = asyncio.run(main(args.batch_size, args.max_products, not args.all))
    sys.exit(0 if success else 1)
