"""
Product embeddings.

Renders a product as ``key: value`` lines, embeds the text with the configured
embedding model, and stores the vector on the ``products`` row in pgvector
text form. ``backfill_product_embeddings`` pages through the catalog and
embeds products one by one, collecting per-product failures instead of
stopping.

Supabase calls are synchronous (supabase-py) and run on a worker thread.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from marketai.core.logging import get_logger
from marketai.services.ai.inference_client import InferenceClient
from marketai.services.ai.models.embeddings import generate_embedding

logger = get_logger(__name__)

PRODUCTS_TABLE = "products"
PRODUCT_SOURCE_COLUMNS = "product_id,name,description,short_description,tags,sku,embedding"
DEFAULT_BATCH_SIZE = 20
MAX_BATCH_SIZE = 200


class ProductEmbeddingContent(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    category_name: Optional[str] = None
    brand: Optional[str] = None
    sku: Optional[str] = None
    tags: Optional[List[str]] = None


class ProductEmbeddingResult(BaseModel):
    product_id: str
    model: str
    dimensions: int
    embedding: List[float]
    embedding_text: str


class ProductEmbeddingFailure(BaseModel):
    product_id: str
    reason: str


class BackfillResult(BaseModel):
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[ProductEmbeddingFailure] = Field(default_factory=list)


def build_product_embedding_text(content: ProductEmbeddingContent) -> str:
    lines = [
        f"product_id: {content.id}",
        f"name: {content.name}",
        f"short_description: {content.short_description}" if content.short_description else None,
        f"description: {content.description}" if content.description else None,
        f"category: {content.category_name}" if content.category_name else None,
        f"brand: {content.brand}" if content.brand else None,
        f"sku: {content.sku}" if content.sku else None,
        f"tags: {', '.join(content.tags)}" if content.tags else None,
    ]
    return "\n".join(line for line in lines if line and line.strip())


async def generate_product_embedding(
    content: ProductEmbeddingContent,
    client: Optional[InferenceClient] = None,
) -> ProductEmbeddingResult:
    embedding_text = build_product_embedding_text(content)
    generated = await generate_embedding(embedding_text, client=client)
    return ProductEmbeddingResult(
        product_id=content.id,
        model=generated.model,
        dimensions=generated.dimensions,
        embedding=generated.embedding,
        embedding_text=embedding_text,
    )


def to_pg_vector(embedding: List[float]) -> str:
    """Format a vector the way pgvector parses it: ``[a,b,c]``."""
    return "[" + ",".join(str(value) for value in embedding) + "]"


def product_row_to_content(row: Dict[str, Any]) -> ProductEmbeddingContent:
    return ProductEmbeddingContent(
        id=str(row["product_id"]),
        name=row.get("name") or "",
        description=row.get("description"),
        short_description=row.get("short_description"),
        tags=row.get("tags"),
        sku=row.get("sku"),
    )


async def persist_product_embedding(supabase: Any, result: ProductEmbeddingResult) -> None:
    """
    Store the embedding on the product row.

    Raises:
        RuntimeError: the update failed
    """
    update = {
        "embedding": to_pg_vector(result.embedding),
        "embedding_model": result.model,
        "embedding_updated_at": datetime.now(timezone.utc).isoformat(),
    }

    def _execute() -> Any:
        return (
            supabase.table(PRODUCTS_TABLE)
            .update(update)
            .eq("product_id", result.product_id)
            .execute()
        )

    try:
        await asyncio.to_thread(_execute)
    except Exception as e:
        raise RuntimeError(
            f"Failed to persist embedding for product {result.product_id}: {e}"
        ) from e


async def generate_and_persist_product_embedding(
    supabase: Any,
    content: ProductEmbeddingContent,
    client: Optional[InferenceClient] = None,
) -> ProductEmbeddingResult:
    generated = await generate_product_embedding(content, client=client)
    await persist_product_embedding(supabase, generated)
    return generated


async def _load_product_page(
    supabase: Any,
    range_start: int,
    range_end: int,
    only_missing: bool,
    excluded_ids: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    def _execute() -> Any:
        query = (
            supabase.table(PRODUCTS_TABLE)
            .select(PRODUCT_SOURCE_COLUMNS)
            .order("updated_at", desc=True)
            .range(range_start, range_end)
        )
        if only_missing:
            query = query.is_("embedding", "null")
        if excluded_ids:
            query = query.not_.in_("product_id", list(excluded_ids))
        return query.execute()

    try:
        response = await asyncio.to_thread(_execute)
    except Exception as e:
        raise RuntimeError(f"Failed to load products for embedding backfill: {e}") from e
    return list(response.data or [])


async def backfill_product_embeddings(
    supabase: Any,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_products: Optional[int] = None,
    only_missing: bool = True,
    client: Optional[InferenceClient] = None,
) -> BackfillResult:
    """
    Embed products in pages of ``batch_size`` (clamped to 1-200).

    With ``only_missing`` the first page is re-read each round, since embedded
    products drop out of the ``embedding is null`` filter and products that
    already failed are excluded from the query. Stops on an empty or
    short page, or once ``max_products`` products have been processed.

    Raises:
        RuntimeError: a page of products could not be loaded
    """
    batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))
    result = BackfillResult()
    offset = 0

    while True:
        if max_products is not None and result.processed >= max_products:
            break

        remaining = (
            max(max_products - result.processed, 0) if max_products is not None else batch_size
        )
        current_batch_size = min(batch_size, remaining or batch_size)

        range_start = 0 if only_missing else offset
        range_end = range_start + current_batch_size - 1

        rows = await _load_product_page(
            supabase,
            range_start,
            range_end,
            only_missing,
            excluded_ids=[failure.product_id for failure in result.failures] if only_missing else (),
        )
        if not rows:
            break

        for row in rows:
            if max_products is not None and result.processed >= max_products:
                break

            result.processed += 1
            product_id = str(row.get("product_id"))
            try:
                await generate_and_persist_product_embedding(
                    supabase, product_row_to_content(row), client=client
                )
                result.succeeded += 1
            except Exception as e:
                result.failed += 1
                result.failures.append(
                    ProductEmbeddingFailure(
                        product_id=product_id,
                        reason=str(e) or "Unknown embedding generation error",
                    )
                )
                logger.warning("product_embedding_failed", product_id=product_id, error=str(e))

        if len(rows) < current_batch_size:
            break

        if not only_missing:
            offset += current_batch_size

    logger.info(
        "product_embedding_backfill_completed",
        processed=result.processed,
        succeeded=result.succeeded,
        failed=result.failed,
    )
    return result
