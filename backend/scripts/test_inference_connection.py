"""
Verify that the inference API key and sentiment model are reachable.
Usage: python scripts/test_inference_connection.py
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import marketai modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from marketai.core.config import get_settings, load_env_file
from marketai.core.logging import configure_logging
from marketai.services.ai.diagnostics import check_inference_connection


async def main() -> bool:
    print("=" * 60)
    print("Testing Inference API Connection")
    print("=" * 60)
    print()

    settings = get_settings()
    if not settings.is_configured:
        print("[X] HUGGINGFACE_API_KEY not found in environment variables")
        print("   Please set HUGGINGFACE_API_KEY in your .env file")
        return False

    key = settings.huggingface_api_key
    key_preview = f"{key[:4]}...{key[-4:]}" if len(key) > 8 else "***"
    print(f"[OK] HUGGINGFACE_API_KEY found: {key_preview}")
    print(f"   Endpoint: {settings.inference_endpoint}")
    print()

    result = await check_inference_connection()
    if result.ok:
        print(f"[OK] {result.message} (model: {result.model})")
    else:
        print(f"[X] Connection failed for {result.model}: {result.message}")
    return result.ok


if __name__ == "__main__":
    load_env_file()
    configure_logging(log_level="WARNING", json_output=False)
    success = asyncio.run(main())
    sys.exit(0 if success else 1)
