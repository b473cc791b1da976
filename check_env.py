#!/usr/bin/env python3
"""Helper script to check and create the .env file for Supabase and Gemini configuration."""

from pathlib import Path
import os
import sys

SECRET_KEYS = ("FOODSHARE_SUPABASE_KEY", "FOODSHARE_GEMINI_API_KEY")

TEMPLATE = """# Supabase Configuration (optional - an in-memory store is used when unset)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
# Apply sql/schema.sql to the project before pointing the API at it.
FOODSHARE_SUPABASE_URL=https://your-project-id.supabase.co
FOODSHARE_SUPABASE_KEY=your-service-role-key-here

# Gemini inference (optional - AI features fall back to defaults when unset)
FOODSHARE_GEMINI_API_KEY=your-gemini-api-key
# FOODSHARE_GEMINI_MODEL=gemini-2.5-flash
# FOODSHARE_INFERENCE_TIMEOUT_SECONDS=20

# API Configuration
FOODSHARE_API_PREFIX=/api
# FOODSHARE_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list
# FOODSHARE_DEFAULT_RADIUS_KM=10
# FOODSHARE_LOG_LEVEL=INFO
"""


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 20:
        return f"{name}={value[:20]}...{value[-6:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Food Share Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Edit .env and add your Supabase and Gemini credentials.")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for key in ("FOODSHARE_SUPABASE_URL", "FOODSHARE_SUPABASE_KEY", "FOODSHARE_GEMINI_API_KEY"):
        status = "set in environment" if os.getenv(key) else "not in environment (may still come from .env)"
        print(f"{key}: {status}")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from foodshare.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    supabase_ready = bool(settings.supabase_url and settings.supabase_key)
    print(f"{'✅' if supabase_ready else '⚠️ '} Supabase configured: {supabase_ready}")
    print(f"{'✅' if settings.gemini_api_key else '⚠️ '} Gemini configured: {bool(settings.gemini_api_key)}")
    if not supabase_ready:
        print("   Donations will be kept in memory and lost on restart.")
    if not settings.gemini_api_key:
        print("   Image analysis, preference refresh and insights will use fallback values.")


if __name__ == "__main__":
    main()
