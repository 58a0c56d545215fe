#!/usr/bin/env python3
"""Check the .env file and report which ordertrack settings are in effect.

Secrets are never printed, only whether they are present.
"""

from pathlib import Path
import sys

SECRET_KEYS = ("ORDERTRACK_QR_CODE_SECRET", "ORDERTRACK_QR_SIGNING_API_KEY", "ORDERTRACK_SUPABASE_KEY")

TEMPLATE = """# Deployment environment: development, staging or production
ORDERTRACK_ENVIRONMENT=development

# QR activation. Provision the secret only on trusted signing/verifying servers.
ORDERTRACK_QR_CODE_SECRET=
# Callers of /qr/signature and /qr/generate must send this as a Bearer token or apikey header.
ORDERTRACK_QR_SIGNING_API_KEY=
# ORDERTRACK_QR_SIGNING_ENDPOINT_URL=https://your-project-id.supabase.co/functions/v1/sign-qr
# ORDERTRACK_QR_ALLOW_SIMPLE_CODES=false

# Supabase (order store)
ORDERTRACK_SUPABASE_URL=https://your-project-id.supabase.co
ORDERTRACK_SUPABASE_KEY=your-service-role-key-here

# OSRM routing (optional; tracking falls back to straight-line distance)
# ORDERTRACK_OSRM_BASE_URL=http://localhost:5000
"""


def _masked(line: str) -> str:
    name, _, value = line.partition("=")
    if name.strip() in SECRET_KEYS:
        return f"{name}={'<set>' if value.strip() else '<empty>'}"
    return line


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env at {env_file}; fill in the values and re-run.")
        return 1

    print(f"Found .env at {env_file}:")
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(f"  {_masked(line)}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    from ordertrack.config import Settings

    settings = Settings()
    checks = {
        "environment": settings.environment,
        "qr secret configured": settings.qr_code_secret is not None,
        "signing api key set": settings.qr_signing_api_key is not None,
        "remote signing endpoint": settings.qr_signing_endpoint_url or "-",
        "supabase configured": bool(settings.supabase_url and settings.supabase_key),
        "osrm base url": settings.osrm_base_url or "-",
    }
    for name, value in checks.items():
        print(f"{name:>24}: {value}")

    if settings.qr_code_secret is None and not settings.qr_signing_endpoint_url:
        print("\nQR codes cannot be signed: set ORDERTRACK_QR_CODE_SECRET or ORDERTRACK_QR_SIGNING_ENDPOINT_URL.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
