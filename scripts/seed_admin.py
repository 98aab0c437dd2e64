"""Create the SuperAdmin accounts named by SUPERADMIN_ITS / SUPERADMIN_PASS / SUPERADMIN_EMAIL
(and SUPERADMIN2_*, SUPERADMIN3_*). Existing accounts are left untouched."""
from __future__ import annotations

import importlib
import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))

from bgi_admin.config import get_settings_module
from bgi_admin.database.bootstrap import ensure_superadmins, superadmin_seeds_from_env


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())

    seeds = superadmin_seeds_from_env()
    if not seeds:
        print("No SUPERADMIN_ITS / SUPERADMIN_PASS configured; nothing to seed.")
        return 1

    created = ensure_superadmins(dict(settings.DB_CONFIG), seeds)
    print(f"OK: {len(created)} SuperAdmin account(s) created, {len(seeds) - len(created)} already present")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
