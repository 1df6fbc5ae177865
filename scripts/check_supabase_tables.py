"""Supabase schema check.

Checks that the Supabase env vars are present and that each table the
assessment service writes to can be queried with the service key.
"""

import os
import sys

from supabase import create_client

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "adaptive_career_assessment", "src"))

from adaptive_career_assessment.assessment_store import QUESTIONS_TABLE, SESSIONS_TABLE
from adaptive_career_assessment.config import get_config
from adaptive_career_assessment.user_profile_manager import PROFILES_TABLE


def main() -> int:
    config = get_config()
    url = config.SUPABASE_URL
    key = config.SUPABASE_SERVICE_KEY

    print("SUPABASE_URL:", url)
    print("SUPABASE_SERVICE_KEY (prefix):", key[:12] + "..." if key else None)

    if not config.supabase_configured():
        print("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY")
        return 1

    client = create_client(url, key)

    failures = 0
    for table in (SESSIONS_TABLE, QUESTIONS_TABLE, PROFILES_TABLE):
        try:
            result = client.table(table).select("id").limit(1).execute()
            print(f"{table}: ok ({len(result.data)} row(s) sampled)")
        except Exception as exc:
            print(f"{table}: FAILED - {exc}")
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
