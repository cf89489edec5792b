import json
import sys

from listing_monitor.config import configure_logging, load_settings
from listing_monitor.db import Base, make_engine
from listing_monitor.main import run_batch
from listing_monitor.runner import build_runner


def main() -> int:
    configure_logging()
    settings = load_settings()

    engine = make_engine(settings.database_url)
    # Ensure tables exist
    Base.metadata.create_all(engine)

    runner = build_runner(settings, engine)
    status, body = run_batch(runner, {"Authorization": f"Bearer {settings.cron_secret}"})

    print(json.dumps(body, indent=2))
    if status != 200:
        print(f"ERROR: {body.get('error')}", file=sys.stderr)
        return 1

    if "results" in body:
        failed = sum(1 for r in body["results"] if "error" in r)
        print(f"OK: checked {body['checked']} app(s), {failed} failed")
    else:
        print(f"OK: {body['message']}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        raise
