import logging
import threading

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from listing_monitor.config import Settings, configure_logging, load_settings
from listing_monitor.db import Base, make_engine, utcnow_naive
from listing_monitor.errors import AuthorizationError, ConfigurationError, LoadError
from listing_monitor.runner import BatchRunner, build_runner

logger = logging.getLogger(__name__)


def run_batch(runner: BatchRunner, headers, cancel: threading.Event | None = None) -> tuple[int, dict]:
    """Run one batch and map the outcome to (http_status, body)."""
    try:
        return 200, runner.run(headers, cancel=cancel)
    except AuthorizationError as exc:
        return 401, {"error": str(exc)}
    except ConfigurationError as exc:
        logger.error("Server misconfigured: %s", exc)
        return 500, {"error": f"Server misconfigured: {exc}"}
    except LoadError as exc:
        logger.error("Cron job error: %s", exc)
        return 500, {"error": str(exc)}
    except Exception as exc:
        logger.exception("Cron job error")
        return 500, {"error": str(exc)}


def create_app(settings: Settings | None = None, runner: BatchRunner | None = None, engine=None) -> FastAPI:
    configure_logging()
    settings = settings or load_settings()
    engine = engine or make_engine(settings.database_url)
    runner = runner or build_runner(settings, engine)

    app = FastAPI(title="App Listing Monitor")
    app.state.settings = settings
    app.state.runner = runner
    app.state.shutdown = threading.Event()
    app.state.scheduler = None

    def scheduled_job():
        status, body = run_batch(
            runner,
            {"Authorization": f"Bearer {settings.cron_secret}"},
            cancel=app.state.shutdown,
        )
        if status != 200:
            logger.error("Scheduled run failed (%s): %s", status, body.get("error"))

    @app.on_event("startup")
    def on_startup():
        app.state.shutdown.clear()
        Base.metadata.create_all(engine)

        if settings.schedule_interval_minutes > 0:
            # A stopped scheduler cannot be restarted, so each startup gets its own
            scheduler = BackgroundScheduler(daemon=True)
            # One run at a time; a slow batch just delays the next one
            scheduler.add_job(
                scheduled_job,
                "interval",
                minutes=settings.schedule_interval_minutes,
                id="listing_check",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            scheduler.start()
            app.state.scheduler = scheduler
            logger.info("Scheduled listing check every %d minute(s)", settings.schedule_interval_minutes)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.shutdown.set()
        scheduler = app.state.scheduler
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)
        app.state.scheduler = None

    @app.api_route("/api/cron", methods=["GET", "POST"])
    def cron(request: Request):
        status, body = run_batch(runner, request.headers, cancel=app.state.shutdown)
        return JSONResponse(status_code=status, content=body)

    @app.get("/health")
    def health():
        return {"status": "ok", "time_utc": utcnow_naive().isoformat()}

    return app
