from __future__ import annotations

import signal
import threading

from django.core.management.base import BaseCommand

from modules.orders.factories import build_expiry_sweeper, event_processing_settings


class Command(BaseCommand):
    help = "Run the order expiry sweeper until SIGINT/SIGTERM."

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single sweep and exit.",
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between sweeps (default: EXPIRY_CHECK_INTERVAL_SECONDS).",
        )
        parser.add_argument(
            "--threshold",
            type=int,
            default=None,
            help="Expiry threshold in minutes (default: ORDER_EXPIRY_THRESHOLD_MINUTES).",
        )

    def handle(self, *args, **options):
        config = event_processing_settings()
        sweeper = build_expiry_sweeper(threshold_minutes=options["threshold"])

        if options["once"]:
            published = sweeper.sweep()
            self.stdout.write(
                self.style.SUCCESS(f"Sweep completed: expired_events={len(published)}")
            )
            return

        interval = options["interval"] or config.expiry_check_interval_seconds
        stop_event = threading.Event()

        def _request_stop(signum, frame):
            self.stdout.write(f"Received signal {signum}, stopping after this tick...")
            stop_event.set()

        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)

        self.stdout.write(f"Expiry sweeper running every {interval}s. Ctrl+C to stop.")
        sweeper.run_until_stopped(stop_event, interval)
        self.stdout.write(self.style.SUCCESS("Expiry sweeper stopped."))
