"""Service return reminder worker.

Runs once a day at REMINDER_HOUR (UTC), or once with --once.
"""
from __future__ import annotations
import time
import argparse

from ibarangay.app import create_app
from ibarangay import db
from ibarangay.utils.reminders import check_overdue_services, seconds_until_next_run
from ibarangay.utils.time import utc_now


def run_once(app):
    stats = check_overdue_services()
    app.logger.info(
        "[reminders] overdue=%s due_soon=%s notified=%s",
        stats['overdue'], stats['due_soon'], stats['notified'],
    )
    return stats


def run_loop(app, hour: int):
    """Run the check every day at ``hour``."""
    while True:
        delay = seconds_until_next_run(utc_now(), hour)
        app.logger.info(f"[reminders] Next run in {int(delay)}s")
        time.sleep(delay)
        try:
            run_once(app)
        except Exception as e:
            # Keep running even if one day's run fails
            db.session.rollback()
            app.logger.error(f"[reminders] Run failed: {e}")


def main():
    parser = argparse.ArgumentParser(description="Service return reminder worker")
    parser.add_argument('--once', action='store_true', help='Run the check immediately then exit')
    parser.add_argument('--hour', type=int, default=None, help='UTC hour for the daily run (defaults to REMINDER_HOUR)')
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.once:
            run_once(app)
        else:
            hour = args.hour if args.hour is not None else app.config.get('REMINDER_HOUR', 8)
            run_loop(app, hour)


if __name__ == '__main__':
    main()
