"""Example: drive the scrape pipeline without any web layer.

Usage: APP_ENV=testing python examples/example_usage.py STUDENT_ID PASSWORD
"""

import sys

from lms_attendance.main import bootstrap


def main():
    identity, secret = sys.argv[1], sys.argv[2]
    container = bootstrap()

    handle = container.scheduler.trigger(identity, secret)
    result = container.scheduler.await_bounded(handle, container.scrape_wait_seconds or None)
    print(result)

    view = container.store.read(identity)
    print(view.state.value, view.display_name, view.fetched_at)
    for rec in view.records:
        print(f"{rec.subject}: {rec.present}/{rec.total} ({rec.percent}%) required={rec.required} margin={rec.margin}")

    container.scheduler.shutdown()


if __name__ == "__main__":
    main()
