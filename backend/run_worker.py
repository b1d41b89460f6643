"""Run the submission judging pool as a standalone process.

Start the API with RUN_EMBEDDED_WORKER=false when using this.
"""

import signal
import threading

from codearena.core.logging_setup import configure_logging
from codearena.services.submission_worker import submission_worker


def main() -> None:
    configure_logging()
    stopped = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stopped.set())

    submission_worker.start()
    try:
        while not stopped.wait(1):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        submission_worker.stop()


if __name__ == "__main__":
    main()
