import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - our own logs pass through
    - werkzeug request lines only at WARNING+
    - any other third-party logger only at ERROR+
    """

    def filter(self, record):
        name = record.name

        if name == 'app' or name.startswith('app.') or name == '__main__':
            return True

        if name == 'werkzeug':
            return record.levelno >= logging.WARNING

        return record.levelno >= logging.ERROR


def setup_logging(log_dir='logs', console_level=logging.INFO, file_level=logging.DEBUG):
    """
    Console handler (filtered) plus a file handler with everything.

    Call once, before the app starts serving.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / 'volt.log'

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt='%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding='utf-8')
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # warnings.warn(...) ends up in the log as 'py.warnings'
    logging.captureWarnings(True)
