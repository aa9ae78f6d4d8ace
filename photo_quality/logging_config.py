import logging
import sys


class KVFormatter(logging.Formatter):
    def format(self, record):
        base = {
            "time": self.formatTime(record, "%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line = " | ".join(f"{k}={v}" for k, v in base.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(KVFormatter())


def setup_logging(level=logging.INFO):
    logging.root.handlers.clear()
    logging.root.setLevel(level)
    logging.root.addHandler(_handler)
    for noisy in ["tensorflow", "deepface", "insightface", "onnxruntime", "urllib3", "PIL"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)
