import logging
from datetime import datetime, timezone

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("longpoll").setLevel(level.upper())

# Server -> client bodies are built as dicts
def make_ack(msg: str):
    return {"message": msg}

def make_error(msg: str):
    return {"error": msg}
