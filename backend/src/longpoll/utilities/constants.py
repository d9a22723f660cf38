# ------------ Config ------------
POLL_TIMEOUT = 30.0               # seconds a long poll is held open
CLIENT_TIMEOUT = 60.0             # seconds of inactivity before a client is evicted
CLEANUP_INTERVAL = 60.0           # seconds between janitor sweeps
DISCONNECT_CHECK_INTERVAL = 1.0   # seconds between disconnect checks on an open poll
LOG_LEVEL = "INFO"
APP_NAME = "Long-poll Pub/Sub"
# --------------------------------
