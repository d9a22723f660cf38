from longpoll.utilities.constants import *  # noqa: F401,F403
from longpoll.utilities.config import Settings, get_settings
from longpoll.utilities.utility_functions import configure_logging, make_ack, make_error, utcnow
