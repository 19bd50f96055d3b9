import logging


logger = logging.getLogger("redis_console")
