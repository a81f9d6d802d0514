import logging
import os
from logging import getLogger

log = getLogger('rpnx')
logging.basicConfig(format='[rpnx] %(message)s')

# Index is the level given to the "tracing" operator.
TRACE_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def has_env(varname, value='true'):
    """
    Check environment variable is set.
    """
    return os.environ.get(varname, '').lower() == value


def set_tracing(level):
    """
    Map a tracing level (0, 1, 2) onto the logger level.
    """
    level = max(0, min(int(level), len(TRACE_LEVELS) - 1))
    log.setLevel(TRACE_LEVELS[level])
    return level


if has_env('DEBUG'):
    log.setLevel(logging.DEBUG)
elif has_env('RPNX_LOG', 'debug'):
    log.setLevel(logging.DEBUG)
elif has_env('RPNX_LOG', 'info'):
    log.setLevel('INFO')
elif has_env('RPNX_LOG', 'error'):
    log.setLevel(logging.ERROR)
else:
    log.setLevel(logging.WARNING)
